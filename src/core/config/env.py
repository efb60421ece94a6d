import os
from pathlib import Path

from dotenv import load_dotenv

from src.core.config.models import ApiCredential


def load_env_from_path(env_file_path: str | None, project_root: Path | None = None) -> None:
    if not env_file_path:
        return
    root = project_root or Path.cwd()
    path = root / env_file_path
    if path.exists():
        load_dotenv(path, override=False)


def get_env_vars(env_file_path: str | None = None, project_root: Path | None = None) -> dict[str, str]:
    load_env_from_path(env_file_path, project_root)
    return dict(os.environ)


def get_api_credential(env: dict[str, str] | None = None) -> ApiCredential | None:
    """API key / base URL pair for resolving bare workflow ids. None when no key is set."""
    env = env if env is not None else dict(os.environ)
    api_key = env.get("N8N_API_KEY")
    if not api_key:
        return None
    base_url = env.get("N8N_BASE_URL") or "http://localhost:5678"
    return ApiCredential(api_key=api_key, base_url=base_url)
