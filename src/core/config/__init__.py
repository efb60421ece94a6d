from src.core.config.loader import load_run_config
from src.core.config.models import (
    ApiCredential,
    AuthConfig,
    CallEntry,
    RunConfig,
    RunPolicy,
    SourceConfig,
)
from src.core.config.env import get_api_credential, get_env_vars

__all__ = [
    "load_run_config",
    "ApiCredential",
    "AuthConfig",
    "CallEntry",
    "RunConfig",
    "RunPolicy",
    "SourceConfig",
    "get_api_credential",
    "get_env_vars",
]
