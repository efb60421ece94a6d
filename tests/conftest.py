"""
Shared fixtures for the orchestrator test suite.

 - Environment cleanup so a developer's N8N_* / CONFIG_PATH never leak into tests
 - CallSpec factory
 - httpx.AsyncClient factory backed by MockTransport (no network I/O)
 - Recording sleep for backoff assertions
"""

import logging

import httpx
import pytest

from src.core.contracts.orchestrator import CallSpec

logging.getLogger("httpx").setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ["N8N_API_KEY", "N8N_BASE_URL", "CONFIG_PATH"]:
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture
def make_spec():
    def _make(index: int = 1, **kwargs) -> CallSpec:
        kwargs.setdefault("target", f"https://hooks.example.com/webhook/{index}")
        kwargs.setdefault("name", f"Call_{index}")
        return CallSpec(**kwargs)

    return _make


@pytest.fixture
def mock_client():
    """Returns a factory: mock_client(handler) -> AsyncClient (use with `async with`)."""

    def _make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
