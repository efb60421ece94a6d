from src.core.contracts.gateway import RunRequest, RunResponse
from src.core.contracts.orchestrator import CallOutcome, CallSpec

__all__ = [
    "RunRequest",
    "RunResponse",
    "CallOutcome",
    "CallSpec",
]
