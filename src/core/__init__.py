from src.core.config.loader import load_run_config
from src.core.config.models import RunConfig, RunPolicy
from src.core.exceptions import (
    AbortedOnFailure,
    CallTimeout,
    ConfigError,
    ExecutionError,
    GlobalTimeoutError,
    TransportError,
    ValidationError,
)

__all__ = [
    "load_run_config",
    "RunConfig",
    "RunPolicy",
    "AbortedOnFailure",
    "CallTimeout",
    "ConfigError",
    "ExecutionError",
    "GlobalTimeoutError",
    "TransportError",
    "ValidationError",
]
