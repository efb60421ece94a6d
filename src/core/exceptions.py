class ConfigError(Exception):
    """Raised when config loading or validation fails."""


class ValidationError(Exception):
    """Raised when no calls are configured or a call entry is malformed."""


class ExecutionError(Exception):
    """Raised when a single call fails. Carries the HTTP status when there was one."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.attempts = 1
        self.attempt_errors: list[str] = [message]


class CallTimeout(ExecutionError):
    """Raised when a call does not answer within its own timeout."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Workflow timeout after {timeout_seconds:g} seconds")
        self.timeout_seconds = timeout_seconds


class TransportError(ExecutionError):
    """Raised on network failure or a non-2xx response."""


class GlobalTimeoutError(Exception):
    """Raised when the whole run exceeds its wall-clock budget."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Global timeout of {timeout_seconds:g} seconds exceeded")
        self.timeout_seconds = timeout_seconds


class AbortedOnFailure(Exception):
    """Raised when continue_on_fail is off and a call exhausted its retries."""

    def __init__(self, name: str, error: ExecutionError) -> None:
        super().__init__(f"{name}: {error.message}")
        self.name = name
        self.error = error
