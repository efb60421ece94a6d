from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.core.config.models import AuthConfig


class CallSpec(BaseModel):
    """Normalized description of one remote invocation."""

    model_config = ConfigDict(frozen=True)

    target: str = Field(min_length=1)
    name: str
    payload: Any = Field(default_factory=dict)
    timeout_seconds: float = Field(60, gt=0)
    retry_count: int = Field(0, ge=0, le=5)
    auth: AuthConfig = Field(default_factory=AuthConfig)


class CallOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    target: str
    name: str
    data: Any = None
    error: str | None = None
    execution_time_ms: int | None = None
    timestamp: str | None = None
    attempts: int | None = None

    def to_record(self) -> dict[str, Any]:
        """Output record: `data` only on success, `error` only on failure, metadata only if collected."""
        record: dict[str, Any] = {"success": self.success, "target": self.target, "name": self.name}
        if self.success:
            record["data"] = self.data
        else:
            record["error"] = self.error
        if self.execution_time_ms is not None:
            record["executionTimeMs"] = self.execution_time_ms
            record["timestamp"] = self.timestamp
            record["attempts"] = self.attempts
        return record
