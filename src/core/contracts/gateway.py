from typing import Any

from pydantic import BaseModel, Field

from src.core.config.models import RunPolicy, SourceConfig


class RunRequest(BaseModel):
    source: SourceConfig | None = None  # falls back to the service's configured source
    policy: RunPolicy | None = None
    items: list[dict[str, Any]] = Field(default_factory=list)


class RunResponse(BaseModel):
    status: str  # "completed" | "failed"
    items: list[dict[str, Any]] = Field(default_factory=list)
    error: str | None = None
