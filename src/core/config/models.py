from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

AuthType = Literal["none", "header", "bearer", "basic"]
Aggregation = Literal["array", "object", "merged", "items"]
SourceMode = Literal["simple", "structured", "manual", "fromInput"]


class AuthConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: AuthType = "none"
    header_name: str = Field("X-API-Key", validation_alias=AliasChoices("header_name", "headerName"))
    value: str | None = Field(None, validation_alias=AliasChoices("value", "token", "apiKey"))
    username: str | None = None
    password: str | None = None


class RunPolicy(BaseModel):
    """Run-wide settings. Read once at run start and never mutated."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    continue_on_fail: bool = Field(True, validation_alias=AliasChoices("continue_on_fail", "continueOnFail"))
    max_concurrent: int = Field(0, ge=0, validation_alias=AliasChoices("max_concurrent", "maxConcurrent"))
    aggregation: Aggregation = Field(
        "array", validation_alias=AliasChoices("aggregation", "resultAggregation")
    )
    include_metadata: bool = Field(False, validation_alias=AliasChoices("include_metadata", "includeMetadata"))
    global_timeout_seconds: float = Field(
        300, gt=0, validation_alias=AliasChoices("global_timeout_seconds", "globalTimeout")
    )


class CallEntry(BaseModel):
    """One raw call definition as written in config or input data (camelCase keys accepted)."""

    model_config = ConfigDict(populate_by_name=True)

    target: str = Field(validation_alias=AliasChoices("target", "webhookUrl", "url", "workflowId"))
    name: str | None = Field(None, validation_alias=AliasChoices("name", "executionName"))
    payload: Any = Field(
        default_factory=dict, validation_alias=AliasChoices("payload", "inputData", "body")
    )
    timeout_seconds: float = Field(
        60, gt=0, validation_alias=AliasChoices("timeout_seconds", "timeout")
    )
    retry_count: int = Field(0, ge=0, le=5, validation_alias=AliasChoices("retry_count", "retryCount"))
    auth: AuthConfig | None = None


class SimpleSource(BaseModel):
    mode: Literal["simple"] = "simple"
    webhook_urls: str | list[str] = Field(validation_alias=AliasChoices("webhook_urls", "webhookUrls"))
    pass_input_data: bool = Field(True, validation_alias=AliasChoices("pass_input_data", "passInputData"))


class StructuredSource(BaseModel):
    mode: Literal["structured"] = "structured"
    calls: list[CallEntry] = Field(default_factory=list)


class ManualSource(BaseModel):
    mode: Literal["manual"] = "manual"
    definitions: Any  # JSON text or an already-parsed document
    selector: str | None = None  # dotted path to the list inside the document


class FromInputSource(BaseModel):
    mode: Literal["fromInput"] = "fromInput"
    workflows_field: str = Field("workflows", validation_alias=AliasChoices("workflows_field", "workflowsField"))


SourceConfig = Annotated[
    Union[SimpleSource, StructuredSource, ManualSource, FromInputSource],
    Field(discriminator="mode"),
]


class RunConfig(BaseModel):
    source: SourceConfig
    policy: RunPolicy = Field(default_factory=RunPolicy)
    env_file_path: str | None = None


class ApiCredential(BaseModel):
    api_key: str
    base_url: str = "http://localhost:5678"

    def webhook_url(self, workflow_id: str) -> str:
        return f"{self.base_url.rstrip('/')}/webhook/{workflow_id.lstrip('/')}"
