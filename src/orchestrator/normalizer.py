"""Turn any configured call source into the ordered CallSpec list the engine runs."""
from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError as SchemaError

from src.core.config.models import (
    ApiCredential,
    AuthConfig,
    CallEntry,
    FromInputSource,
    ManualSource,
    SimpleSource,
    SourceConfig,
    StructuredSource,
)
from src.core.contracts.orchestrator import CallSpec
from src.core.exceptions import ValidationError

log = logging.getLogger("normalizer")

API_KEY_HEADER = "X-N8N-API-KEY"


def _parse_entries(raw: list[Any]) -> list[CallEntry]:
    entries = []
    for i, item in enumerate(raw, 1):
        if isinstance(item, str):
            item = {"target": item}
        try:
            entries.append(CallEntry.model_validate(item))
        except SchemaError as e:
            raise ValidationError(f"Invalid call definition #{i}: {e}") from e
    return entries


def _from_simple(source: SimpleSource, items: list[dict[str, Any]]) -> list[CallEntry]:
    lines = source.webhook_urls.split("\n") if isinstance(source.webhook_urls, str) else source.webhook_urls
    urls = [u.strip() for u in lines if u and u.strip()]
    if not urls:
        raise ValidationError("No webhook URLs provided")
    payload = (items[0] if items else {}) if source.pass_input_data else {}
    return [CallEntry(target=url, payload=payload) for url in urls]


def _select(document: Any, selector: str | None) -> Any:
    if not selector:
        return document
    node = document
    for key in selector.split("."):
        if not isinstance(node, dict) or key not in node:
            raise ValidationError(f"Selector '{selector}' does not match the call definitions")
        node = node[key]
    return node


def _from_manual(source: ManualSource) -> list[CallEntry]:
    document = source.definitions
    if isinstance(document, str):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Call definitions are not valid JSON: {e}") from e
    selected = _select(document, source.selector)
    if isinstance(selected, dict):
        selected = [selected]
    if not isinstance(selected, list):
        raise ValidationError("Call definitions must be a list or an object")
    return _parse_entries(selected)


def _from_input(source: FromInputSource, items: list[dict[str, Any]]) -> list[CallEntry]:
    raw: list[Any] = []
    for item in items:
        value = item.get(source.workflows_field)
        if isinstance(value, list):
            raw.extend(value)
        elif value:
            raw.append(value)
    return _parse_entries(raw)


def to_call_spec(entry: CallEntry, index: int, credential: ApiCredential | None = None) -> CallSpec:
    """Build the spec for the ``index``-th call (1-based), resolving bare workflow ids."""
    target = entry.target.strip()
    if not target:
        raise ValidationError(f"Call {index}: target is empty")
    auth = entry.auth
    if "://" not in target:
        if credential is None:
            raise ValidationError(f"Call {index}: '{target}' is not a URL and no API credential is configured")
        target = credential.webhook_url(target)
        if auth is None:
            auth = AuthConfig(type="header", header_name=API_KEY_HEADER, value=credential.api_key)
    name = (entry.name or "").strip() or f"Call_{index}"
    return CallSpec(
        target=target,
        name=name,
        payload=entry.payload,
        timeout_seconds=entry.timeout_seconds,
        retry_count=entry.retry_count,
        auth=auth or AuthConfig(),
    )


def normalize(
    source: SourceConfig,
    items: list[dict[str, Any]] | None = None,
    credential: ApiCredential | None = None,
) -> list[CallSpec]:
    items = items or []
    if isinstance(source, SimpleSource):
        entries = _from_simple(source, items)
    elif isinstance(source, StructuredSource):
        entries = list(source.calls)
    elif isinstance(source, ManualSource):
        entries = _from_manual(source)
    elif isinstance(source, FromInputSource):
        entries = _from_input(source, items)
    else:
        raise ValidationError(f"Unknown source mode: {getattr(source, 'mode', source)!r}")
    if not entries:
        raise ValidationError("No workflows configured for execution")
    specs = [to_call_spec(e, i, credential) for i, e in enumerate(entries, 1)]
    log.info("%s mode: %s calls", source.mode, len(specs))
    return specs
