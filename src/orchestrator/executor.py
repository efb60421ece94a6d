"""Issue one HTTP call per CallSpec, with auth headers and a per-call timeout."""
from __future__ import annotations

import asyncio
import base64
import json
import logging
from typing import Any

import httpx

from src.core.config.models import AuthConfig
from src.core.contracts.orchestrator import CallSpec
from src.core.exceptions import CallTimeout, TransportError

log = logging.getLogger("executor")


def coerce_payload(payload: Any) -> Any:
    """Text payloads are parsed as JSON; unparseable text is sent as {"data": text}."""
    if isinstance(payload, str):
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            return {"data": payload}
    return payload


def apply_auth(headers: dict[str, str], auth: AuthConfig) -> dict[str, str]:
    if auth.type == "header":
        headers[auth.header_name or "X-API-Key"] = auth.value or ""
    elif auth.type == "bearer" and auth.value:
        headers["Authorization"] = f"Bearer {auth.value}"
    elif auth.type == "basic" and auth.username and auth.password:
        token = base64.b64encode(f"{auth.username}:{auth.password}".encode("utf-8")).decode("ascii")
        headers["Authorization"] = f"Basic {token}"
    return headers


def _decode_body(r: httpx.Response) -> Any:
    if not r.content:
        return None
    try:
        return r.json()
    except ValueError:
        return r.text


class RequestExecutor:
    """POSTs each spec's payload to its target over a shared AsyncClient.

    The send is raced against ``spec.timeout_seconds`` with ``asyncio.wait_for``;
    when the timer wins the in-flight request is cancelled, not left running.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def execute(self, spec: CallSpec) -> Any:
        headers = apply_auth({"Content-Type": "application/json"}, spec.auth)
        body = coerce_payload(spec.payload)
        try:
            r = await asyncio.wait_for(
                self.client.post(spec.target, json=body, headers=headers, timeout=spec.timeout_seconds),
                timeout=spec.timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise CallTimeout(spec.timeout_seconds) from None
        except httpx.TimeoutException as e:
            raise CallTimeout(spec.timeout_seconds) from e
        except Exception as e:
            # network errors, invalid URLs, bodies json can not encode (NaN)
            raise TransportError(str(e) or type(e).__name__) from e
        if not r.is_success:
            log.warning("← %s: HTTP %s", spec.name, r.status_code)
            detail = r.text[:200] if r.text else r.reason_phrase
            raise TransportError(f"Request failed with status code {r.status_code}: {detail}", status_code=r.status_code)
        return _decode_body(r)
