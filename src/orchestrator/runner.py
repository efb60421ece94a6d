"""Normalize → schedule → aggregate. Shared by the HTTP service and the CLI."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from src.core.config.models import ApiCredential, RunPolicy, SourceConfig
from src.orchestrator.aggregator import aggregate
from src.orchestrator.executor import RequestExecutor
from src.orchestrator.normalizer import normalize
from src.orchestrator.scheduler import run_calls

log = logging.getLogger("runner")


async def run_fanout(
    source: SourceConfig,
    policy: RunPolicy,
    items: list[dict[str, Any]] | None = None,
    client: httpx.AsyncClient | None = None,
    credential: ApiCredential | None = None,
) -> list[dict[str, Any]]:
    specs = normalize(source, items, credential)
    if client is None:
        async with httpx.AsyncClient() as own_client:
            outcomes = await run_calls(specs, policy, RequestExecutor(own_client).execute)
    else:
        outcomes = await run_calls(specs, policy, RequestExecutor(client).execute)
    failed = sum(1 for o in outcomes if not o.success)
    log.info("run finished: %s ok, %s failed (%s aggregation)", len(outcomes) - failed, failed, policy.aggregation)
    return aggregate(outcomes, policy)
