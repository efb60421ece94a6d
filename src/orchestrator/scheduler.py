"""Run every CallSpec to a CallOutcome under the run's concurrency cap and global timeout."""
from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Iterable

from src.core.config.models import RunPolicy
from src.core.contracts.orchestrator import CallOutcome, CallSpec
from src.core.exceptions import AbortedOnFailure, ExecutionError, GlobalTimeoutError, ValidationError
from src.orchestrator.retry import Execute, Sleep, execute_with_retry

log = logging.getLogger("scheduler")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _outcome(
    spec: CallSpec,
    policy: RunPolicy,
    start: float,
    attempts: int,
    success: bool,
    data: Any = None,
    error: str | None = None,
) -> CallOutcome:
    meta: dict[str, Any] = {}
    if policy.include_metadata:
        meta = {
            "execution_time_ms": int((time.perf_counter() - start) * 1000),
            "timestamp": _now_iso(),
            "attempts": attempts,
        }
    return CallOutcome(
        success=success,
        target=spec.target,
        name=spec.name,
        data=data if success else None,
        error=None if success else (error or "Unknown error"),
        **meta,
    )


async def run_one(spec: CallSpec, policy: RunPolicy, execute: Execute, sleep: Sleep = asyncio.sleep) -> CallOutcome:
    attempts = 0

    async def counted(s: CallSpec) -> Any:
        nonlocal attempts
        attempts += 1
        return await execute(s)

    log.info("→ %s: %s", spec.name, spec.target)
    start = time.perf_counter()
    try:
        data = await execute_with_retry(counted, spec, sleep)
    except ExecutionError as e:
        latency_ms = int((time.perf_counter() - start) * 1000)
        log.warning("← %s: failed %s (%s ms)", spec.name, e.message, latency_ms)
        if not policy.continue_on_fail:
            raise AbortedOnFailure(spec.name, e) from e
        return _outcome(spec, policy, start, attempts, False, error=e.message)
    latency_ms = int((time.perf_counter() - start) * 1000)
    log.info("← %s: ok (%s ms)", spec.name, latency_ms)
    return _outcome(spec, policy, start, attempts, True, data=data)


async def _gather_in_order(coros: Iterable[Awaitable[CallOutcome]]) -> list[CallOutcome]:
    """Await all coroutines; result slot i belongs to coroutine i. On failure the rest are cancelled."""
    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        return list(await asyncio.gather(*tasks))
    except asyncio.CancelledError:
        for t in tasks:
            t.cancel()
        raise
    except Exception:
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def run_calls(
    specs: list[CallSpec],
    policy: RunPolicy,
    execute: Execute,
    sleep: Sleep = asyncio.sleep,
) -> list[CallOutcome]:
    """Return one outcome per spec, in input order.

    With ``max_concurrent`` set below ``len(specs)`` the specs run in consecutive
    batches, each finishing before the next starts; the global timeout only
    bounds the unbounded fan-out path.
    """
    if not specs:
        raise ValidationError("No workflows configured for execution")
    size = policy.max_concurrent
    if size > 0 and len(specs) > size:
        outcomes: list[CallOutcome] = []
        for i in range(0, len(specs), size):
            batch = specs[i:i + size]
            log.info("batch %s: %s calls", i // size + 1, len(batch))
            outcomes.extend(await _gather_in_order(run_one(s, policy, execute, sleep) for s in batch))
        return outcomes
    log.info("fan-out: %s calls (global timeout %ss)", len(specs), policy.global_timeout_seconds)
    try:
        return await asyncio.wait_for(
            _gather_in_order(run_one(s, policy, execute, sleep) for s in specs),
            timeout=policy.global_timeout_seconds,
        )
    except asyncio.TimeoutError:
        log.warning("global timeout of %ss exceeded", policy.global_timeout_seconds)
        raise GlobalTimeoutError(policy.global_timeout_seconds) from None
