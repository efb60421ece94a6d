"""Bounded sequential retry with pure exponential backoff (1s, 2s, 4s, ...)."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from src.core.contracts.orchestrator import CallSpec
from src.core.exceptions import ExecutionError, TransportError

log = logging.getLogger("retry")

Execute = Callable[[CallSpec], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]


def backoff_seconds(attempt: int) -> float:
    return float(2 ** attempt)


async def execute_with_retry(execute: Execute, spec: CallSpec, sleep: Sleep = asyncio.sleep) -> Any:
    """Make up to ``spec.retry_count + 1`` attempts and return the first success.

    Any exception from an attempt counts as a failure; ones that are not an
    ExecutionError are wrapped in TransportError. If every attempt fails the
    last error is raised, with ``attempts`` and ``attempt_errors`` filled in.
    """
    total = spec.retry_count + 1
    errors: list[str] = []
    for attempt in range(total):
        if attempt:
            delay = backoff_seconds(attempt - 1)
            log.info("%s: retrying in %ss (attempt %s/%s)", spec.name, delay, attempt + 1, total)
            await sleep(delay)
        try:
            return await execute(spec)
        except Exception as e:
            error = e if isinstance(e, ExecutionError) else TransportError(str(e) or type(e).__name__)
            errors.append(error.message)
            log.warning("%s: attempt %s/%s failed: %s", spec.name, attempt + 1, total, error.message)
            if attempt + 1 == total:
                error.attempts = total
                error.attempt_errors = errors
                if error is e:
                    raise
                raise error from e
