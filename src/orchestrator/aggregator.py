"""Combine ordered call outcomes into the run's output records."""
from __future__ import annotations

from typing import Any

from src.core.config.models import RunPolicy
from src.core.contracts.orchestrator import CallOutcome


def summarize(outcomes: list[CallOutcome]) -> dict[str, int]:
    successful = sum(1 for o in outcomes if o.success)
    return {
        "totalExecutions": len(outcomes),
        "successful": successful,
        "failed": len(outcomes) - successful,
        "totalTimeMs": sum(o.execution_time_ms or 0 for o in outcomes),
    }


def merge_data(outcomes: list[CallOutcome]) -> dict[str, Any]:
    """Shallow merge of successful dict responses; later outcomes win on shared keys."""
    merged: dict[str, Any] = {}
    for o in outcomes:
        if o.success and isinstance(o.data, dict):
            merged.update(o.data)
    return merged


def aggregate(outcomes: list[CallOutcome], policy: RunPolicy) -> list[dict[str, Any]]:
    records = [o.to_record() for o in outcomes]
    if policy.aggregation == "items":
        return records
    if policy.aggregation == "object":
        result: dict[str, Any] = {}
        for o, record in zip(outcomes, records):
            result[o.name] = record
    elif policy.aggregation == "merged":
        result = merge_data(outcomes)
    else:
        result = {"results": records}
    if policy.include_metadata:
        result["summary"] = summarize(outcomes)
    return [result]
