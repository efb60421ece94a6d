"""
Scheduler behaviour: ordering, failure policy, batching and the global timeout.

Calls are mostly simulated with plain coroutines so timings stay deterministic.
"""

import asyncio
import time

import httpx
import pytest

from src.core.config.models import RunPolicy
from src.core.exceptions import AbortedOnFailure, GlobalTimeoutError, TransportError, ValidationError
from src.orchestrator.executor import RequestExecutor
from src.orchestrator.scheduler import run_calls


def _specs(make_spec, n, **kwargs):
    return [make_spec(i, **kwargs) for i in range(1, n + 1)]


@pytest.mark.asyncio
async def test_output_order_matches_input_order(make_spec):
    specs = _specs(make_spec, 4)
    finished = []

    async def call(spec):
        # later specs finish first
        await asyncio.sleep(0.01 * (5 - int(spec.name.split("_")[1])))
        finished.append(spec.name)
        return {"from": spec.name}

    outcomes = await run_calls(specs, RunPolicy(), call)
    assert finished == ["Call_4", "Call_3", "Call_2", "Call_1"]
    assert [o.name for o in outcomes] == ["Call_1", "Call_2", "Call_3", "Call_4"]
    assert [o.data for o in outcomes] == [{"from": f"Call_{i}"} for i in range(1, 5)]


@pytest.mark.asyncio
async def test_continue_on_fail_records_failures(make_spec):
    specs = _specs(make_spec, 5)

    async def call(spec):
        if spec.name in ("Call_2", "Call_4"):
            raise TransportError(f"{spec.name} broke", status_code=500)
        return {"ok": True}

    outcomes = await run_calls(specs, RunPolicy(continue_on_fail=True), call)
    assert len(outcomes) == 5
    assert [o.success for o in outcomes] == [True, False, True, False, True]
    assert outcomes[1].error == "Call_2 broke"
    assert outcomes[1].data is None
    assert outcomes[0].error is None


@pytest.mark.asyncio
async def test_failed_outcome_carries_last_attempt_error(make_spec, recording_sleep):
    attempts = []

    async def call(spec):
        attempts.append(spec.name)
        raise TransportError(f"attempt {len(attempts)}")

    policy = RunPolicy(include_metadata=True)
    outcomes = await run_calls([make_spec(retry_count=2)], policy, call, sleep=recording_sleep)
    assert len(attempts) == 3
    assert outcomes[0].error == "attempt 3"
    assert outcomes[0].attempts == 3
    assert recording_sleep.delays == [1, 2]


@pytest.mark.asyncio
async def test_fail_fast_aborts_and_cancels_siblings(make_spec):
    specs = _specs(make_spec, 3)
    completed = []

    async def call(spec):
        if spec.name == "Call_1":
            raise TransportError("nope", status_code=404)
        await asyncio.sleep(0.5)
        completed.append(spec.name)
        return {}

    with pytest.raises(AbortedOnFailure) as exc:
        await run_calls(specs, RunPolicy(continue_on_fail=False), call)
    assert exc.value.name == "Call_1"
    assert exc.value.error.status_code == 404
    assert str(exc.value) == "Call_1: nope"
    await asyncio.sleep(0.6)
    assert completed == []


@pytest.mark.asyncio
async def test_batches_run_one_after_another(make_spec):
    specs = _specs(make_spec, 5)
    running = 0
    peak = 0

    async def call(spec):
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.1)
        running -= 1
        return {}

    start = time.perf_counter()
    outcomes = await run_calls(specs, RunPolicy(max_concurrent=2), call)
    elapsed = time.perf_counter() - start
    assert len(outcomes) == 5
    assert peak == 2
    # three batches (2 + 2 + 1), not one and not five
    assert 0.28 <= elapsed < 0.45


@pytest.mark.asyncio
async def test_finished_call_does_not_start_next_batch_early(make_spec):
    specs = _specs(make_spec, 3)
    started = {}
    t0 = time.perf_counter()

    async def call(spec):
        started[spec.name] = time.perf_counter() - t0
        await asyncio.sleep(0.01 if spec.name == "Call_1" else 0.15)
        return {}

    await run_calls(specs, RunPolicy(max_concurrent=2), call)
    assert started["Call_3"] >= 0.14


@pytest.mark.asyncio
async def test_cap_at_or_above_count_is_unbounded(make_spec):
    specs = _specs(make_spec, 3)

    async def call(spec):
        await asyncio.sleep(0.1)
        return {}

    start = time.perf_counter()
    await run_calls(specs, RunPolicy(max_concurrent=3), call)
    assert time.perf_counter() - start < 0.2


@pytest.mark.asyncio
async def test_global_timeout_discards_the_run(make_spec):
    specs = _specs(make_spec, 3, timeout_seconds=5)

    async def call(spec):
        await asyncio.sleep(spec.timeout_seconds)
        return {}

    start = time.perf_counter()
    with pytest.raises(GlobalTimeoutError) as exc:
        await run_calls(specs, RunPolicy(global_timeout_seconds=0.2), call)
    assert time.perf_counter() - start < 1.0
    assert str(exc.value) == "Global timeout of 0.2 seconds exceeded"


@pytest.mark.asyncio
async def test_global_timeout_cancels_backoff_sleep(make_spec):
    async def call(spec):
        raise TransportError("down")

    start = time.perf_counter()
    with pytest.raises(GlobalTimeoutError):
        await run_calls([make_spec(retry_count=3)], RunPolicy(global_timeout_seconds=0.2), call)
    assert time.perf_counter() - start < 1.0


@pytest.mark.asyncio
async def test_batched_path_does_not_enforce_global_timeout(make_spec):
    specs = _specs(make_spec, 2)

    async def call(spec):
        await asyncio.sleep(0.15)
        return {"done": spec.name}

    policy = RunPolicy(max_concurrent=1, global_timeout_seconds=0.1)
    outcomes = await run_calls(specs, policy, call)
    assert [o.success for o in outcomes] == [True, True]


@pytest.mark.asyncio
async def test_metadata_only_when_enabled(make_spec):
    async def call(spec):
        await asyncio.sleep(0.02)
        return {}

    plain = await run_calls([make_spec()], RunPolicy(), call)
    assert plain[0].execution_time_ms is None
    assert plain[0].timestamp is None
    assert "executionTimeMs" not in plain[0].to_record()

    timed = await run_calls([make_spec()], RunPolicy(include_metadata=True), call)
    assert timed[0].execution_time_ms >= 15
    assert timed[0].timestamp.endswith("Z")
    assert timed[0].attempts == 1


@pytest.mark.asyncio
async def test_empty_spec_list_is_rejected():
    async def call(spec):
        return {}

    with pytest.raises(ValidationError):
        await run_calls([], RunPolicy(), call)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"target": "http://example.com:notaport/hook"},
        {"payload": "NaN"},
    ],
    ids=["invalid-port", "nan-payload"],
)
async def test_malformed_call_becomes_failed_outcome(make_spec, mock_client, overrides):
    def handler(request):
        return httpx.Response(200, json={"ok": True})

    specs = [make_spec(1), make_spec(2, **overrides), make_spec(3)]
    async with mock_client(handler) as client:
        outcomes = await run_calls(specs, RunPolicy(continue_on_fail=True), RequestExecutor(client).execute)
    assert [o.success for o in outcomes] == [True, False, True]
    assert outcomes[1].error


@pytest.mark.asyncio
async def test_unexpected_error_never_escapes_with_continue_on_fail(make_spec):
    async def call(spec):
        if spec.name == "Call_2":
            raise KeyError("missing")
        return {}

    outcomes = await run_calls(_specs(make_spec, 3), RunPolicy(continue_on_fail=True), call)
    assert len(outcomes) == 3
    assert outcomes[1].success is False
    assert "missing" in outcomes[1].error
