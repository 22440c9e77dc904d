import asyncio

import pytest

from voicegate.core.monitoring import MetricsCollector, ServiceMetrics, collector, monitor


def test_metrics_collection() -> None:
    local = MetricsCollector()
    local.record_call("assessment", "azure", success=True, duration=1.5)
    local.record_call("assessment", "azure", success=True, duration=2.0)
    local.record_call("assessment", "azure", success=False, duration=0.5)

    metrics = local.get_metrics("assessment", "azure")
    assert metrics is not None
    assert metrics.total_calls == 3
    assert metrics.success_calls == 2
    assert metrics.failed_calls == 1
    assert metrics.error_rate == 1 / 3
    assert 1.0 < metrics.avg_response_time < 2.0
    assert metrics.max_response_time == 2.0


def test_p95_needs_enough_samples() -> None:
    metrics = ServiceMetrics("assessment", "tencent_soe")
    for value in range(1, 20):
        metrics.update_response_time(float(value))
    assert metrics.p95_response_time == 0.0

    metrics.update_response_time(20.0)
    assert metrics.p95_response_time == 20.0


def test_snapshot_and_reset() -> None:
    local = MetricsCollector()
    local.record_call("assessment", "generic_ai", success=True, duration=0.25)

    [item] = local.snapshot()
    assert item["service_name"] == "generic_ai"
    assert item["error_rate"] == 0.0

    local.reset()
    assert local.snapshot() == []


@pytest.mark.asyncio
async def test_monitor_decorator() -> None:
    @monitor("test", "service")
    async def test_function() -> str:
        await asyncio.sleep(0.01)
        return "success"

    result = await test_function()
    assert result == "success"

    metrics = collector.get_metrics("test", "service")
    assert metrics is not None
    assert metrics.total_calls == 1
    assert metrics.success_calls == 1


def test_monitor_decorator_records_failures() -> None:
    @monitor("test", "sync")
    def failing() -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        failing()

    metrics = collector.get_metrics("test", "sync")
    assert metrics is not None
    assert metrics.failed_calls == 1
