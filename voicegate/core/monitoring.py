"""调用指标收集

按 (服务类型, 服务名称) 记录调用次数、失败次数与耗时，通过装饰器自动上报。
指标只保存在进程内，用于健康检查接口与日志排查。
"""

from __future__ import annotations

import inspect
import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import wraps
from typing import Dict, List, Optional

logger = logging.getLogger("voicegate.core.monitoring")


@dataclass
class ServiceMetrics:
    service_type: str
    service_name: str
    total_calls: int = 0
    success_calls: int = 0
    failed_calls: int = 0
    response_times: deque = field(default_factory=lambda: deque(maxlen=1000))
    avg_response_time: float = 0.0
    max_response_time: float = 0.0
    p95_response_time: float = 0.0
    last_update: Optional[datetime] = None

    @property
    def error_rate(self) -> float:
        if self.total_calls == 0:
            return 0.0
        return self.failed_calls / self.total_calls

    def update_response_time(self, duration: float) -> None:
        self.response_times.append(duration)
        sorted_times = sorted(self.response_times)
        self.avg_response_time = sum(sorted_times) / len(sorted_times)
        self.max_response_time = sorted_times[-1]
        if len(sorted_times) >= 20:
            self.p95_response_time = _percentile(sorted_times, 0.95)

    def to_dict(self) -> dict[str, object]:
        return {
            "service_type": self.service_type,
            "service_name": self.service_name,
            "total_calls": self.total_calls,
            "success_calls": self.success_calls,
            "failed_calls": self.failed_calls,
            "error_rate": round(self.error_rate, 4),
            "avg_response_time": round(self.avg_response_time, 4),
            "max_response_time": round(self.max_response_time, 4),
            "p95_response_time": round(self.p95_response_time, 4),
        }


def _percentile(sorted_values: List[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    index = int(len(sorted_values) * percentile)
    index = min(max(index, 0), len(sorted_values) - 1)
    return sorted_values[index]


class MetricsCollector:
    def __init__(self) -> None:
        self._metrics: Dict[str, ServiceMetrics] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(service_type: str, service_name: str) -> str:
        return f"{service_type}:{service_name}"

    def record_call(
        self,
        service_type: str,
        service_name: str,
        success: bool,
        duration: float,
    ) -> None:
        key = self._key(service_type, service_name)
        with self._lock:
            metrics = self._metrics.get(key)
            if metrics is None:
                metrics = ServiceMetrics(service_type=service_type, service_name=service_name)
                self._metrics[key] = metrics
            metrics.total_calls += 1
            if success:
                metrics.success_calls += 1
            else:
                metrics.failed_calls += 1
            metrics.update_response_time(duration)
            metrics.last_update = datetime.now(timezone.utc)

    def get_metrics(self, service_type: str, service_name: str) -> Optional[ServiceMetrics]:
        return self._metrics.get(self._key(service_type, service_name))

    def snapshot(self) -> list[dict[str, object]]:
        with self._lock:
            return [metrics.to_dict() for metrics in self._metrics.values()]

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()


collector = MetricsCollector()


def monitor(service_type: str, service_name: Optional[str] = None):
    """监控装饰器：自动收集调用指标

    service_name 为空时使用实例的 provider_type（适配器方法上使用）。
    """

    def decorator(func):
        def _resolve_name(args: tuple) -> str:
            if service_name:
                return service_name
            provider_type = getattr(args[0], "provider_type", None) if args else None
            return getattr(provider_type, "value", None) or str(provider_type or func.__qualname__)

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                start_time = time.monotonic()
                success = False
                try:
                    result = await func(*args, **kwargs)
                    success = True
                    return result
                finally:
                    collector.record_call(
                        service_type,
                        _resolve_name(args),
                        success,
                        time.monotonic() - start_time,
                    )

            return async_wrapper

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            start_time = time.monotonic()
            success = False
            try:
                result = func(*args, **kwargs)
                success = True
                return result
            finally:
                collector.record_call(
                    service_type,
                    _resolve_name(args),
                    success,
                    time.monotonic() - start_time,
                )

        return sync_wrapper

    return decorator
