"""
Lock-guarded registry of metrics keyed by (metric name, instance id)
"""

import threading
from collections.abc import Callable

from .metric import Metric

MetricKey = tuple[str, str]


class MetricRegistry:
    """
    Concurrent map of metrics.

    Only atomic get-or-create and snapshot iteration are exposed; the lock
    is held for the dict access alone, never across a remote call.
    """

    def __init__(self) -> None:
        self._metrics: dict[MetricKey, Metric] = {}
        self._lock = threading.Lock()

    def get_or_create(self, key: MetricKey, factory: Callable[[], Metric]) -> tuple[Metric, bool]:
        """
        Return the metric stored under key, creating it with factory if absent

        Returns:
            (metric, created)
        """
        with self._lock:
            existing = self._metrics.get(key)
            if existing is not None:
                return existing, False
            metric = factory()
            self._metrics[key] = metric
            return metric, True

    def get(self, key: MetricKey) -> Metric | None:
        with self._lock:
            return self._metrics.get(key)

    def snapshot(self) -> list[Metric]:
        """Copy of all metrics in insertion order"""
        with self._lock:
            return list(self._metrics.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)

    def __contains__(self, key: MetricKey) -> bool:
        with self._lock:
            return key in self._metrics
