"""
Interface of the remote monitoring API client
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from prometheus_client.metrics_core import Metric as PromMetric

from .meta import MetricMeta

if TYPE_CHECKING:
    from .query import Query


@runtime_checkable
class MetricRepository(Protocol):
    """Lists metric metadata and fetches samples for batches of queries"""

    async def list_metrics(self, namespace: str, instance_id: str) -> list[MetricMeta]:
        ...

    async def fetch_batch(self, queries: list[Query]) -> list[PromMetric]:
        ...
