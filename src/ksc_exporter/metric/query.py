"""
Queries and the per-cycle query set
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .metric import Metric

if TYPE_CHECKING:
    from .repository import MetricRepository


@dataclass(frozen=True)
class Query:
    """Fetch work for one metric"""

    metric: Metric
    repository: MetricRepository

    @property
    def series_count(self) -> int:
        return len(self.metric.series)


class QuerySet:
    """Immutable ordered collection of queries, rebuilt wholesale each reload"""

    def __init__(self, queries: Iterable[Query] = ()):
        self._queries: tuple[Query, ...] = tuple(queries)

    def split_by_batch(self, size: int) -> list[list[Query]]:
        """Split into consecutive batches of at most size queries"""
        if size < 1:
            raise ValueError(f"batch size must be positive, got {size}")
        return [
            list(self._queries[i : i + size])
            for i in range(0, len(self._queries), size)
        ]

    @property
    def series_count(self) -> int:
        return sum(q.series_count for q in self._queries)

    def __len__(self) -> int:
        return len(self._queries)

    def __iter__(self) -> Iterator[Query]:
        return iter(self._queries)

    def __getitem__(self, index: int) -> Query:
        return self._queries[index]
