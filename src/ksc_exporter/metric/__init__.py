"""
Metric package initialization.

Exports the metric model, query set, registry and the monitoring API
interface.
"""

from .meta import MetricMeta
from .metric import Metric, MetricConfig, Series, to_prom_name
from .query import Query, QuerySet
from .registry import MetricRegistry
from .repository import MetricRepository
from .sample import build_gauge_family, merge_families

__all__ = [
    "MetricMeta",
    "Metric",
    "MetricConfig",
    "Series",
    "to_prom_name",
    "Query",
    "QuerySet",
    "MetricRegistry",
    "MetricRepository",
    "build_gauge_family",
    "merge_families",
]
