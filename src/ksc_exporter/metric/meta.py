"""
Metric metadata returned by the monitoring API
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MetricMeta:
    """Description of one metric available on an instance"""

    namespace: str
    metric_name: str
    unit: str = ""
    description: str = ""
    periods: tuple[int, ...] = ()
    dimensions: tuple[str, ...] = ("InstanceId",)
    statistics: tuple[str, ...] = field(default=())
