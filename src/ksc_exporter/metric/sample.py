"""
Helpers turning fetched datapoints into publishable Prometheus samples
"""

from collections.abc import Iterable

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric as PromMetric

from .metric import Metric, Series


def build_gauge_family(
    metric: Metric,
    statistic: str,
    points: Iterable[tuple[Series, float]],
    timestamp: float | None = None,
) -> GaugeMetricFamily:
    """
    Build one gauge family for a metric statistic

    Args:
        metric: Metric the points belong to
        statistic: Statistic type the values were aggregated with
        points: (series, value) pairs
        timestamp: Optional sample timestamp in seconds

    Returns:
        GaugeMetricFamily with one sample per series
    """
    doc = metric.meta.description or f"{metric.config.namespace} {metric.name} {statistic}"
    if metric.config.unit:
        doc = f"{doc} ({metric.config.unit})"

    family = GaugeMetricFamily(metric.prom_name(statistic), doc, labels=metric.label_names)
    for series, value in points:
        family.add_metric(metric.label_values(series), value, timestamp=timestamp)
    return family


def merge_families(families: Iterable[PromMetric]) -> list[PromMetric]:
    """
    Merge families sharing a name into one family per name

    Each Metric covers a single instance, so a metric collected on several
    instances arrives as several families with the same name. The exposition
    formats allow one HELP/TYPE block per name, and prometheus_client writes
    families as given.

    Returns:
        New families in first-seen order; the inputs are not modified
    """
    merged: dict[str, PromMetric] = {}
    for family in families:
        target = merged.get(family.name)
        if target is None:
            target = PromMetric(family.name, family.documentation, family.type, family.unit)
            merged[family.name] = target
        target.samples.extend(family.samples)
    return list(merged.values())
