"""
Metric, its collection config and the series attached to it
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from ..config.product import ProductConfig
from ..errors import MetricConfigError, SeriesLoadError
from .meta import MetricMeta

_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9_]")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def to_prom_name(*parts: str) -> str:
    """Join parts into a lowercase Prometheus-safe name"""
    raw = "_".join(_CAMEL_BOUNDARY.sub("_", p) for p in parts if p)
    name = _INVALID_NAME_CHARS.sub("_", raw.lower())
    name = re.sub(r"_+", "_", name).strip("_")
    if name and name[0].isdigit():
        name = f"_{name}"
    return name


@dataclass(frozen=True)
class Series:
    """One concrete timeseries selector of a metric"""

    metric_name: str
    instance_id: str
    dimensions: dict[str, str] = field(default_factory=dict, hash=False)

    @property
    def series_id(self) -> str:
        dims = ",".join(f"{k}={v}" for k, v in sorted(self.dimensions.items()))
        return f"{self.metric_name}|{self.instance_id}|{dims}"


@dataclass
class MetricConfig:
    """Collection parameters of one metric"""

    namespace: str
    metric_name: str
    unit: str
    period_seconds: int
    statistic_types: list[str]
    dimensions: list[str]
    extra_labels: dict[str, str] = field(default_factory=dict)
    excludable: bool = True

    @classmethod
    def from_product_config(cls, product_conf: ProductConfig, meta: MetricMeta) -> MetricConfig:
        if not meta.metric_name:
            raise MetricConfigError("metric metadata without a name")

        period = product_conf.period_seconds
        if meta.periods and period not in meta.periods:
            raise MetricConfigError(
                f"period {period}s not supported by {meta.metric_name}, "
                f"supported={list(meta.periods)}"
            )

        statistics = list(product_conf.statistic_types)
        if meta.statistics:
            statistics = [s for s in statistics if s in meta.statistics]
            if not statistics:
                raise MetricConfigError(
                    f"none of {product_conf.statistic_types} supported by {meta.metric_name}"
                )

        return cls(
            namespace=product_conf.namespace,
            metric_name=meta.metric_name,
            unit=meta.unit,
            period_seconds=period,
            statistic_types=statistics,
            dimensions=list(meta.dimensions),
            extra_labels=dict(product_conf.extra_labels),
            excludable=meta.metric_name.lower() not in product_conf.only_include_metrics,
        )


class Metric:
    """
    A named signal scoped to one instance.

    Identified by (metric name, instance id). The series cache and
    load_time_at survive across reload cycles because the collector reuses
    the same object whenever the key is seen again.
    """

    def __init__(
        self,
        meta: MetricMeta,
        config: MetricConfig,
        instance_id: str,
        clock: Callable[[], float] = time.time,
    ):
        self.meta = meta
        self.config = config
        self.instance_id = instance_id
        self.series: dict[str, Series] = {}
        self.load_time_at: float | None = None
        self._clock = clock

    @property
    def name(self) -> str:
        return self.meta.metric_name

    @property
    def key(self) -> tuple[str, str]:
        return (self.meta.metric_name, self.instance_id)

    def prom_name(self, statistic: str) -> str:
        return to_prom_name("ksc", self.config.namespace, self.meta.metric_name, statistic)

    @property
    def label_names(self) -> list[str]:
        names = ["instance_id"]
        for dim in self.config.dimensions:
            label = to_prom_name(dim)
            if label not in names:
                names.append(label)
        names.extend(k for k in sorted(self.config.extra_labels) if k not in names)
        return names

    def label_values(self, series: Series) -> list[str]:
        by_label = {to_prom_name(k): v for k, v in series.dimensions.items()}
        by_label["instance_id"] = series.instance_id
        values = []
        for label in self.label_names:
            if label in by_label:
                values.append(str(by_label[label]))
            else:
                values.append(self.config.extra_labels.get(label, ""))
        return values

    def load_series(self, series: Iterable[Series]) -> None:
        """Merge resolved series into the cache and stamp the load time"""
        incoming = list(series)
        for s in incoming:
            if s.metric_name != self.meta.metric_name:
                raise SeriesLoadError(
                    f"series of {s.metric_name} cannot be loaded into {self.meta.metric_name}"
                )
            if s.instance_id != self.instance_id:
                raise SeriesLoadError(
                    f"series of instance {s.instance_id} cannot be loaded into "
                    f"{self.meta.metric_name} of instance {self.instance_id}"
                )

        for s in incoming:
            self.series[s.series_id] = s
        self.load_time_at = self._clock()

    def is_fresh(self, cycle_started_at: float, window_seconds: float) -> bool:
        if self.load_time_at is None:
            return False
        return cycle_started_at - self.load_time_at < window_seconds

    def __repr__(self) -> str:
        return f"Metric(name={self.name!r}, instance_id={self.instance_id!r}, series={len(self.series)})"
