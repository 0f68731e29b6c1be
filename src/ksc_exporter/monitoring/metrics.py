"""
Self-monitoring metrics for KSC Exporter
"""

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
)

from ..config.settings import settings


class ExporterMetrics:
    """Prometheus metrics describing the exporter's own reload and scrape work"""

    def __init__(self, registry: CollectorRegistry | None = None, prefix: str | None = None):
        self.registry = registry or CollectorRegistry()
        self.prefix = prefix or settings.monitoring.metric_prefix
        self._init_prometheus_metrics()

    def _init_prometheus_metrics(self):
        p = self.prefix

        # Reload cycles
        self.reload_counter = Counter(
            f"{p}_reload_total",
            "Total number of product reload cycles",
            ["namespace", "status"],
            registry=self.registry,
        )

        self.reload_duration = Histogram(
            f"{p}_reload_duration_seconds",
            "Time spent discovering instances and building queries",
            ["namespace"],
            registry=self.registry,
            buckets=[0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 300.0],
        )

        self.instances = Gauge(
            f"{p}_instances",
            "Instances processed by the last reload cycle",
            ["namespace"],
            registry=self.registry,
        )

        self.queries = Gauge(
            f"{p}_queries",
            "Metric queries materialized by the last reload cycle",
            ["namespace"],
            registry=self.registry,
        )

        self.series = Gauge(
            f"{p}_series",
            "Series covered by the current query set",
            ["namespace"],
            registry=self.registry,
        )

        # Scrapes
        self.batch_errors = Counter(
            f"{p}_batch_errors_total",
            "Query batches whose fetch failed",
            ["namespace"],
            registry=self.registry,
        )

        self.scrape_duration = Histogram(
            f"{p}_scrape_duration_seconds",
            "Time spent fetching all query batches of a product",
            ["namespace"],
            registry=self.registry,
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
        )

        self.project_refresh_errors = Counter(
            f"{p}_project_refresh_errors_total",
            "Failed credential/project context refreshes",
            registry=self.registry,
        )

        self.app_info = Info(
            f"{p}_build",
            "Exporter build information",
            registry=self.registry,
        )
        self.app_info.info({
            "version": settings.app_version,
            "environment": settings.environment.value,
        })

    def record_reload(self, namespace: str, duration: float, success: bool):
        status = "success" if success else "failure"
        self.reload_counter.labels(namespace=namespace, status=status).inc()
        self.reload_duration.labels(namespace=namespace).observe(duration)

    def record_query_set(self, namespace: str, instance_count: int, query_count: int, series_count: int):
        self.instances.labels(namespace=namespace).set(instance_count)
        self.queries.labels(namespace=namespace).set(query_count)
        self.series.labels(namespace=namespace).set(series_count)

    def record_batch_error(self, namespace: str):
        self.batch_errors.labels(namespace=namespace).inc()

    def record_scrape(self, namespace: str, duration: float):
        self.scrape_duration.labels(namespace=namespace).observe(duration)

    def record_project_refresh_error(self):
        self.project_refresh_errors.inc()
