"""
Exporter wiring: one collector and reloader per product, exposed to
Prometheus through a custom collector
"""

import asyncio
import signal
from collections.abc import Iterator

from prometheus_client import start_http_server
from prometheus_client.metrics_core import Metric as PromMetric
from prometheus_client.registry import Collector

from .collector.product import (
    InstanceRepositoryFactory,
    ProductCollector,
    ProjectRefresher,
)
from .collector.reloader import ProductCollectorReloader
from .config.product import ExporterConfig
from .config.settings import CollectorSettings, settings
from .metric.repository import MetricRepository
from .metric.sample import merge_families
from .monitoring.metrics import ExporterMetrics
from .utils.async_utils import gather_settled
from .utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


class _ListSink:
    def __init__(self):
        self.samples: list[PromMetric] = []

    async def put(self, sample: PromMetric) -> None:
        self.samples.append(sample)


class KscExporter(Collector):
    """Owns every product collector and serves their samples to Prometheus.

    Attributes:
        collectors: ProductCollector by namespace
        reloaders: ProductCollectorReloader by namespace
        metrics: self-monitoring metrics, registered on the exposition registry
    """

    def __init__(
        self,
        exporter_conf: ExporterConfig,
        metric_repo: MetricRepository,
        instance_repo_factory: InstanceRepositoryFactory | None = None,
        project_refresher: ProjectRefresher | None = None,
        collector_settings: CollectorSettings | None = None,
        metrics: ExporterMetrics | None = None,
    ):
        self.exporter_conf = exporter_conf
        self.metric_repo = metric_repo
        self.instance_repo_factory = instance_repo_factory
        self.project_refresher = project_refresher
        self.collector_settings = collector_settings or settings.collector
        self.metrics = metrics or ExporterMetrics()
        self.collectors: dict[str, ProductCollector] = {}
        self.reloaders: dict[str, ProductCollectorReloader] = {}
        self._loop: asyncio.AbstractEventLoop | None = None

    async def initialize(self) -> None:
        """Build a collector per configured product; any failure is fatal"""
        self._loop = asyncio.get_running_loop()

        for product in self.exporter_conf.products:
            collector = await ProductCollector.create(
                product.namespace,
                self.metric_repo,
                self.exporter_conf,
                instance_repo_factory=self.instance_repo_factory,
                project_refresher=self.project_refresher,
                collector_settings=self.collector_settings,
                metrics=self.metrics,
            )
            self.collectors[product.namespace] = collector
            self.reloaders[product.namespace] = ProductCollectorReloader(
                collector, product.reload_interval_seconds
            )

        logger.info("Exporter initialized", namespaces=sorted(self.collectors))

    def start(self) -> None:
        for namespace, collector in self.collectors.items():
            if collector.instance_cache is not None:
                collector.instance_cache.start()
            self.reloaders[namespace].start()

    async def stop(self) -> None:
        for reloader in self.reloaders.values():
            reloader.stop()
        await gather_settled([r.wait() for r in self.reloaders.values()])
        await gather_settled([
            c.instance_cache.stop() for c in self.collectors.values()
            if c.instance_cache is not None
        ])
        logger.info("Exporter stopped")

    async def scrape(self) -> list[PromMetric]:
        """Collect all products concurrently on the event loop, one family per metric name"""
        sink = _ListSink()
        namespaces = list(self.collectors)
        results = await gather_settled([self.collectors[ns].collect(sink) for ns in namespaces])
        for namespace, result in zip(namespaces, results):
            if isinstance(result, Exception):
                logger.error("Collect product fail", namespace=namespace, error=str(result))
        return merge_families(sink.samples)

    def collect(self) -> Iterator[PromMetric]:
        """Called by prometheus_client from the HTTP server thread"""
        if self._loop is None:
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            raise RuntimeError("collect() would block the event loop, await scrape() instead")

        future = asyncio.run_coroutine_threadsafe(self.scrape(), self._loop)
        yield from future.result()

    def describe(self) -> list[PromMetric]:
        # Registering must not trigger a scrape
        return []


async def serve(exporter: KscExporter, host: str, port: int, stop_event: asyncio.Event) -> None:
    """Expose the exporter over HTTP until stop_event is set"""
    registry = exporter.metrics.registry
    registry.register(exporter)

    httpd, thread = start_http_server(port, addr=host, registry=registry)
    logger.info("Serving metrics", host=host, port=port)

    exporter.start()
    try:
        await stop_event.wait()
    finally:
        await exporter.stop()
        await asyncio.to_thread(httpd.shutdown)
        await asyncio.to_thread(thread.join, 5)
        registry.unregister(exporter)


async def run(
    metric_repo: MetricRepository,
    instance_repo_factory: InstanceRepositoryFactory | None = None,
    project_refresher: ProjectRefresher | None = None,
) -> None:
    """
    Exporter entry point

    The monitoring and instance API clients are supplied by the caller;
    everything else comes from settings and the configured YAML file.
    """
    setup_logging()
    logger.info("Starting KSC Exporter...", version=settings.app_version)

    exporter_conf = ExporterConfig.from_yaml(settings.config_file)
    exporter = KscExporter(
        exporter_conf,
        metric_repo,
        instance_repo_factory=instance_repo_factory,
        project_refresher=project_refresher,
    )
    await exporter.initialize()

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    await serve(exporter, settings.host, settings.port, stop_event)
