"""
Product collector: discovery, metric construction and scrape dispatch
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any, Protocol

from ..config.product import ExporterConfig, ProductConfig
from ..config.settings import CollectorSettings, settings
from ..errors import ConfigError, MetricConfigError, SeriesLoadError
from ..instance.base import InstanceRepository, KscInstance
from ..instance.cache import InstanceCache
from ..metric.meta import MetricMeta
from ..metric.metric import Metric, MetricConfig
from ..metric.query import Query, QuerySet
from ..metric.registry import MetricRegistry
from ..metric.repository import MetricRepository
from ..monitoring.metrics import ExporterMetrics
from ..utils.async_utils import gather_settled
from ..utils.logging import get_logger
from .handler import ProductHandler, get_handler_factory

logger = get_logger(__name__)


class ProjectRefresher(Protocol):
    """Re-validates credentials/project context before discovery"""

    async def refresh(self) -> None:
        ...


class SampleSink(Protocol):
    """Write side of the stream samples are published onto"""

    async def put(self, sample: Any) -> None:
        ...


InstanceRepositoryFactory = Callable[[str, ExporterConfig], InstanceRepository]


class ProductCollector:
    """
    Collects every metric of one cloud product.

    load_metrics_by_product_conf() rebuilds the metric registry and the
    query set; collect() fetches the current query set in concurrent
    batches. The two may run at the same time: the query set is published
    by reassignment once a reload has fully built it.
    """

    def __init__(
        self,
        namespace: str,
        metric_repo: MetricRepository,
        exporter_conf: ExporterConfig,
        instance_cache: InstanceCache | None = None,
        project_refresher: ProjectRefresher | None = None,
        collector_settings: CollectorSettings | None = None,
        metrics: ExporterMetrics | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.namespace = namespace.upper()
        self.metric_repo = metric_repo
        self.exporter_conf = exporter_conf
        self.product_conf: ProductConfig = exporter_conf.get_product_config(self.namespace)
        self.instance_cache = instance_cache
        self.project_refresher = project_refresher
        self.settings = collector_settings or settings.collector
        self.metrics = metrics or ExporterMetrics()
        self._clock = clock

        self.registry = MetricRegistry()
        self.queries = QuerySet()
        self.handler: ProductHandler | None = None
        self.logger = logger.bind(namespace=self.namespace)

    @classmethod
    async def create(
        cls,
        namespace: str,
        metric_repo: MetricRepository,
        exporter_conf: ExporterConfig,
        instance_repo_factory: InstanceRepositoryFactory | None = None,
        **kwargs,
    ) -> ProductCollector:
        """
        Build a collector and run its first reload cycle

        Raises:
            HandlerNotFoundError: No handler registered for the namespace
            ConfigError: Product config missing or no instance repository
                for a namespace that supports discovery
        """
        namespace = namespace.upper()
        factory = get_handler_factory(namespace)
        product_conf = exporter_conf.get_product_config(namespace)
        collector_settings = kwargs.get("collector_settings") or settings.collector

        instance_cache = None
        if collector_settings.supports_instance_discovery(namespace):
            if instance_repo_factory is None:
                raise ConfigError(f"no instance repository for namespace={namespace}")
            instance_cache = InstanceCache(
                instance_repo_factory(namespace, exporter_conf),
                namespace,
                product_conf.reload_interval_seconds,
            )

        collector = cls(namespace, metric_repo, exporter_conf, instance_cache=instance_cache, **kwargs)
        collector.handler = factory(collector)
        await collector.load_metrics_by_product_conf()
        return collector

    @property
    def batch_size(self) -> int:
        return self.settings.batch_size_for(self.namespace)

    async def collect(self, sink: SampleSink) -> int:
        """
        Fetch every query of the current set and put the samples onto sink

        Batches run concurrently; a failed batch is logged and contributes
        nothing while the others complete. Returns once all batches are done.

        Returns:
            Number of samples emitted
        """
        batches = self.queries.split_by_batch(self.batch_size)
        start_time = time.monotonic()

        results = await gather_settled([self._fetch_batch(batch, sink) for batch in batches])

        emitted = 0
        for batch, result in zip(batches, results):
            if isinstance(result, Exception):
                self.logger.error(
                    "Get samples fail",
                    error=str(result),
                    error_type=type(result).__name__,
                    batch_size=len(batch),
                    metric_names=sorted({q.metric.name for q in batch}),
                )
                self.metrics.record_batch_error(self.namespace)
            elif isinstance(result, BaseException):
                raise result
            else:
                emitted += result

        self.metrics.record_scrape(self.namespace, time.monotonic() - start_time)
        return emitted

    async def _fetch_batch(self, batch: list[Query], sink: SampleSink) -> int:
        samples = await self.metric_repo.fetch_batch(batch)
        for sample in samples:
            await sink.put(sample)
        return len(samples)

    async def load_metrics_by_product_conf(self) -> None:
        """
        Run one reload cycle: discover instances, build or reuse metrics,
        resolve their series and publish a new query set

        Per-instance and per-metric failures are logged and skipped.

        Raises:
            ConfigError: Product config no longer present
            Exception: Instances could not be obtained
        """
        if self.handler is None:
            raise RuntimeError(f"collector for {self.namespace} has no handler")

        cycle_started_at = self._clock()
        start_time = time.monotonic()
        self.logger.info("Start load metrics")

        try:
            product_conf = self.exporter_conf.get_product_config(self.namespace)
            self.product_conf = product_conf

            await self._refresh_project_context()

            instances = self._limit_instances(await self.handler.get_instances(), product_conf)
            await self._load_metrics(instances, product_conf)
            queries = self._build_queries(cycle_started_at)
        except Exception:
            self.metrics.record_reload(self.namespace, time.monotonic() - start_time, success=False)
            raise

        self.queries = queries
        self.metrics.record_reload(self.namespace, time.monotonic() - start_time, success=True)
        self.metrics.record_query_set(self.namespace, len(instances), len(queries), queries.series_count)
        self.logger.info(
            "Init new query",
            instance_num=len(instances),
            metric_num=len(queries),
            new_series_num=queries.series_count,
        )

    async def _refresh_project_context(self) -> None:
        if self.project_refresher is None:
            return
        try:
            await self.project_refresher.refresh()
        except Exception as e:
            # Discovery continues with the previous project context
            self.logger.warning("Reload project context fail", error=str(e))
            self.metrics.record_project_refresh_error()

    def _limit_instances(self, instances: list[KscInstance], product_conf: ProductConfig) -> list[KscInstance]:
        if not self.settings.is_multi_dimension(self.namespace):
            return instances

        max_instances = product_conf.max_instances or self.settings.default_support_instances
        if len(instances) > max_instances:
            self.logger.warning(
                "Loaded instances exceeds the maximum load of a single product",
                loaded_instances=len(instances),
                only_load_instances=max_instances,
            )
            return instances[:max_instances]
        return instances

    async def _load_metrics(self, instances: list[KscInstance], product_conf: ProductConfig) -> None:
        for ins in instances:
            try:
                all_meta = await self.metric_repo.list_metrics(self.namespace, ins.instance_id)
            except Exception as e:
                self.logger.warning(
                    "Request metric list fail", error=str(e), instance_id=ins.instance_id
                )
                continue

            for meta in all_meta:
                if not product_conf.is_metric_wanted(meta.metric_name):
                    continue
                await self._load_metric(meta, ins, product_conf)

    async def _load_metric(self, meta: MetricMeta, ins: KscInstance, product_conf: ProductConfig) -> None:
        log = self.logger.bind(instance_id=ins.instance_id, metric_name=meta.metric_name)
        try:
            metric, _ = self.registry.get_or_create(
                (meta.metric_name, ins.instance_id),
                lambda: Metric(
                    meta,
                    MetricConfig.from_product_config(product_conf, meta),
                    ins.instance_id,
                    clock=self._clock,
                ),
            )
        except MetricConfigError as e:
            log.warning("Create metric fail", error=str(e))
            return

        try:
            series = await self.handler.get_series_by_instances(metric, [ins])
        except Exception as e:
            log.error("Create metric series err", error=str(e))
            return

        log.debug("Found remote instances", count=len(series))

        try:
            metric.load_series(series)
        except SeriesLoadError as e:
            log.error("Load metric series err", error=str(e))

    def _build_queries(self, cycle_started_at: float) -> QuerySet:
        window = self.settings.recency_window_seconds
        return QuerySet(
            Query(m, self.metric_repo)
            for m in self.registry.snapshot()
            if m.is_fresh(cycle_started_at, window)
        )
