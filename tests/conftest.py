"""
Test configuration and fixtures for KSC Exporter
"""

import pytest
from prometheus_client import CollectorRegistry

from ksc_exporter.config.product import ExporterConfig
from ksc_exporter.config.settings import CollectorSettings
from ksc_exporter.instance.base import KscInstance
from ksc_exporter.metric.meta import MetricMeta
from ksc_exporter.metric.sample import build_gauge_family
from ksc_exporter.monitoring.metrics import ExporterMetrics


class FakeClock:
    """Manually advanced wall clock"""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeInstanceRepository:
    """In-memory instance listing"""

    def __init__(self, instances: list[KscInstance]):
        self.instances = list(instances)
        self.error: Exception | None = None
        self.calls = 0

    async def list_instances(self, namespace: str) -> list[KscInstance]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.instances)


class FakeMetricRepository:
    """In-memory monitoring API returning one gauge family per query"""

    def __init__(self, metas_by_instance: dict[str, list[MetricMeta]]):
        self.metas_by_instance = metas_by_instance
        self.failing_instances: set[str] = set()
        self.failing_metrics: set[str] = set()
        self.listed: list[str] = []
        self.fetched_batches: list[list] = []

    async def list_metrics(self, namespace: str, instance_id: str) -> list[MetricMeta]:
        self.listed.append(instance_id)
        if instance_id in self.failing_instances:
            raise RuntimeError(f"list metrics failed for {instance_id}")
        return list(self.metas_by_instance.get(instance_id, []))

    async def fetch_batch(self, queries):
        self.fetched_batches.append(list(queries))
        if any(q.metric.name in self.failing_metrics for q in queries):
            raise RuntimeError("fetch failed")
        return [
            build_gauge_family(
                q.metric,
                q.metric.config.statistic_types[0],
                [(s, 1.0) for s in q.metric.series.values()],
            )
            for q in queries
        ]


def make_meta(name: str, namespace: str = "KEC", **kwargs) -> MetricMeta:
    return MetricMeta(namespace=namespace, metric_name=name, **kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def collector_settings() -> CollectorSettings:
    return CollectorSettings(
        query_metric_batch_size=50,
        ks3_query_metric_batch_size=10,
        default_support_instances=100,
        recency_window_seconds=60.0,
    )


@pytest.fixture
def exporter_metrics() -> ExporterMetrics:
    return ExporterMetrics(registry=CollectorRegistry())


@pytest.fixture
def exporter_conf() -> ExporterConfig:
    return ExporterConfig.from_dict({
        "products": [
            {
                "namespace": "KEC",
                "exclude_metrics": ["Disk.Read"],
                "reload_interval_minutes": 5,
            },
            {
                "namespace": "KS3",
                "only_include_instances": ["bucket-a"],
            },
        ]
    })


@pytest.fixture
def instances() -> list[KscInstance]:
    return [KscInstance(instance_id=f"i-{n}") for n in range(1, 4)]


@pytest.fixture
def instance_repo(instances) -> FakeInstanceRepository:
    return FakeInstanceRepository(instances)


@pytest.fixture
def metric_repo(instances) -> FakeMetricRepository:
    return FakeMetricRepository({
        ins.instance_id: [make_meta("cpu.usage"), make_meta("mem.usage"), make_meta("disk.read")]
        for ins in instances
    })


@pytest.fixture
def make_collector(metric_repo, exporter_conf, instance_repo, collector_settings, exporter_metrics, clock):
    """Factory building a ProductCollector over the fakes"""
    from ksc_exporter.collector.product import ProductCollector

    async def _make(namespace: str = "KEC", conf: ExporterConfig | None = None, **overrides):
        kwargs = {
            "instance_repo_factory": lambda ns, c: instance_repo,
            "collector_settings": collector_settings,
            "metrics": exporter_metrics,
            "clock": clock,
        }
        kwargs.update(overrides)
        return await ProductCollector.create(namespace, metric_repo, conf or exporter_conf, **kwargs)

    return _make


def pytest_configure(config):
    """Configure pytest markers"""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
