"""
Unit tests for the exporter and its Prometheus bridge
"""

import asyncio
import threading
import time

import pytest
from prometheus_client import generate_latest
from prometheus_client.openmetrics.exposition import generate_latest as openmetrics_latest
from prometheus_client.openmetrics.parser import text_string_to_metric_families

from ksc_exporter.errors import HandlerNotFoundError
from ksc_exporter.config.product import ExporterConfig
from ksc_exporter import server as server_module
from ksc_exporter.server import KscExporter, serve


@pytest.fixture
def exporter(exporter_conf, metric_repo, instance_repo, collector_settings, exporter_metrics) -> KscExporter:
    return KscExporter(
        exporter_conf,
        metric_repo,
        instance_repo_factory=lambda ns, conf: instance_repo,
        collector_settings=collector_settings,
        metrics=exporter_metrics,
    )


@pytest.mark.unit
@pytest.mark.asyncio
class TestKscExporter:
    """Test suite for KscExporter"""

    async def test_initialize_builds_collectors(self, exporter):
        await exporter.initialize()

        assert sorted(exporter.collectors) == ["KEC", "KS3"]
        assert exporter.reloaders["KEC"].reload_interval_seconds == 300.0
        assert exporter.collectors["KS3"].instance_cache is None

    async def test_initialize_fails_on_unknown_product(self, metric_repo, collector_settings, exporter_metrics):
        conf = ExporterConfig.from_dict({"products": [{"namespace": "UNKNOWN"}]})
        exporter = KscExporter(
            conf, metric_repo, collector_settings=collector_settings, metrics=exporter_metrics
        )

        with pytest.raises(HandlerNotFoundError):
            await exporter.initialize()

    async def test_scrape_gathers_all_products(self, exporter):
        await exporter.initialize()

        families = await exporter.scrape()

        # KS3 has no metrics for its bucket in the fake repository
        assert sorted(f.name for f in families) == [
            "ksc_kec_cpu_usage_average", "ksc_kec_mem_usage_average",
        ]
        for family in families:
            assert sorted(s.labels["instance_id"] for s in family.samples) == ["i-1", "i-2", "i-3"]

    async def test_collect_from_server_thread(self, exporter):
        await exporter.initialize()

        families = await asyncio.to_thread(lambda: list(exporter.collect()))

        assert len(families) == 2
        assert sum(len(f.samples) for f in families) == 6

    async def test_collect_on_loop_thread_is_refused(self, exporter):
        await exporter.initialize()

        with pytest.raises(RuntimeError):
            list(exporter.collect())

    async def test_collect_before_initialize(self, exporter):
        assert list(exporter.collect()) == []
        assert exporter.describe() == []

    async def test_exposition(self, exporter):
        await exporter.initialize()
        registry = exporter.metrics.registry
        registry.register(exporter)

        text = await asyncio.to_thread(generate_latest, registry)

        assert b'ksc_kec_cpu_usage_average{instance_id="i-1"} 1.0' in text
        assert b"ksc_exporter_reload_total" in text
        # One HELP/TYPE block per name even though each instance has its own Metric
        assert text.count(b"# TYPE ksc_kec_cpu_usage_average gauge") == 1
        assert text.count(b"# HELP ksc_kec_cpu_usage_average ") == 1
        registry.unregister(exporter)

    async def test_openmetrics_exposition_parses(self, exporter):
        await exporter.initialize()
        registry = exporter.metrics.registry
        registry.register(exporter)

        text = await asyncio.to_thread(openmetrics_latest, registry)
        families = {f.name: f for f in text_string_to_metric_families(text.decode())}

        cpu = families["ksc_kec_cpu_usage_average"]
        assert cpu.type == "gauge"
        assert sorted(s.labels["instance_id"] for s in cpu.samples) == ["i-1", "i-2", "i-3"]
        assert "ksc_kec_mem_usage_average" in families
        registry.unregister(exporter)

    async def test_start_and_stop(self, exporter):
        await exporter.initialize()

        exporter.start()
        assert all(r.is_running for r in exporter.reloaders.values())
        await exporter.stop()

        assert not any(r.is_running for r in exporter.reloaders.values())

    async def test_serve_until_stopped(self, exporter):
        await exporter.initialize()
        stop_event = asyncio.Event()

        task = asyncio.create_task(serve(exporter, "127.0.0.1", 0, stop_event))
        await asyncio.sleep(0.05)
        stop_event.set()
        await asyncio.wait_for(task, timeout=5)

        assert all(r.is_stopped for r in exporter.reloaders.values())

    async def test_shutdown_keeps_event_loop_responsive(self, exporter, monkeypatch):
        shutting_down = threading.Event()

        class SlowHttpServer:
            def shutdown(self):
                shutting_down.set()
                time.sleep(0.1)

        thread = threading.Thread(target=lambda: None)
        thread.start()
        monkeypatch.setattr(
            server_module, "start_http_server",
            lambda port, addr, registry: (SlowHttpServer(), thread),
        )
        await exporter.initialize()
        stop_event = asyncio.Event()
        ticks_during_shutdown = 0

        async def ticker():
            nonlocal ticks_during_shutdown
            while True:
                if shutting_down.is_set():
                    ticks_during_shutdown += 1
                await asyncio.sleep(0.005)

        ticking = asyncio.create_task(ticker())
        task = asyncio.create_task(serve(exporter, "127.0.0.1", 0, stop_event))
        await asyncio.sleep(0.02)
        stop_event.set()
        await asyncio.wait_for(task, timeout=5)
        ticking.cancel()

        assert ticks_during_shutdown >= 5
