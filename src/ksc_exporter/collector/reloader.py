"""
Background reloader re-running product discovery on a fixed interval
"""

import asyncio

from ..utils.async_utils import wait_for_stop
from ..utils.logging import get_logger
from .product import ProductCollector

logger = get_logger(__name__)


class ProductCollectorReloader:
    """
    Periodically calls load_metrics_by_product_conf on a collector.

    The first reload happens one full interval after start, since building
    the collector already ran cycle zero. stop() is cooperative: it is
    observed between reloads and never interrupts one in progress.
    """

    def __init__(self, collector: ProductCollector, reload_interval_seconds: float):
        self.collector = collector
        self.reload_interval_seconds = reload_interval_seconds
        self.reload_count = 0
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.logger = logger.bind(namespace=collector.namespace)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_stopped(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> None:
        """Schedule the reload loop on the running event loop"""
        if self._task is not None:
            return
        self._task = asyncio.create_task(
            self.run(), name=f"reloader-{self.collector.namespace}"
        )

    def stop(self) -> None:
        """Request the loop to end; calling it again has no effect"""
        self._stop_event.set()

    async def wait(self) -> None:
        if self._task is not None:
            await self._task

    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.reload_interval_seconds

        # cycle zero ran at construction
        if await wait_for_stop(self._stop_event, self.reload_interval_seconds):
            return

        while True:
            self.logger.info("Start reload product metadata")
            try:
                await self.collector.load_metrics_by_product_conf()
            except Exception as e:
                self.logger.error("Reload product error", error=str(e), error_type=type(e).__name__)
            self.reload_count += 1
            self.logger.info("Complete reload product metadata")

            if self._stop_event.is_set():
                return

            # Fixed-rate schedule; ticks missed by a slow reload are dropped
            now = loop.time()
            while next_tick <= now:
                next_tick += self.reload_interval_seconds
            if await wait_for_stop(self._stop_event, next_tick - now):
                return
