"""
Instance cache serving the last successful listing between reloads
"""

import asyncio
import time
from collections.abc import Callable

from ..utils.async_utils import wait_for_stop
from ..utils.logging import get_logger
from .base import InstanceRepository, KscInstance

logger = get_logger(__name__)


class InstanceCache:
    """
    Wraps an InstanceRepository for one namespace.

    Readers get the last published snapshot. A background task re-lists
    every reload interval and swaps the snapshot in one assignment; a
    failed refresh keeps the previous snapshot. Only a cold cache, which
    has nothing to serve yet, waits on the repository and sees its error.
    """

    def __init__(
        self,
        repository: InstanceRepository,
        namespace: str,
        reload_interval_seconds: float,
        clock: Callable[[], float] = time.time,
    ):
        self.repository = repository
        self.namespace = namespace
        self.reload_interval_seconds = reload_interval_seconds
        self._clock = clock
        self._snapshot: tuple[KscInstance, ...] | None = None
        self.last_loaded_at: float | None = None
        self._task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None
        self.logger = logger.bind(namespace=namespace)

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None

    async def list_instances(self) -> list[KscInstance]:
        """Return the current snapshot, loading it first if the cache is cold"""
        snapshot = self._snapshot
        if snapshot is None:
            snapshot = await self._load()
        return list(snapshot)

    async def refresh(self) -> bool:
        """Re-list instances; on failure keep serving the previous snapshot"""
        try:
            await self._load()
        except Exception as e:
            self.logger.warning(
                "Instance refresh failed, keeping previous snapshot",
                error=str(e),
                cached_instances=len(self._snapshot or ()),
            )
            return False
        return True

    async def _load(self) -> tuple[KscInstance, ...]:
        instances = await self.repository.list_instances(self.namespace)
        snapshot = tuple(instances)
        self._snapshot = snapshot
        self.last_loaded_at = self._clock()
        self.logger.info("Instances reloaded", instance_count=len(snapshot))
        return snapshot

    def start(self) -> None:
        """Start the periodic refresh task on the running loop"""
        if self._task is not None and not self._task.done():
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(
            self._run(), name=f"instance-cache-{self.namespace}"
        )

    async def _run(self) -> None:
        while not await wait_for_stop(self._stop_event, self.reload_interval_seconds):
            await self.refresh()

    async def stop(self) -> None:
        """Stop the refresh task, letting a refresh in progress finish"""
        if self._task is None:
            return
        self._stop_event.set()
        task, self._task = self._task, None
        await task
