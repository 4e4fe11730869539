"""Periodic eviction of old cache entries."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from core.config import CacheConfig
from core.ports import CacheStorePort

LOGGER = logging.getLogger(__name__)


class CacheEvictor:
    """Deletes cache entries older than the retention window.

    ``run_once`` performs a single sweep and can be called on its own (tests,
    the ``clean`` CLI command). ``run`` owns the periodic loop and stops as
    soon as ``stop`` is set or the task is cancelled.
    """

    def __init__(
        self,
        storage: CacheStorePort,
        config: CacheConfig,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._config = config
        self._clock = clock

    def cutoff(self) -> int:
        """Unix timestamp at or before which entries are evicted."""

        return int(self._clock()) - self._config.keep_duration

    def run_once(self) -> int:
        """Delete every entry dated at or before the cutoff; return the count."""

        cutoff = self.cutoff()
        deleted = self._storage.delete_entries_before(cutoff)
        LOGGER.info("Cache cleanup completed: deleted=%s, cutoff=%s", deleted, cutoff)
        return deleted

    def _sweep(self) -> None:
        try:
            self.run_once()
        except Exception:
            LOGGER.exception("Cache cleanup failed, retrying next tick")

    async def run(self, stop: Optional[asyncio.Event] = None) -> None:
        """Sweep now, then every ``clean_interval`` seconds until stopped."""

        stop = stop or asyncio.Event()
        LOGGER.info(
            "Starting cache evictor (interval=%ss, keep=%ss)",
            self._config.clean_interval,
            self._config.keep_duration,
        )
        try:
            while not stop.is_set():
                self._sweep()
                try:
                    await asyncio.wait_for(stop.wait(), timeout=self._config.clean_interval)
                except asyncio.TimeoutError:
                    continue
        finally:
            LOGGER.info("Stopping cache evictor")
