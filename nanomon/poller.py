"""Periodic snapshot collection into a SnapshotStore."""

import asyncio
import contextlib
import logging

from nanomon.common.exceptions import CollectionError
from nanomon.monitoring import MonitoringService
from nanomon.store import SnapshotStore

logger = logging.getLogger(__name__)


class SnapshotPoller:
    """Collects a snapshot at regular intervals and stores it.

    A failed collection is logged and skipped; the next tick tries again.

    Parameters
    ----------
    service : MonitoringService
        Service producing snapshots.
    store : SnapshotStore
        Destination for collected snapshots.
    interval_seconds : float
        Interval between collections (default: 10.0).
    """

    def __init__(
        self,
        service: MonitoringService,
        store: SnapshotStore,
        interval_seconds: float = 10.0,
    ):
        self.service = service
        self.store = store
        self.interval = interval_seconds
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the polling loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info(f"Snapshot poller started (interval {self.interval}s)")

    async def stop(self) -> None:
        """Stop the polling loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
            logger.info("Snapshot poller stopped")

    async def poll_once(self) -> bool:
        """Collect and store one snapshot.

        Returns
        -------
        bool
            True if a snapshot was stored.
        """
        try:
            snapshot = await self.service.collect_all()
        except CollectionError as e:
            logger.warning(f"Snapshot collection failed: {e.message}")
            return False

        self.store.store(snapshot)
        return True

    async def _poll_loop(self) -> None:
        """Main loop that collects and stores snapshots."""
        while self._running:
            await self.poll_once()
            await asyncio.sleep(self.interval)
