"""Bounded in-memory history of host snapshots.

Snapshots are immutable, so readers receive shared handles that stay valid
after the store evicts them.
"""

import logging
import threading
from collections import deque
from datetime import UTC, datetime, timedelta

from nanomon.common.models import HostSnapshot

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 360  # one hour at a 10 second poll interval


class SnapshotStore:
    """
    Fixed-capacity FIFO store of host snapshots.

    Writers and readers may run on different threads; every operation is
    atomic with respect to the others.

    Parameters
    ----------
    capacity : int
        Maximum number of snapshots retained (must be >= 1)

    Raises
    ------
    ValueError
        If capacity is less than 1

    Examples
    --------
    >>> store = SnapshotStore(capacity=2)
    >>> for name in ("a", "b", "c"):
    ...     store.store(HostSnapshot(hostname=name))
    >>> [s.hostname for s in store.get_history(timedelta(hours=1))]
    ['b', 'c']
    >>> store.get_latest().hostname
    'c'
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"Store capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._snapshots: deque[HostSnapshot] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def store(self, snapshot: HostSnapshot) -> None:
        """Append a snapshot, evicting the oldest one when full."""
        with self._lock:
            self._snapshots.append(snapshot)
        logger.debug(f"Stored snapshot from {snapshot.timestamp.isoformat()}")

    def get_latest(self) -> HostSnapshot | None:
        """Return the most recently stored snapshot, or None when empty."""
        with self._lock:
            return self._snapshots[-1] if self._snapshots else None

    def get_history(self, window: timedelta | float) -> list[HostSnapshot]:
        """
        Return snapshots captured within ``window`` of now, oldest first.

        Parameters
        ----------
        window : timedelta or float
            Look-back duration (seconds when given as a number)

        Returns
        -------
        list[HostSnapshot]
            Snapshots with ``timestamp >= now - window`` in insertion order
        """
        if not isinstance(window, timedelta):
            window = timedelta(seconds=window)
        cutoff = datetime.now(UTC) - window

        with self._lock:
            snapshots = list(self._snapshots)
        return [s for s in snapshots if s.timestamp >= cutoff]

    def clear(self) -> None:
        """Drop all stored snapshots."""
        with self._lock:
            self._snapshots.clear()

    def len(self) -> int:
        """Number of snapshots currently held."""
        with self._lock:
            return len(self._snapshots)

    def __len__(self) -> int:
        return self.len()

    def is_empty(self) -> bool:
        return self.len() == 0
