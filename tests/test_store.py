"""Tests for store module."""

import threading
from datetime import UTC, datetime, timedelta

import pytest

from nanomon.common.models import HostSnapshot
from nanomon.store import DEFAULT_CAPACITY, SnapshotStore


def snapshot(name: str, age_seconds: float = 0.0) -> HostSnapshot:
    """Create a snapshot captured ``age_seconds`` ago."""
    return HostSnapshot(
        hostname=name,
        timestamp=datetime.now(UTC) - timedelta(seconds=age_seconds),
    )


class TestSnapshotStoreInit:
    """Tests for SnapshotStore construction."""

    def test_default_capacity(self):
        store = SnapshotStore()
        assert store.capacity == DEFAULT_CAPACITY == 360
        assert store.is_empty()

    @pytest.mark.parametrize("capacity", [0, -1])
    def test_rejects_non_positive_capacity(self, capacity):
        with pytest.raises(ValueError):
            SnapshotStore(capacity=capacity)


class TestStoreAndLatest:
    """Tests for store/get_latest."""

    def test_empty_store_has_no_latest(self):
        assert SnapshotStore().get_latest() is None

    def test_latest_is_last_stored(self):
        store = SnapshotStore(capacity=5)
        store.store(snapshot("a"))
        store.store(snapshot("b"))
        assert store.get_latest().hostname == "b"

    def test_evicts_oldest_when_full(self):
        store = SnapshotStore(capacity=3)
        for i in range(1, 6):
            store.store(snapshot(f"#{i}"))

        assert len(store) == 3
        assert store.len() == 3
        history = store.get_history(timedelta(hours=1))
        assert [s.hostname for s in history] == ["#3", "#4", "#5"]

    def test_length_never_exceeds_capacity(self):
        store = SnapshotStore(capacity=2)
        for i in range(10):
            store.store(snapshot(str(i)))
            assert len(store) <= 2

    def test_evicted_handle_stays_valid(self):
        store = SnapshotStore(capacity=1)
        first = snapshot("first")
        store.store(first)
        held = store.get_latest()
        store.store(snapshot("second"))

        assert held.hostname == "first"
        assert store.get_latest().hostname == "second"

    def test_clear(self):
        store = SnapshotStore(capacity=3)
        store.store(snapshot("a"))
        store.clear()
        assert store.is_empty()
        assert store.get_latest() is None


class TestGetHistory:
    """Tests for get_history window filtering."""

    def test_filters_by_window(self):
        store = SnapshotStore(capacity=10)
        store.store(snapshot("old", age_seconds=300))
        store.store(snapshot("recent", age_seconds=30))
        store.store(snapshot("now"))

        history = store.get_history(timedelta(minutes=1))
        assert [s.hostname for s in history] == ["recent", "now"]

    def test_window_in_seconds(self):
        store = SnapshotStore(capacity=10)
        store.store(snapshot("old", age_seconds=120))
        store.store(snapshot("now"))

        assert [s.hostname for s in store.get_history(60)] == ["now"]

    def test_keeps_insertion_order(self):
        store = SnapshotStore(capacity=10)
        store.store(snapshot("b", age_seconds=5))
        store.store(snapshot("a", age_seconds=10))

        assert [s.hostname for s in store.get_history(60)] == ["b", "a"]

    def test_empty_store(self):
        assert SnapshotStore().get_history(timedelta(hours=1)) == []

    def test_returned_list_is_a_copy(self):
        store = SnapshotStore(capacity=10)
        store.store(snapshot("a"))
        history = store.get_history(60)
        history.clear()
        assert len(store) == 1


class TestConcurrency:
    """Tests for concurrent access."""

    def test_concurrent_writers(self):
        store = SnapshotStore(capacity=50)

        def writer(prefix: str) -> None:
            for i in range(200):
                store.store(snapshot(f"{prefix}-{i}"))
                store.get_history(60)

        threads = [threading.Thread(target=writer, args=(str(n),)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store) == 50
