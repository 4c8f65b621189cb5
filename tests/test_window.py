"""Tests for per-peer sample windows."""

import threading
from datetime import timedelta

import pytest

from peer_telemetry import SampleWindow, WindowedSampleStore, format_duration


def ms(value):
    return timedelta(milliseconds=value)


def test_format_duration():
    """Test duration formatting picks a unit and trims zeros."""
    assert format_duration(timedelta(seconds=5)) == "5s"
    assert format_duration(timedelta(seconds=1.5)) == "1.5s"
    assert format_duration(timedelta(microseconds=1_632_993)) == "1.632993s"
    assert format_duration(timedelta(minutes=2)) == "120s"
    assert format_duration(ms(12.5)) == "12.5ms"
    assert format_duration(ms(1)) == "1ms"
    assert format_duration(timedelta(microseconds=250)) == "250µs"
    assert format_duration(timedelta(0)) == "0µs"


def test_window_evicts_oldest():
    """Test a full window drops its oldest sample first."""
    window = SampleWindow(window_size=3)
    for i in range(1, 6):
        window.push(ms(i))
        assert len(window) <= 3

    assert window.samples() == (ms(3), ms(4), ms(5))
    assert window.count == 3
    assert window.window_size == 3


def test_store_keeps_last_k_in_order():
    """Test n > k records leave exactly the last k samples, oldest first."""
    store = WindowedSampleStore(window_size=4)
    for i in range(10):
        store.record("A", ms(i))

    assert store.window("A") == tuple(ms(i) for i in range(6, 10))


def test_store_peers_are_independent():
    """Test each peer has its own window."""
    store = WindowedSampleStore(window_size=2)
    store.record("B", ms(1))
    store.record("A", ms(2))
    store.record("A", ms(3))
    store.record("A", ms(4))

    assert store.window("A") == (ms(3), ms(4))
    assert store.window("B") == (ms(1),)
    assert store.window("C") is None
    assert len(store) == 2
    assert "A" in store
    assert "C" not in store


def test_snapshot_sorted_by_peer():
    """Test snapshot lists every peer in sorted order."""
    store = WindowedSampleStore(window_size=5)
    for peer in ["zeta", "alpha", "mu"]:
        store.record(peer, ms(1))

    assert store.peers() == ["alpha", "mu", "zeta"]
    assert [peer for peer, _ in store.snapshot()] == ["alpha", "mu", "zeta"]


def test_snapshot_is_a_copy():
    """Test later records do not change an earlier snapshot."""
    store = WindowedSampleStore(window_size=5)
    store.record("A", ms(1))
    snap = store.snapshot()
    store.record("A", ms(2))

    assert snap == [("A", (ms(1),))]
    assert store.window("A") == (ms(1), ms(2))


def test_add_peer_creates_empty_window():
    """Test registering a peer without samples."""
    store = WindowedSampleStore(window_size=3)
    store.add_peer("A")
    store.add_peer("A")

    assert store.snapshot() == [("A", ())]

    store.record("A", ms(7))
    store.add_peer("A")
    assert store.window("A") == (ms(7),)


def test_invalid_window_size():
    """Test a window must hold at least one sample."""
    with pytest.raises(ValueError):
        WindowedSampleStore(window_size=0)
    with pytest.raises(ValueError):
        WindowedSampleStore(window_size=-3)


def test_concurrent_writers_distinct_peers():
    """Test concurrent writers on distinct peers lose nothing."""
    store = WindowedSampleStore(window_size=20)
    writers = 16
    per_writer = 50
    barrier = threading.Barrier(writers)

    def write(idx: int):
        barrier.wait()
        for i in range(per_writer):
            store.record(f"peer-{idx:02d}", timedelta(microseconds=idx * 1000 + i))

    threads = [threading.Thread(target=write, args=(i,)) for i in range(writers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    snap = dict(store.snapshot())
    assert len(snap) == writers
    for idx in range(writers):
        expected = tuple(timedelta(microseconds=idx * 1000 + i) for i in range(per_writer - 20, per_writer))
        assert snap[f"peer-{idx:02d}"] == expected


def test_concurrent_writers_same_peer():
    """Test concurrent writers on one peer keep the window bounded and ordered."""
    store = WindowedSampleStore(window_size=10)
    writers = 8
    per_writer = 1000
    barrier = threading.Barrier(writers)

    def write(idx: int):
        barrier.wait()
        for i in range(per_writer):
            # Encode writer in the seconds part, sequence in microseconds
            store.record("shared", timedelta(seconds=idx, microseconds=i))

    threads = [threading.Thread(target=write, args=(i,)) for i in range(writers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    window = store.window("shared")
    assert len(window) == 10
    # Each writer's samples stay in that writer's order
    for idx in range(writers):
        seq = [s.microseconds for s in window if s.seconds == idx]
        assert seq == sorted(seq)
    # The last sample of every writer was the final record for that writer
    last = max(window, key=lambda s: s.microseconds)
    assert last.microseconds == per_writer - 1


def test_snapshot_during_writes():
    """Test snapshots taken mid-write never see an oversized window."""
    store = WindowedSampleStore(window_size=5)
    stop = threading.Event()

    def write():
        i = 0
        while not stop.is_set():
            store.record("A", timedelta(microseconds=i))
            i += 1

    t = threading.Thread(target=write)
    t.start()
    try:
        for _ in range(500):
            for _, samples in store.snapshot():
                assert len(samples) <= 5
                assert list(samples) == sorted(samples)
    finally:
        stop.set()
        t.join()
