"""
Per-peer sample windows.

Provides a thread-safe store of bounded FIFO windows keyed by peer id:
- deque(maxlen=window_size) per peer, oldest sample evicted first
- one lock per window, so writers to different peers do not contend
- SortedDict for peer lookup, giving reports a stable peer order

Samples are datetime.timedelta values. Use format_duration() for display.
"""

import logging
import threading
from collections import deque
from datetime import timedelta
from typing import Optional

from sortedcontainers import SortedDict

log = logging.getLogger(__name__)


def format_duration(d: timedelta) -> str:
    """
    Format a duration for reports.

    Picks s, ms or µs by magnitude and trims trailing zeros.

    Args:
        d: Duration to format

    Returns:
        String such as "5s", "1.632993s", "12.5ms" or "250µs"
    """
    micros = (d.days * 86_400 + d.seconds) * 1_000_000 + d.microseconds
    if micros >= 1_000_000:
        value, unit, places = micros / 1_000_000, "s", 6
    elif micros >= 1_000:
        value, unit, places = micros / 1_000, "ms", 3
    else:
        return f"{micros}µs"
    s = f"{value:.{places}f}"
    s = s.rstrip("0")
    s = s.rstrip(".")
    return s + unit


class SampleWindow:
    """
    Bounded FIFO of duration samples for one peer.
    Appending to a full window drops the oldest sample.
    """

    def __init__(self, window_size: int):
        self._lock = threading.Lock()
        self._samples: deque[timedelta] = deque(maxlen=window_size)

    @property
    def window_size(self) -> int:
        return self._samples.maxlen

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    @property
    def count(self) -> int:
        return len(self)

    def push(self, sample: timedelta):
        """Add sample as newest, evicting the oldest if full."""
        with self._lock:
            self._samples.append(sample)

    def samples(self) -> tuple[timedelta, ...]:
        """Copy of the window, oldest first."""
        with self._lock:
            return tuple(self._samples)


class WindowedSampleStore:
    """
    Thread-safe mapping of peer id -> SampleWindow.

    The map lock is held only to look up or create a window; pushes and
    copies take that window's own lock. The two locks are never held at
    the same time.
    """

    def __init__(self, window_size: int):
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        self._window_size = window_size
        self._lock = threading.Lock()
        self._windows: SortedDict[str, SampleWindow] = SortedDict()

    @property
    def window_size(self) -> int:
        return self._window_size

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def __contains__(self, peer: str) -> bool:
        with self._lock:
            return peer in self._windows

    def _get_window(self, peer: str) -> SampleWindow:
        with self._lock:
            window = self._windows.get(peer)
            if window is None:
                window = SampleWindow(self._window_size)
                self._windows[peer] = window
                log.debug("Tracking new peer %r", peer)
            return window

    def add_peer(self, peer: str):
        """Register peer with an empty window. No-op if already tracked."""
        self._get_window(peer)

    def record(self, peer: str, sample: timedelta):
        """Append sample to peer's window, creating the window if needed."""
        self._get_window(peer).push(sample)

    def peers(self) -> list[str]:
        """Tracked peer ids in sorted order."""
        with self._lock:
            return list(self._windows.keys())

    def window(self, peer: str) -> Optional[tuple[timedelta, ...]]:
        """Copy of one peer's window, or None if the peer is unknown."""
        with self._lock:
            window = self._windows.get(peer)
        return window.samples() if window is not None else None

    def snapshot(self) -> list[tuple[str, tuple[timedelta, ...]]]:
        """
        Copy every peer's window.

        Each window is read whole under its own lock. Windows of different
        peers may be taken at slightly different moments.
        """
        with self._lock:
            items = list(self._windows.items())
        return [(peer, window.samples()) for peer, window in items]
