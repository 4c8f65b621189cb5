"""
Peer telemetry module.

Windowed ping and transmission-rate statistics for remote peers.
"""

from .aggregator import DEFAULT_WINDOW_SIZE, Stats
from .window import SampleWindow, WindowedSampleStore, format_duration
from ..errors import ReportWriteError, SnapshotFormatError, TelemetryError

__all__ = [
    # Aggregator
    "Stats",
    "DEFAULT_WINDOW_SIZE",
    # Windows
    "SampleWindow",
    "WindowedSampleStore",
    "format_duration",
    # Exceptions
    "TelemetryError",
    "ReportWriteError",
    "SnapshotFormatError",
]
