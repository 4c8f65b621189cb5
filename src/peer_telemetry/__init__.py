"""
Peer Telemetry

Windowed ping and transmission-rate statistics for peer-to-peer nodes.

Example:
    >>> from datetime import timedelta
    >>> from peer_telemetry import Stats
    >>> stats = Stats(window_size=100, peer_id="node-1")
    >>> stats.record_ping("node-2", timedelta(milliseconds=42))
    >>> stats.record_transmission("node-2", timedelta(microseconds=3))
    >>> print(stats.to_report())

Persisting a report:
    >>> stats.save_to_file("telemetry.txt")

Shipping raw windows to another node (optional):
    >>> payload = stats.pack_snapshot()
    >>> snapshot = unpack_stats_snapshot(payload)
    >>> print(snapshot["sections"]["ping"]["node-2"])
"""

from .telemetry import (
    DEFAULT_WINDOW_SIZE,
    SampleWindow,
    Stats,
    WindowedSampleStore,
    format_duration,
    # Exceptions
    TelemetryError,
    ReportWriteError,
    SnapshotFormatError,
)
from ._internal.snapshot_formats import pack_stats_snapshot, unpack_stats_snapshot
from ._internal.stats import Z_95, PeerSummary, error_with_confidence, mean, std_dev

__version__ = "0.1.0"

__all__ = [
    # Aggregator (recommended entry point)
    "Stats",
    "DEFAULT_WINDOW_SIZE",
    # Windows
    "SampleWindow",
    "WindowedSampleStore",
    "format_duration",
    # Statistics
    "mean",
    "std_dev",
    "error_with_confidence",
    "PeerSummary",
    "Z_95",
    # Snapshot encoding
    "pack_stats_snapshot",
    "unpack_stats_snapshot",
    # Exceptions
    "TelemetryError",
    "ReportWriteError",
    "SnapshotFormatError",
    # Version
    "__version__",
]
