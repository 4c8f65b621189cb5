"""
Peer telemetry aggregator.

Collects ping and per-byte transmission samples per remote peer and
reports windowed statistics:
1. Networking code pushes samples via record_ping() / record_transmission()
2. Each peer keeps only its last window_size samples per store
3. to_report() reduces every window to mean ± 95% CI error
4. save_to_file() writes the report, pack_snapshot() encodes raw windows
"""

import errno
import json
import logging
import os
from datetime import timedelta

from .window import WindowedSampleStore, format_duration
from ..errors import ReportWriteError
from .._internal.snapshot_formats import pack_stats_snapshot
from .._internal.stats import PeerSummary, summarize


DEFAULT_WINDOW_SIZE = 100

log = logging.getLogger(__name__)


def _quote(peer: str) -> str:
    """Quote a peer id so it always renders on one line."""
    return json.dumps(peer, ensure_ascii=False)


class Stats:
    """
    Ping and transmission-rate statistics for every known peer.

    Safe to feed from many threads while another thread reports.

    Args:
        window_size: Samples kept per peer. Reads from PEER_TELEMETRY_WINDOW_SIZE
                     env var if not provided, defaults to 100.
        peer_id: Id of the local peer, used to label reports. Reads from
                 PEER_TELEMETRY_PEER_ID env var if not provided.

    Example:
        >>> stats = Stats(window_size=50, peer_id="node-1")
        >>> stats.record_ping("node-2", timedelta(milliseconds=12))
        >>> print(stats.to_report())
    """

    def __init__(self, window_size: int | None = None, peer_id: str | None = None):
        if window_size is None:
            raw = os.getenv("PEER_TELEMETRY_WINDOW_SIZE", str(DEFAULT_WINDOW_SIZE))
            try:
                window_size = int(raw)
            except ValueError:
                raise ValueError(f"PEER_TELEMETRY_WINDOW_SIZE must be an integer, got {raw!r}") from None

        self._peer_id = peer_id or os.getenv("PEER_TELEMETRY_PEER_ID", "")
        if not self._peer_id:
            raise ValueError(
                "Peer id required. Pass peer_id parameter or set PEER_TELEMETRY_PEER_ID environment variable."
            )

        self.pings = WindowedSampleStore(window_size)
        self.transmission_rates = WindowedSampleStore(window_size)

    @property
    def window_size(self) -> int:
        return self.pings.window_size

    @property
    def peer_id(self) -> str:
        return self._peer_id

    # =========================================================================
    # Ingestion
    # =========================================================================

    def add_peer(self, peer: str):
        """Start tracking peer in both stores before any sample arrives."""
        self.pings.add_peer(peer)
        self.transmission_rates.add_peer(peer)

    def record_ping(self, peer: str, duration: timedelta):
        """Record one round-trip time to peer."""
        self.pings.record(peer, duration)

    def record_transmission(self, peer: str, duration: timedelta):
        """Record one per-byte transmission time to peer."""
        self.transmission_rates.record(peer, duration)

    # =========================================================================
    # Reporting
    # =========================================================================

    def to_report(self) -> str:
        """Render the human-readable report."""
        lines = [_quote(self._peer_id), "Ping mean for each peer:"]
        for s in self._summaries(self.pings):
            if s.has_data:
                lines.append(f'{_quote(s.peer)} {format_duration(s.mean)}±{format_duration(s.error)}')
            else:
                lines.append(f'No ping data for peer {_quote(s.peer)}')

        lines.append("Transmission rate mean by peer:")
        for s in self._summaries(self.transmission_rates):
            if s.has_data:
                lines.append(f'{_quote(s.peer)} {format_duration(s.mean)}±{format_duration(s.error)} per byte')
            else:
                lines.append(f'No transmission data for peer {_quote(s.peer)}')

        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.to_report()

    def save_to_file(self, path: str | os.PathLike):
        """
        Write the current report to path, replacing any existing file.

        Raises:
            ReportWriteError: The file could not be created or written.
        """
        data = self.to_report().encode("utf-8")
        try:
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            log.warning("Failed to write report to %s: %s", path, e)
            raise ReportWriteError(e.errno, e.strerror, os.fspath(path)) from e
        except ValueError as e:
            # open() rejects paths with embedded NUL bytes
            log.warning("Invalid report path %r: %s", path, e)
            raise ReportWriteError(errno.EINVAL, str(e), os.fspath(path)) from e
        log.info("Wrote report (%d bytes) to %s", len(data), path)

    def get_stats(self) -> dict:
        """Get per-peer summaries for both stores."""
        return {
            "peer_id": self._peer_id,
            "window_size": self.window_size,
            "ping": {s.peer: s for s in self._summaries(self.pings)},
            "transmission_rate": {s.peer: s for s in self._summaries(self.transmission_rates)},
        }

    def pack_snapshot(self) -> bytes:
        """Encode the raw windows of both stores (see unpack_stats_snapshot)."""
        return pack_stats_snapshot(
            self._peer_id,
            self.window_size,
            [
                ("ping", self.pings.snapshot()),
                ("transmission_rate", self.transmission_rates.snapshot()),
            ],
        )

    # =========================================================================
    # Internal
    # =========================================================================

    @staticmethod
    def _summaries(store: WindowedSampleStore) -> list[PeerSummary]:
        return [summarize(peer, samples) for peer, samples in store.snapshot()]
