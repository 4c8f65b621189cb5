"""Exceptions raised by the telemetry SDK."""


class TelemetryError(Exception):
    """Base exception for peer telemetry errors."""
    pass


class ReportWriteError(TelemetryError, OSError):
    """Raised when a report cannot be written. Carries the underlying errno/strerror/filename."""
    pass


class SnapshotFormatError(TelemetryError):
    """Raised when snapshot bytes are truncated or malformed."""
    pass
