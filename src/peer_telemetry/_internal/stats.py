"""
Statistical reduction over duration samples.

All functions are pure and accept any sequence of ``timedelta``.
An empty sequence yields None rather than a fabricated default.
"""

import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Sequence

# Two-sided z-critical value for a 95% confidence interval.
Z_95 = 1.96


def mean(samples: Sequence[timedelta]) -> Optional[timedelta]:
    """Arithmetic mean, or None if there are no samples."""
    if not samples:
        return None
    return sum(samples, timedelta(0)) / len(samples)


def std_dev(samples: Sequence[timedelta]) -> Optional[timedelta]:
    """
    Population standard deviation (not Bessel-corrected).

    Computed in float seconds so repeated squaring does not accumulate
    microsecond truncation; only the result is converted back.
    """
    avg = mean(samples)
    if avg is None:
        return None
    avg_s = avg.total_seconds()
    variance = sum((s.total_seconds() - avg_s) ** 2 for s in samples) / len(samples)
    return timedelta(seconds=math.sqrt(variance))


def error_with_confidence(samples: Sequence[timedelta]) -> Optional[timedelta]:
    """
    Half-width of the 95% confidence interval around the mean.

    Only a reasonable estimate for ``len(samples) >= 30``. Smaller windows
    still get a value; treat it as low-confidence.
    """
    sd = std_dev(samples)
    if sd is None:
        return None
    return timedelta(seconds=Z_95 * sd.total_seconds() / math.sqrt(len(samples)))


@dataclass(frozen=True)
class PeerSummary:
    """Reduced statistics for one peer's window."""

    peer: str
    count: int
    mean: Optional[timedelta]
    std_dev: Optional[timedelta]
    error: Optional[timedelta]

    @property
    def has_data(self) -> bool:
        return self.mean is not None and self.error is not None


def summarize(peer: str, samples: Sequence[timedelta]) -> PeerSummary:
    return PeerSummary(
        peer=peer,
        count=len(samples),
        mean=mean(samples),
        std_dev=std_dev(samples),
        error=error_with_confidence(samples),
    )
