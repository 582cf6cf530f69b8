"""
Sample values and the small series utilities shared by every stage.

A session accumulates :class:`PPGSample` values in arrival order.  The helpers
here never mutate their input: they return new lists / arrays so that the batch
stages can work on an immutable snapshot of the session buffer.
"""

from __future__ import annotations

import enum
from typing import List, NamedTuple, Sequence

import numpy as np


class PPGSample(NamedTuple):
    """One brightness reading, ``timestamp`` in seconds since session start."""

    timestamp: float
    value: float


class SignalQuality(str, enum.Enum):
    """Periodicity verdict for a window of samples."""

    GOOD = "Good"
    NOISY = "Noisy"


def values_of(samples: Sequence[PPGSample]) -> np.ndarray:
    """Return the sample values as a float64 array."""
    return np.fromiter((s.value for s in samples), dtype=np.float64, count=len(samples))


def with_values(samples: Sequence[PPGSample], values: "np.ndarray") -> List[PPGSample]:
    """Pair the timestamps of *samples* with new *values* (same length)."""
    return [PPGSample(s.timestamp, float(v)) for s, v in zip(samples, values)]


def recent_window(samples: Sequence[PPGSample], window_seconds: float) -> List[PPGSample]:
    """
    Return the suffix of *samples* covering the last *window_seconds*.

    Every sample with ``timestamp >= last.timestamp - window_seconds`` is kept.
    An empty input yields an empty list.
    """
    if not samples:
        return []
    cutoff = samples[-1].timestamp - window_seconds
    return [s for s in samples if s.timestamp >= cutoff]


def estimate_sample_rate(samples: Sequence[PPGSample], default: float = 30.0) -> float:
    """
    Empirical sampling rate: ``count / (last - first)``.

    The capture source only promises an approximate frame rate, so the rate is
    always derived from the data.  *default* is returned when the series is too
    short to measure.
    """
    if len(samples) < 2:
        return default
    duration = samples[-1].timestamp - samples[0].timestamp
    if duration <= 0:
        return default
    return len(samples) / duration


def downsample(samples: Sequence[PPGSample], target_count: int = 100) -> List[float]:
    """
    Reduce *samples* to exactly *target_count* values for storage.

    Source indices are ``floor(i * n / target_count)``.  Short inputs are
    returned as-is (no upsampling).  Timestamps are dropped.
    """
    n = len(samples)
    if n <= target_count:
        return [s.value for s in samples]
    return [samples[i * n // target_count].value for i in range(target_count)]
