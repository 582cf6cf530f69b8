"""
Signal-quality classification.

A clean fingertip pulse is nearly periodic.  Motion and poor contact show up
either as an implausible number of peaks for the window length or as
inter-beat intervals that vary far more than a real rhythm does, so a window
is *Good* only when the peak count fits 0.5 – 3.5 beats per second and the
coefficient of variation of the intervals stays below 0.25.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from ppg_pulse.peaks import peak_intervals
from ppg_pulse.samples import SignalQuality

logger = logging.getLogger(__name__)

MIN_PEAKS_PER_SECOND = 0.5
MAX_PEAKS_PER_SECOND = 3.5
MAX_INTERVAL_CV = 0.25


def interval_cv(intervals: Sequence[float]) -> float:
    """Coefficient of variation (population std / mean) of *intervals*."""
    arr = np.asarray(intervals, dtype=np.float64)
    mean = float(arr.mean())
    if mean <= 0:
        return float("inf")
    return float(arr.std()) / mean


def classify_peaks(peaks: Sequence[int], duration: float, sample_rate: float) -> SignalQuality:
    """
    Verdict from detected *peaks* over a window lasting *duration* seconds.

    Intervals are not range-filtered here: irregular or implausible spacing
    is exactly what the check is looking for.
    """
    expected_min = duration * MIN_PEAKS_PER_SECOND
    expected_max = duration * MAX_PEAKS_PER_SECOND
    if not expected_min <= len(peaks) <= expected_max:
        logger.debug(
            "Peak count %d outside [%.1f, %.1f] for %.1f s window",
            len(peaks), expected_min, expected_max, duration,
        )
        return SignalQuality.NOISY

    intervals = peak_intervals(peaks, sample_rate)
    if len(intervals) < 3:
        return SignalQuality.NOISY

    cv = interval_cv(intervals)
    logger.debug("Interval CV %.3f over %d intervals", cv, len(intervals))
    return SignalQuality.GOOD if cv < MAX_INTERVAL_CV else SignalQuality.NOISY

