"""
Beat detection and interval-based heart-rate estimation.

Peaks are local maxima of the band-passed, normalised signal that rise above
an adaptive threshold (``mean + 0.3 * std``) and dominate two samples on each
side.  A minimum spacing, expressed in samples, keeps the dicrotic notch or a
noisy double hump from being counted as a second beat.

The rate is ``60 / median(interval)`` over the inter-peak intervals that fall
in the physiological range 0.3 – 1.5 s; the median shrugs off one missed or
one spurious beat in the window.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

logger = logging.getLogger(__name__)

MIN_BPM = 40
MAX_BPM = 200
MIN_INTERVAL_S = 0.3
MAX_INTERVAL_S = 1.5


def detect_peaks(
    signal: Sequence[float],
    threshold_std: float = 0.3,
    min_spacing: int = 5,
) -> List[int]:
    """
    Return the indices of heartbeat peaks in *signal*, in ascending order.

    Parameters
    ----------
    signal:
        Band-passed series.
    threshold_std:
        Candidates must exceed ``mean + threshold_std * std``.
    min_spacing:
        A candidate is accepted only when it lies more than this many samples
        after the previously accepted peak; closer candidates are dropped.
        At 30 Hz the default of 5 samples caps the rate near 300 BPM.
    """
    y = np.asarray(signal, dtype=np.float64)
    n = y.size
    if n <= 4:
        return []

    threshold = float(y.mean()) + threshold_std * float(y.std())

    peaks: List[int] = []
    for i in range(2, n - 2):
        current = y[i]
        if (
            current > y[i - 1] and current > y[i - 2]
            and current > y[i + 1] and current > y[i + 2]
            and current > threshold
        ):
            if not peaks or i - peaks[-1] > min_spacing:
                peaks.append(i)
    return peaks


def peak_intervals(
    peaks: Sequence[int],
    sample_rate: float,
    min_interval: Optional[float] = None,
    max_interval: Optional[float] = None,
) -> List[float]:
    """
    Time between consecutive peaks in seconds.

    When *min_interval* / *max_interval* are given, intervals outside the
    closed range are discarded.
    """
    if len(peaks) < 2 or sample_rate <= 0:
        return []
    intervals = []
    for prev, cur in zip(peaks, peaks[1:]):
        interval = (cur - prev) / sample_rate
        if min_interval is not None and interval < min_interval:
            continue
        if max_interval is not None and interval > max_interval:
            continue
        intervals.append(interval)
    return intervals


def estimate_bpm(peaks: Sequence[int], sample_rate: float) -> Optional[int]:
    """
    Heart rate from peak positions, or *None* when no plausible rate exists.

    Returns a whole number of beats per minute in ``[MIN_BPM, MAX_BPM]``.
    A single plausible interval is enough to produce an estimate.
    """
    intervals = peak_intervals(peaks, sample_rate, MIN_INTERVAL_S, MAX_INTERVAL_S)
    if not intervals:
        return None

    median_interval = float(np.median(intervals))
    bpm = int(math.floor(60.0 / median_interval))
    if not MIN_BPM <= bpm <= MAX_BPM:
        logger.debug("Discarding out-of-range estimate: %d BPM", bpm)
        return None
    return bpm
