"""
Band-limiting filter for the heart-rate band.

Two single-pole IIR stages followed by a short centred moving average:

* high-pass at ``max(0.6, 0.9 * min_heart_rate_hz)``  (removes drift below ~36 BPM)
* low-pass  at ``min(4.0, 1.2 * max_heart_rate_hz)``  (removes noise above ~240 BPM)
* moving average of ``max(3, round(fs / 12))`` samples to smooth stair-stepping

Both recurrences are run through :func:`scipy.signal.lfilter`.  Seeding each
stage with ``lfilter_zi(b, a) * x[0]`` puts it in steady state for the first
input sample, which gives ``y[0] = 0`` for the high-pass and ``y[0] = x[0]`` for
the low-pass, i.e. no start-up transient in either stage.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from scipy.signal import lfilter, lfilter_zi

MIN_HEART_RATE_HZ = 0.67   # 40 BPM
MAX_HEART_RATE_HZ = 3.33   # 200 BPM


def high_pass(signal: np.ndarray, cutoff_hz: float, dt: float) -> np.ndarray:
    """``y[i] = a * (y[i-1] + x[i] - x[i-1])`` with ``a = RC / (RC + dt)``."""
    rc = 1.0 / (2.0 * math.pi * cutoff_hz)
    alpha = rc / (rc + dt)
    b = np.array([alpha, -alpha])
    a = np.array([1.0, -alpha])
    y, _ = lfilter(b, a, signal, zi=lfilter_zi(b, a) * signal[0])
    return y


def low_pass(signal: np.ndarray, cutoff_hz: float, dt: float) -> np.ndarray:
    """``y[i] = y[i-1] + a * (x[i] - y[i-1])`` with ``a = dt / (RC + dt)``."""
    rc = 1.0 / (2.0 * math.pi * cutoff_hz)
    alpha = dt / (rc + dt)
    b = np.array([alpha])
    a = np.array([1.0, alpha - 1.0])
    y, _ = lfilter(b, a, signal, zi=lfilter_zi(b, a) * signal[0])
    return y


def moving_average(signal: Sequence[float], window_size: int) -> np.ndarray:
    """
    Centred moving average; windows at the edges shrink to the samples
    available instead of padding.  Returned unchanged when the signal is
    shorter than the window.
    """
    y = np.asarray(signal, dtype=np.float64)
    n = y.size
    if n < window_size or window_size < 1:
        return y.copy()

    half = window_size // 2
    idx = np.arange(n)
    start = np.maximum(0, idx - half)
    end = np.minimum(n - 1, idx + half)
    csum = np.concatenate(([0.0], np.cumsum(y)))
    return (csum[end + 1] - csum[start]) / (end - start + 1)


def band_pass_filter(
    signal: Sequence[float],
    sample_rate: float,
    min_heart_rate_hz: float = MIN_HEART_RATE_HZ,
    max_heart_rate_hz: float = MAX_HEART_RATE_HZ,
) -> np.ndarray:
    """
    Keep the ~0.6 – 4 Hz band of *signal* sampled at *sample_rate* Hz.

    Inputs of four samples or fewer are returned unmodified.
    """
    x = np.asarray(signal, dtype=np.float64)
    if x.size <= 4:
        return x.copy()

    low_cut_hz = max(0.6, min_heart_rate_hz * 0.9)
    high_cut_hz = min(4.0, max_heart_rate_hz * 1.2)
    dt = 1.0 / max(sample_rate, 1.0)

    high_passed = high_pass(x, low_cut_hz, dt)
    band_passed = low_pass(high_passed, high_cut_hz, dt)

    smooth_window = max(3, int(round(sample_rate / 12.0)))
    return moving_average(band_passed, smooth_window)
