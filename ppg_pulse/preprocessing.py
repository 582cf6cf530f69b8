"""
Window preprocessing ahead of band-pass filtering.

Steps (strictly in this order)
------------------------------
1. Remove the least-squares linear trend (slow baseline drift from the finger
   warming up or shifting pressure).
2. Sliding median filter to knock out single-frame spikes.
3. Soft clip: ``mean + cap * tanh((x - mean) / cap)`` with ``cap = k * std``.
   Unlike hard clipping the limiter has no corners, so large motion
   artefacts are compressed without adding harmonics of their own.
4. Normalise to zero mean and unit variance so that the peak detector's
   adaptive threshold behaves the same for bright and dim fingers.

Each function accepts any finite sequence (including empty, one- and
two-element inputs) and returns a new ``float64`` array of equal length.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

_FLAT_STD = 1e-4
_STD_FLOOR = 1e-6


def remove_linear_trend(signal: Sequence[float]) -> np.ndarray:
    """Subtract the OLS line fitted against the sample index."""
    y = np.asarray(signal, dtype=np.float64)
    n = y.size
    if n == 0:
        return y.copy()

    x = np.arange(n, dtype=np.float64)
    x_centered = x - x.mean()
    denominator = float(np.dot(x_centered, x_centered))
    if denominator <= 0.0:
        return y.copy()

    mean_y = float(y.mean())
    slope = float(np.dot(x_centered, y - mean_y)) / denominator
    intercept = mean_y - slope * float(x.mean())
    return y - (slope * x + intercept)


def median_filter(signal: Sequence[float], window_size: int = 5) -> np.ndarray:
    """
    Sliding median with edge windows clamped to the available samples.

    Edge windows are shorter than *window_size*; for an even-length edge
    window the upper of the two middle values is taken.  The series is
    returned unchanged when it is not longer than the window or the window is
    narrower than 3.
    """
    y = np.asarray(signal, dtype=np.float64)
    n = y.size
    if n <= window_size or window_size < 3:
        return y.copy()

    half = window_size // 2
    out = np.empty_like(y)
    # Interior: full odd-width windows.
    windows = sliding_window_view(y, 2 * half + 1)
    out[half:n - half] = np.median(windows, axis=1)
    # Edges: shrinking windows.
    for i in list(range(half)) + list(range(n - half, n)):
        window = np.sort(y[max(0, i - half):min(n, i + half + 1)])
        out[i] = window[window.size // 2]
    return out


def soft_clip(signal: Sequence[float], limit_std: float = 3.5) -> np.ndarray:
    """Compress excursions beyond ``limit_std`` standard deviations with tanh."""
    y = np.asarray(signal, dtype=np.float64)
    if y.size == 0:
        return y.copy()
    mean = float(y.mean())
    std = max(float(y.std()), _STD_FLOOR)
    cap = limit_std * std
    return mean + cap * np.tanh((y - mean) / cap)


def normalize(signal: Sequence[float]) -> np.ndarray:
    """Zero-mean, unit-variance copy; a flat signal becomes all zeros."""
    y = np.asarray(signal, dtype=np.float64)
    if y.size == 0:
        return y.copy()
    mean = float(y.mean())
    std = float(y.std())
    if std <= _FLAT_STD:
        return np.zeros_like(y)
    return (y - mean) / std


def preprocess(
    signal: Sequence[float],
    median_window: int = 5,
    limit_std: float = 3.5,
) -> np.ndarray:
    """Detrend, despike, soft-clip and normalise *signal*."""
    detrended = remove_linear_trend(signal)
    despiked = median_filter(detrended, window_size=median_window)
    clipped = soft_clip(despiked, limit_std=limit_std)
    return normalize(clipped)
