"""
PPG signal processor.

Algorithm
---------
1. Take the most recent ``window_seconds`` of conditioned samples.
2. Preprocess: linear detrend, median despike, tanh soft clip, normalise.
3. Band-pass to the heart-rate band (single-pole IIR high-pass + low-pass,
   then a short moving average).
4. Find beat peaks with an adaptive threshold and a minimum spacing.
5. BPM = 60 / median inter-beat interval (0.3 – 1.5 s intervals only).
6. Quality = plausible peak count and low interval coefficient of variation.

The processor holds configuration only; every method is a pure function of
its arguments, so it can run on any thread against a snapshot of the session
buffer.

References
----------
- Allen J., "Photoplethysmography and its application in clinical
  physiological measurement."  Physiol. Meas., 2007.
- Elgendi M., "On the analysis of fingertip photoplethysmogram signals."
  Curr. Cardiol. Rev., 2012.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from ppg_pulse.filters import MAX_HEART_RATE_HZ, MIN_HEART_RATE_HZ, band_pass_filter
from ppg_pulse.peaks import detect_peaks, estimate_bpm
from ppg_pulse.preprocessing import preprocess
from ppg_pulse.quality import classify_peaks
from ppg_pulse.samples import (
    PPGSample,
    SignalQuality,
    downsample,
    recent_window,
    values_of,
    with_values,
)

logger = logging.getLogger(__name__)


class PPGProcessor:
    """
    Batch PPG analyser.

    Parameters
    ----------
    window_seconds:
        Length of the window used for BPM estimation.  Default: 10 s.
    min_samples:
        Minimum number of samples (both in the input and in the window)
        before a BPM estimate or a *Good* verdict is attempted.  Default: 100.
    min_heart_rate_hz:
        Lower edge of the heart-rate band (default 0.67 Hz = 40 BPM).
    max_heart_rate_hz:
        Upper edge of the heart-rate band (default 3.33 Hz = 200 BPM).
    median_window:
        Width of the despiking median filter (odd, ≥ 3).  Default: 5.
    limit_std:
        Soft-clip limit in standard deviations.  Default: 3.5.
    """

    def __init__(
        self,
        window_seconds: float = 10.0,
        min_samples: int = 100,
        min_heart_rate_hz: float = MIN_HEART_RATE_HZ,
        max_heart_rate_hz: float = MAX_HEART_RATE_HZ,
        median_window: int = 5,
        limit_std: float = 3.5,
    ) -> None:
        self.window_seconds = window_seconds
        self.min_samples = min_samples
        self.min_heart_rate_hz = min_heart_rate_hz
        self.max_heart_rate_hz = max_heart_rate_hz
        self.median_window = median_window
        self.limit_std = limit_std

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def calculate_bpm(self, samples: Sequence[PPGSample], sample_rate: float) -> Optional[int]:
        """
        Return the heart rate over the most recent window, or *None*.

        *None* means there was not enough data, no beats were found, or the
        estimate fell outside 40 – 200 BPM.
        """
        if len(samples) < self.min_samples:
            return None

        window = recent_window(samples, self.window_seconds)
        if len(window) < self.min_samples:
            return None

        filtered = self._filter(values_of(window), sample_rate)
        peaks = detect_peaks(filtered)
        if len(peaks) < 2:
            return None

        bpm = estimate_bpm(peaks, sample_rate)
        logger.debug("BPM over %d samples: %d peaks -> %s", len(window), len(peaks), bpm)
        return bpm

    def assess_quality(self, samples: Sequence[PPGSample], sample_rate: float) -> SignalQuality:
        """Classify the whole of *samples* as Good or Noisy."""
        if len(samples) < self.min_samples:
            return SignalQuality.NOISY
        peaks = detect_peaks(self._filter(values_of(samples), sample_rate))
        duration = samples[-1].timestamp - samples[0].timestamp
        return classify_peaks(peaks, duration, sample_rate)

    def filtered_for_display(
        self,
        samples: Sequence[PPGSample],
        sample_rate: float,
        window_seconds: float = 6.0,
    ) -> List[PPGSample]:
        """Band-passed copy of the last *window_seconds*, for live plotting."""
        window = recent_window(samples, window_seconds)
        if not window:
            return []
        return with_values(window, self._filter(values_of(window), sample_rate))

    def cleaned_signal(self, samples: Sequence[PPGSample], sample_rate: float) -> List[PPGSample]:
        """Preprocessed and band-passed copy of the full series (same timestamps)."""
        if not samples:
            return []
        return with_values(samples, self._filter(values_of(samples), sample_rate))

    @staticmethod
    def downsample(samples: Sequence[PPGSample], target_count: int = 100) -> List[float]:
        """Fixed-length value series for storage."""
        return downsample(samples, target_count)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _preprocess(self, values: np.ndarray) -> np.ndarray:
        return preprocess(values, median_window=self.median_window, limit_std=self.limit_std)

    def _filter(self, values: np.ndarray, sample_rate: float) -> np.ndarray:
        return band_pass_filter(
            self._preprocess(values),
            sample_rate,
            min_heart_rate_hz=self.min_heart_rate_hz,
            max_heart_rate_hz=self.max_heart_rate_hz,
        )
