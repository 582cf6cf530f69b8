"""
Unit tests for the sample-series helpers.
Run with:  pytest tests/test_samples.py
"""

from __future__ import annotations

import pytest

from ppg_pulse.samples import (
    PPGSample,
    SignalQuality,
    downsample,
    estimate_sample_rate,
    recent_window,
    values_of,
    with_values,
)


def _series(n: int, fps: float = 30.0) -> list[PPGSample]:
    return [PPGSample(i / fps, float(i)) for i in range(n)]


class TestRecentWindow:

    def test_empty_input_returns_empty(self):
        assert recent_window([], 10.0) == []

    def test_returns_suffix_within_window(self):
        samples = [PPGSample(float(t), float(t)) for t in range(20)]
        window = recent_window(samples, 5.0)
        assert [s.timestamp for s in window] == [14.0, 15.0, 16.0, 17.0, 18.0, 19.0]

    def test_window_longer_than_series_keeps_everything(self):
        samples = _series(50)
        assert recent_window(samples, 60.0) == samples


class TestSampleRate:

    def test_rate_from_count_and_span(self):
        samples = _series(300)
        assert estimate_sample_rate(samples) == pytest.approx(300 / (299 / 30.0))

    def test_too_short_uses_default(self):
        assert estimate_sample_rate([]) == 30.0
        assert estimate_sample_rate([PPGSample(0.0, 1.0)], default=25.0) == 25.0

    def test_zero_span_uses_default(self):
        samples = [PPGSample(1.0, 1.0), PPGSample(1.0, 2.0)]
        assert estimate_sample_rate(samples) == 30.0


class TestDownsample:

    def test_short_input_returned_unchanged(self):
        samples = _series(73)
        assert downsample(samples, 100) == [s.value for s in samples]

    def test_exact_length_returned_unchanged(self):
        samples = _series(100)
        assert downsample(samples, 100) == [float(i) for i in range(100)]

    @pytest.mark.parametrize("n", [101, 150, 299, 1000, 4567])
    def test_long_input_has_target_length(self, n):
        assert len(downsample(_series(n), 100)) == 100

    def test_picks_evenly_spaced_indices(self):
        picked = downsample(_series(250), 100)
        assert picked[:5] == [0.0, 2.0, 5.0, 7.0, 10.0]
        assert picked[-1] == float(99 * 250 // 100)

    def test_custom_target(self):
        assert downsample(_series(1000), 10) == [float(i * 100) for i in range(10)]


class TestValues:

    def test_values_of_and_with_values(self):
        samples = _series(4)
        values = values_of(samples)
        assert values.dtype.name == "float64"
        rebuilt = with_values(samples, values * 2)
        assert [s.timestamp for s in rebuilt] == [s.timestamp for s in samples]
        assert [s.value for s in rebuilt] == [0.0, 2.0, 4.0, 6.0]

    def test_quality_values(self):
        assert SignalQuality.GOOD.value == "Good"
        assert SignalQuality.NOISY.value == "Noisy"
