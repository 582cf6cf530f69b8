"""
Unit tests for the preprocessing stage.
Run with:  pytest tests/test_preprocessing.py
"""

from __future__ import annotations

import numpy as np
import pytest

from ppg_pulse.preprocessing import (
    median_filter,
    normalize,
    preprocess,
    remove_linear_trend,
    soft_clip,
)


def _pulse(n: int = 300, fps: float = 30.0, hz: float = 1.2) -> np.ndarray:
    t = np.arange(n) / fps
    return 128 + 20 * np.sin(2 * np.pi * hz * t)


class TestDetrend:

    def test_linear_ramp_becomes_zero(self):
        ramp = 3.5 * np.arange(120) - 40.0
        assert np.allclose(remove_linear_trend(ramp), 0.0, atol=1e-9)

    def test_removes_drift_but_keeps_oscillation(self):
        t = np.arange(300) / 30.0
        wave = np.sin(2 * np.pi * 1.2 * t)
        out = remove_linear_trend(wave + 0.8 * t)
        assert abs(np.polyfit(np.arange(300), out, 1)[0]) < 1e-9
        assert np.std(out) == pytest.approx(np.std(wave), rel=0.05)

    def test_degenerate_lengths(self):
        assert remove_linear_trend([]).size == 0
        assert remove_linear_trend([7.0]).tolist() == [7.0]
        assert np.allclose(remove_linear_trend([1.0, 5.0]), 0.0)

    def test_does_not_modify_input(self):
        data = np.array([1.0, 2.0, 4.0, 8.0])
        remove_linear_trend(data)
        assert data.tolist() == [1.0, 2.0, 4.0, 8.0]


class TestMedianFilter:

    def test_removes_single_spike(self):
        data = [0.0, 0.0, 0.0, 10.0, 0.0, 0.0, 0.0, 0.0]
        assert median_filter(data, 5).tolist() == [0.0] * 8

    def test_edge_windows_are_clamped(self):
        data = [5.0, 1.0, 9.0, 3.0, 7.0, 2.0, 8.0]
        out = median_filter(data, 5)
        # i=0 -> median of [5, 1, 9]; i=1 -> upper middle of [1, 3, 5, 9]
        assert out[0] == 5.0
        assert out[1] == 5.0
        # interior i=3 -> median of [1, 9, 3, 7, 2]
        assert out[3] == 3.0

    def test_short_input_unchanged(self):
        data = [4.0, 1.0, 3.0, 2.0, 5.0]
        assert median_filter(data, 5).tolist() == data

    def test_window_below_three_is_noop(self):
        data = [4.0, 100.0, 3.0, 2.0, 5.0, 1.0]
        assert median_filter(data, 1).tolist() == data


class TestSoftClip:

    def test_outlier_is_compressed_within_cap(self):
        rng = np.random.default_rng(3)
        data = rng.normal(0.0, 1.0, 500)
        data[250] = 50.0
        mean, std = data.mean(), data.std()
        out = soft_clip(data, limit_std=3.5)
        assert np.all(np.abs(out - mean) < 3.5 * std)
        assert out[250] < 50.0

    def test_small_values_nearly_unchanged(self):
        data = np.array([-0.1, 0.0, 0.1] * 50)
        out = soft_clip(data, limit_std=3.5)
        assert np.allclose(out, data, atol=1e-2)

    def test_constant_input_survives(self):
        assert soft_clip([2.0, 2.0, 2.0]).tolist() == [2.0, 2.0, 2.0]
        assert soft_clip([]).size == 0


class TestNormalize:

    def test_zero_mean_unit_variance(self):
        out = normalize(_pulse())
        assert abs(out.mean()) < 1e-9
        assert out.std() == pytest.approx(1.0)

    def test_flat_signal_becomes_zero(self):
        assert normalize([5.0] * 10).tolist() == [0.0] * 10


class TestPreprocess:

    def test_output_is_standardised(self):
        rng = np.random.default_rng(0)
        data = _pulse() + rng.normal(0.0, 1.0, 300) + np.linspace(0, 15, 300)
        out = preprocess(data)
        assert out.shape == data.shape
        assert abs(out.mean()) < 1e-3
        assert abs(out.std() - 1.0) < 1e-3

    def test_constant_input_gives_zeros(self):
        assert preprocess([128.0] * 200).tolist() == [0.0] * 200

    @pytest.mark.parametrize("n", [0, 1, 2, 3])
    def test_tiny_inputs_keep_length(self, n):
        out = preprocess([float(v) for v in range(n)])
        assert out.size == n
        assert np.all(np.isfinite(out))

    def test_deterministic(self):
        rng = np.random.default_rng(11)
        data = _pulse() + rng.normal(0.0, 3.0, 300)
        assert np.array_equal(preprocess(data), preprocess(data))
