"""
Unit tests for frame intensity extraction and FingerDetector.
Run with:  pytest tests/test_frame_sampler.py
"""

from __future__ import annotations

import numpy as np
import pytest

from ppg_pulse.frame_sampler import FingerDetector, extract_intensity


def _make_frame(r, g, b, noise=0, h=480, w=640) -> np.ndarray:
    """Create a uniform-colour BGR frame with optional uniform noise."""
    rng = np.random.default_rng(42)
    frame = np.zeros((h, w, 3), dtype=np.uint8)
    frame[:, :, 2] = np.clip(r + rng.integers(-noise, noise + 1, (h, w)), 0, 255)
    frame[:, :, 1] = np.clip(g + rng.integers(-noise, noise + 1, (h, w)), 0, 255)
    frame[:, :, 0] = np.clip(b + rng.integers(-noise, noise + 1, (h, w)), 0, 255)
    return frame


class TestExtractIntensity:

    def test_uniform_frame(self):
        assert extract_intensity(_make_frame(200, 77, 10, h=16, w=16)) == pytest.approx(77.0)

    def test_uses_green_channel_only(self):
        frame = _make_frame(255, 0, 255, h=8, w=8)
        assert extract_intensity(frame) == 0.0

    def test_subsampling_step(self):
        frame = np.zeros((4, 4, 3), dtype=np.uint8)
        frame[::2, ::2, 1] = 100
        assert extract_intensity(frame, step=2) == pytest.approx(100.0)
        assert extract_intensity(frame, step=1) == pytest.approx(25.0)

    def test_empty_frame(self):
        assert extract_intensity(np.zeros((0, 0, 3), dtype=np.uint8)) is None


class TestFingerDetector:

    def test_finger_dark_reddish(self):
        fd = FingerDetector(brightness_threshold=100, variance_threshold=800)
        frame = _make_frame(r=80, g=40, b=30, noise=3)
        assert fd.is_finger(frame) is True

    def test_no_finger_bright_scene(self):
        frame = _make_frame(r=200, g=180, b=160, noise=20)
        assert FingerDetector().is_finger(frame) is False

    def test_no_finger_uniform_but_bright(self):
        frame = _make_frame(r=150, g=140, b=130, noise=0)
        assert FingerDetector(brightness_threshold=100).is_finger(frame) is False

    def test_no_finger_dark_but_not_red(self):
        frame = _make_frame(r=30, g=60, b=40, noise=2)
        assert FingerDetector().is_finger(frame) is False

    def test_no_finger_textured(self):
        frame = _make_frame(r=90, g=40, b=30, noise=60)
        assert FingerDetector().is_finger(frame) is False

    def test_red_ratio_threshold_is_configurable(self):
        frame = _make_frame(r=80, g=40, b=30, noise=0)     # red / green = 2.0
        assert FingerDetector(red_dominance=1.9).is_finger(frame) is True
        assert FingerDetector(red_dominance=2.1).is_finger(frame) is False
