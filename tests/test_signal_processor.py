"""
Unit tests for PPGProcessor.
Run with:  pytest tests/test_signal_processor.py
"""

from __future__ import annotations

import numpy as np
import pytest

from ppg_pulse.conditioner import StreamConditioner
from ppg_pulse.samples import PPGSample, SignalQuality, estimate_sample_rate, recent_window
from ppg_pulse.signal_processor import PPGProcessor


def _conditioned_pulse(n: int = 300, fps: float = 30.0, hz: float = 1.2) -> list[PPGSample]:
    """``128 + 20 sin(2π f t)`` pushed through the stream conditioner."""
    sc = StreamConditioner()
    samples = []
    for i in range(n):
        t = i / fps
        samples.append(PPGSample(t, sc.condition(128 + 20 * np.sin(2 * np.pi * hz * t))))
    return samples


class TestPPGProcessor:

    def test_end_to_end_72_bpm(self):
        """10 s of a 1.2 Hz pulse at 30 Hz gives ~72 BPM and a Good verdict."""
        samples = _conditioned_pulse()
        rate = estimate_sample_rate(samples)
        sp = PPGProcessor()
        bpm = sp.calculate_bpm(samples, rate)
        assert bpm is not None
        assert abs(bpm - 72) <= 2, f"Expected ~72 BPM, got {bpm}"
        assert sp.assess_quality(samples, rate) is SignalQuality.GOOD

    @pytest.mark.parametrize("hz", [0.9, 1.5, 2.0])
    def test_other_rates(self, hz):
        samples = _conditioned_pulse(n=450, hz=hz)
        bpm = PPGProcessor().calculate_bpm(samples, estimate_sample_rate(samples))
        assert bpm is not None
        assert abs(bpm - hz * 60) <= 3, f"Expected ~{hz * 60:.0f} BPM, got {bpm}"

    def test_insufficient_data(self):
        samples = _conditioned_pulse(n=40)
        sp = PPGProcessor()
        assert sp.calculate_bpm(samples, 30.0) is None
        assert sp.assess_quality(samples, 30.0) is SignalQuality.NOISY

    def test_window_must_hold_min_samples(self):
        # 150 samples at 5 Hz: only ~50 fall inside the 10 s window
        samples = _conditioned_pulse(n=150, fps=5.0, hz=1.0)
        assert PPGProcessor().calculate_bpm(samples, 5.0) is None

    def test_flat_signal_has_no_bpm(self):
        samples = [PPGSample(i / 30.0, 128.0) for i in range(300)]
        assert PPGProcessor().calculate_bpm(samples, 30.0) is None

    def test_filtered_for_display_covers_recent_window(self):
        samples = _conditioned_pulse()
        display = PPGProcessor().filtered_for_display(samples, 30.0, window_seconds=6.0)
        window = recent_window(samples, 6.0)
        assert [s.timestamp for s in display] == [s.timestamp for s in window]
        assert all(np.isfinite(s.value) for s in display)

    def test_filtered_for_display_empty(self):
        assert PPGProcessor().filtered_for_display([], 30.0) == []

    def test_cleaned_signal_preserves_timestamps(self):
        samples = _conditioned_pulse()
        cleaned = PPGProcessor().cleaned_signal(samples, 30.0)
        assert len(cleaned) == len(samples)
        assert [s.timestamp for s in cleaned] == [s.timestamp for s in samples]
        assert abs(np.mean([s.value for s in cleaned])) < 0.3

    def test_cleaned_signal_empty(self):
        assert PPGProcessor().cleaned_signal([], 30.0) == []

    def test_downsample(self):
        samples = _conditioned_pulse()
        assert len(PPGProcessor.downsample(samples)) == 100
        assert PPGProcessor.downsample(samples[:80]) == [s.value for s in samples[:80]]

    def test_deterministic(self):
        samples = _conditioned_pulse()
        sp = PPGProcessor()
        assert sp.calculate_bpm(samples, 30.1) == sp.calculate_bpm(samples, 30.1)
        a = sp.cleaned_signal(samples, 30.1)
        b = sp.cleaned_signal(samples, 30.1)
        assert a == b
