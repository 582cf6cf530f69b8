"""
Frame → sample reduction and finger-on-lens gating.

With the torch on and a fingertip pressed over the lens, each frame is an
almost uniform reddish field whose brightness rises and falls with the blood
volume under the skin.  One sample per frame is enough: the mean of the green
channel (green is absorbed most strongly by haemoglobin, so it carries the
largest pulsatile component), taken over a sub-sampled pixel grid.

When the lens is uncovered the frame becomes:
  - much brighter than a covered lens,
  - high in spatial variance (edges, texture),
  - no longer red-dominant.

:class:`FingerDetector` checks those three cues so that a replay source can
skip frames that do not look like a finger.
"""

from __future__ import annotations

from typing import Optional

import numpy as np


def extract_intensity(frame: np.ndarray, step: int = 2) -> Optional[float]:
    """
    Mean green intensity of a BGR *frame*, sampling every *step* pixels.

    Returns *None* for an empty frame.
    """
    if frame is None or frame.size == 0:
        return None
    green = frame[::step, ::step, 1]
    if green.size == 0:
        return None
    return float(green.mean())


class FingerDetector:
    """
    Gate in front of frame replay: keeps frames that show a covered lens.

    A frame passes only when it is dark, spatially flat and redder than it is
    green.  Frames that fail any cue are dropped by the source before they
    reach the session, so a recording that starts with the finger off the
    lens does not feed room light into the conditioner.

    Parameters
    ----------
    brightness_threshold:
        Mean BGR level (0 - 255) at or above which the lens counts as open.
    variance_threshold:
        Green-channel spatial variance at or above which the frame is
        treated as scene texture rather than skin.
    red_dominance:
        Lowest accepted red-to-green mean ratio.
    """

    def __init__(
        self,
        brightness_threshold: float = 100.0,
        variance_threshold: float = 800.0,
        red_dominance: float = 1.05,
    ) -> None:
        self.max_brightness = brightness_threshold
        self.max_variance = variance_threshold
        self.min_red_ratio = red_dominance

    def is_finger(self, frame: np.ndarray) -> bool:
        """Return *True* if the BGR *frame* looks like a covered lens."""
        if frame is None or frame.size == 0:
            return False
        channels = frame.reshape(-1, frame.shape[-1]).astype(np.float64)
        mean_b, mean_g, mean_r = channels[:, :3].mean(axis=0)
        brightness = (mean_r + mean_g + mean_b) / 3.0
        variance = float(channels[:, 1].var())
        red_ratio = mean_r / (mean_g + 1e-6)

        return bool(
            brightness < self.max_brightness
            and variance < self.max_variance
            and red_ratio >= self.min_red_ratio
        )
