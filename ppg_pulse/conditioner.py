"""
Per-sample stream conditioning.

Runs on the capture thread for every incoming brightness value, before the
sample reaches the session buffer:

1. Clip the raw reading to the sensor range (0 – 255).
2. Exponential smoothing with an adaptive weight: a sudden jump larger than
   ``noise_threshold`` is most likely finger motion, so it is blended in with
   the smaller ``alpha_jump``; ordinary pulsatile changes use ``alpha_calm``.
3. Cap the step between the new value and the previously emitted one at
   ``max_step`` so that outliers surviving the smoothing cannot spike the series.

The conditioner is the only stateful stage of the pipeline.  It is owned by a
single thread and reset once per recording session.
"""

from __future__ import annotations

from typing import Optional, Tuple


class StreamConditioner:
    """
    Adaptive exponential smoother followed by a jump clamp.

    Parameters
    ----------
    noise_threshold:
        Jump size (in sensor units) above which a sample is treated as a
        motion artefact and smoothed more heavily.  Default: 60.
    alpha_calm:
        Smoothing weight for ordinary samples.  Default: 0.32.
    alpha_jump:
        Smoothing weight for samples whose jump exceeds ``noise_threshold``.
        Default: 0.18.
    max_step:
        Maximum absolute change between consecutive emitted values.
        Default: 18.
    value_range:
        ``(low, high)`` bounds of the raw sensor reading.
    """

    def __init__(
        self,
        noise_threshold: float = 60.0,
        alpha_calm: float = 0.32,
        alpha_jump: float = 0.18,
        max_step: float = 18.0,
        value_range: Tuple[float, float] = (0.0, 255.0),
    ) -> None:
        self.noise_threshold = noise_threshold
        self.alpha_calm = alpha_calm
        self.alpha_jump = alpha_jump
        self.max_step = max_step
        self.value_range = value_range

        self._prev_smoothed: Optional[float] = None
        self._prev_emitted: Optional[float] = None

    def condition(self, raw: float) -> float:
        """Return the conditioned value for the next raw reading."""
        smoothed = self._smooth(raw)
        limited = self._clamp_jump(smoothed)
        self._prev_emitted = limited
        return limited

    def reset(self) -> None:
        """Forget all state; call at the start of every recording session."""
        self._prev_smoothed = None
        self._prev_emitted = None

    @property
    def last_value(self) -> Optional[float]:
        return self._prev_emitted

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _smooth(self, raw: float) -> float:
        low, high = self.value_range
        clipped = min(max(float(raw), low), high)

        previous = self._prev_smoothed
        if previous is None:
            self._prev_smoothed = clipped
            return clipped

        alpha = self.alpha_jump if abs(clipped - previous) > self.noise_threshold else self.alpha_calm
        blended = previous * (1.0 - alpha) + clipped * alpha
        self._prev_smoothed = blended
        return blended

    def _clamp_jump(self, value: float) -> float:
        prev = self._prev_emitted
        if prev is None:
            return value
        delta = value - prev
        if abs(delta) <= self.max_step:
            return value
        return prev + (self.max_step if delta > 0 else -self.max_step)
