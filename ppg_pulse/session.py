"""
Recording session: per-sample hand-off, live refresh and the final record.

Phases
------
``IDLE`` ─start()─▶ ``ACQUIRING`` ─first BPM─▶ ``DETECTED`` ─stop() / countdown─▶ ``COMPLETE``

While *acquiring*, samples accumulate until the live estimator produces its
first heart rate.  At that moment the session records a trim timestamp (the
early ramp-up while the finger settles is discarded from the final record)
and starts the countdown.  ``stop()`` may be called in either phase; a session
that never detected a pulse keeps its whole buffer.

Threading
---------
:meth:`RecordingSession.submit` is called from the capture thread.  The
conditioner is owned by that thread and runs outside the lock; only the append
to the shared buffer (and the copy taken for the batch stages) happens under
it.  Everything downstream works on that immutable snapshot.
"""

from __future__ import annotations

import enum
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from ppg_pulse.conditioner import StreamConditioner
from ppg_pulse.samples import PPGSample, SignalQuality, estimate_sample_rate
from ppg_pulse.signal_processor import PPGProcessor

logger = logging.getLogger(__name__)


class SessionPhase(enum.Enum):
    IDLE = "idle"
    ACQUIRING = "acquiring"
    DETECTED = "detected"
    COMPLETE = "complete"


@dataclass(frozen=True)
class LiveUpdate:
    """What a display needs after each submitted sample."""

    timestamp: float
    bpm: Optional[int]
    quality: SignalQuality
    display: Tuple[PPGSample, ...]
    phase: SessionPhase


@dataclass(frozen=True)
class Measurement:
    """
    Final result of one recording session.

    ``bpm`` is 0 when no estimate was ever available; check :attr:`has_bpm`.
    ``ppg_data`` is the cleaned waveform reduced to a fixed number of values.
    """

    duration: float
    sample_rate: float
    bpm: int
    quality: SignalQuality
    ppg_data: Tuple[float, ...]
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_bpm(self) -> bool:
        return self.bpm > 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "duration": self.duration,
            "sampleRate": self.sample_rate,
            "bpm": self.bpm,
            "quality": self.quality.value,
            "ppgData": list(self.ppg_data),
        }


class RecordingSession:
    """
    One continuous recording attempt.

    Parameters
    ----------
    processor:
        Batch analyser; a default :class:`PPGProcessor` when omitted.
    conditioner:
        Per-sample smoother; a default :class:`StreamConditioner` when omitted.
    bpm_update_interval:
        Seconds of session time between live BPM / quality refreshes.
    recording_duration:
        Countdown length in seconds, started when the first BPM is detected.
    display_window:
        Seconds of signal in the live display series.
    min_total_samples:
        Fewer raw samples than this at the end of the session is a failure.
    min_trimmed_samples:
        Fewer samples than this after trimming to the detection point is a
        failure.
    on_update:
        Called with a :class:`LiveUpdate` after every accepted sample.
    on_complete:
        Called once with the :class:`Measurement`, or *None* on failure.
    """

    def __init__(
        self,
        processor: Optional[PPGProcessor] = None,
        conditioner: Optional[StreamConditioner] = None,
        bpm_update_interval: float = 2.0,
        recording_duration: float = 30.0,
        display_window: float = 6.0,
        min_total_samples: int = 50,
        min_trimmed_samples: int = 20,
        on_update: Optional[Callable[[LiveUpdate], None]] = None,
        on_complete: Optional[Callable[[Optional[Measurement]], None]] = None,
    ) -> None:
        self.processor = processor or PPGProcessor()
        self.conditioner = conditioner or StreamConditioner()
        self.bpm_update_interval = bpm_update_interval
        self.recording_duration = recording_duration
        self.display_window = display_window
        self.min_total_samples = min_total_samples
        self.min_trimmed_samples = min_trimmed_samples
        self.on_update = on_update
        self.on_complete = on_complete

        self._lock = threading.Lock()
        self._samples: List[PPGSample] = []
        self._done = threading.Event()
        self._phase = SessionPhase.IDLE
        self._reset_live_state()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Reset all per-session state and begin acquiring."""
        self.conditioner.reset()
        with self._lock:
            self._samples = []
            self._done = threading.Event()
            self._reset_live_state()
            self._phase = SessionPhase.ACQUIRING
        logger.info("Recording started – waiting for a pulse.")

    def stop(self) -> Optional[Measurement]:
        """
        End the session and build the final record.

        Returns the :class:`Measurement`, or *None* when too little data was
        collected (see :attr:`error_message`).  Calling ``stop()`` again
        returns the same outcome without recomputing it; a call that arrives
        from another thread while the record is being built waits for it.
        """
        with self._lock:
            if self._phase is SessionPhase.IDLE:
                raise RuntimeError("Session is not recording.  Call start() first.")
            done = self._done
            finishing = self._phase is not SessionPhase.COMPLETE
            if finishing:
                self._phase = SessionPhase.COMPLETE
                samples = tuple(self._samples)

        if not finishing:
            # Another caller is still building the record.
            done.wait()
            return self._measurement

        try:
            measurement = self._finish(samples)
            self._measurement = measurement
        finally:
            done.set()
        if self.on_complete is not None:
            self.on_complete(measurement)
        return measurement

    # ------------------------------------------------------------------
    # Sample hand-off
    # ------------------------------------------------------------------

    def submit(self, timestamp: float, raw_value: float) -> Optional[LiveUpdate]:
        """
        Condition and store one raw reading; refresh the live outputs.

        Samples arriving while the session is not recording are ignored.
        """
        if not self.is_recording:
            logger.debug("Ignoring sample at t=%.3f – session %s", timestamp, self._phase.value)
            return None

        sample = PPGSample(float(timestamp), self.conditioner.condition(raw_value))
        with self._lock:
            if self._phase not in (SessionPhase.ACQUIRING, SessionPhase.DETECTED):
                return None
            self._samples.append(sample)
            snapshot = tuple(self._samples)

        sample_rate = estimate_sample_rate(snapshot)
        display = tuple(
            self.processor.filtered_for_display(snapshot, sample_rate, self.display_window)
        )
        self._filtered_samples = display

        if self._last_refresh is None:
            self._last_refresh = sample.timestamp
        elif sample.timestamp - self._last_refresh >= self.bpm_update_interval:
            self._last_refresh = sample.timestamp
            self._refresh_estimates(snapshot, sample_rate)

        update = LiveUpdate(
            timestamp=sample.timestamp,
            bpm=self._current_bpm,
            quality=self._signal_quality,
            display=display,
            phase=self._phase,
        )
        if self.on_update is not None:
            self.on_update(update)

        if self._countdown_elapsed(sample.timestamp):
            logger.info("Recording countdown finished at t=%.1f s.", sample.timestamp)
            self.stop()
        return update

    def snapshot(self) -> Tuple[PPGSample, ...]:
        """Immutable copy of the conditioned samples collected so far."""
        with self._lock:
            return tuple(self._samples)

    # ------------------------------------------------------------------
    # Live state
    # ------------------------------------------------------------------

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def is_recording(self) -> bool:
        return self._phase in (SessionPhase.ACQUIRING, SessionPhase.DETECTED)

    @property
    def current_bpm(self) -> Optional[int]:
        return self._current_bpm

    @property
    def signal_quality(self) -> SignalQuality:
        return self._signal_quality

    @property
    def filtered_samples(self) -> Tuple[PPGSample, ...]:
        return self._filtered_samples

    @property
    def trim_timestamp(self) -> Optional[float]:
        """Session time of the first BPM detection; fixed once set."""
        return self._trim_timestamp

    @property
    def time_remaining(self) -> float:
        """Seconds left on the countdown (full duration until detection)."""
        if self._trim_timestamp is None or not self._samples:
            return self.recording_duration
        elapsed = self._samples[-1].timestamp - self._trim_timestamp
        return max(0.0, self.recording_duration - elapsed)

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def measurement(self) -> Optional[Measurement]:
        return self._measurement

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _reset_live_state(self) -> None:
        self._current_bpm: Optional[int] = None
        self._last_known_bpm: Optional[int] = None
        self._signal_quality = SignalQuality.NOISY
        self._filtered_samples: Tuple[PPGSample, ...] = ()
        self._last_refresh: Optional[float] = None
        self._trim_timestamp: Optional[float] = None
        self._error_message: Optional[str] = None
        self._measurement: Optional[Measurement] = None

    def _refresh_estimates(self, snapshot: Tuple[PPGSample, ...], sample_rate: float) -> None:
        bpm = self.processor.calculate_bpm(snapshot, sample_rate)
        quality = self.processor.assess_quality(snapshot, sample_rate)
        self._current_bpm = bpm
        self._signal_quality = quality
        if bpm is not None:
            self._last_known_bpm = bpm
        logger.debug("Live refresh: bpm=%s quality=%s rate=%.1f Hz", bpm, quality.value, sample_rate)

        if bpm is not None and self._phase is SessionPhase.ACQUIRING:
            with self._lock:
                if self._phase is SessionPhase.ACQUIRING:
                    self._phase = SessionPhase.DETECTED
                    self._trim_timestamp = snapshot[-1].timestamp
            logger.info(
                "Pulse detected (%d BPM) at t=%.1f s – countdown %.0f s started.",
                bpm, snapshot[-1].timestamp, self.recording_duration,
            )

    def _countdown_elapsed(self, timestamp: float) -> bool:
        return (
            self._phase is SessionPhase.DETECTED
            and self._trim_timestamp is not None
            and timestamp - self._trim_timestamp >= self.recording_duration
        )

    def _fail(self, message: str, count: int) -> None:
        self._error_message = message
        logger.warning("%s (%d samples).", message, count)

    def _finish(self, samples: Tuple[PPGSample, ...]) -> Optional[Measurement]:
        if len(samples) < self.min_total_samples:
            self._fail("Insufficient data collected", len(samples))
            return None

        sample_rate = estimate_sample_rate(samples)

        if self._trim_timestamp is not None:
            trimmed = [s for s in samples if s.timestamp >= self._trim_timestamp]
        else:
            trimmed = list(samples)
        if len(trimmed) < self.min_trimmed_samples:
            self._fail("Insufficient stable data collected", len(trimmed))
            return None

        cleaned = self.processor.cleaned_signal(trimmed, sample_rate)
        bpm = self.processor.calculate_bpm(cleaned, sample_rate)
        if bpm is None:
            bpm = self._last_known_bpm or 0
            logger.info("Final estimate unavailable – falling back to %d BPM.", bpm)
        quality = self.processor.assess_quality(cleaned, sample_rate)

        measurement = Measurement(
            duration=cleaned[-1].timestamp - cleaned[0].timestamp,
            sample_rate=sample_rate,
            bpm=bpm,
            quality=quality,
            ppg_data=tuple(self.processor.downsample(cleaned)),
        )
        logger.info(
            "Recording complete: %d BPM, %s, %.1f s at %.1f Hz.",
            measurement.bpm, measurement.quality.value, measurement.duration, sample_rate,
        )
        return measurement
