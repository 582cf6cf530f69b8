"""
Sample sources for driving a session without live hardware.

* :class:`VideoFileSource` replays a recorded fingertip video through OpenCV
  and yields one ``(timestamp, intensity)`` pair per frame.
* :func:`read_csv_samples` replays ``timestamp,value`` rows.
* :func:`synthetic_pulse` generates a sinusoidal pulse with optional noise.

All of them produce plain ``(seconds, value)`` tuples, the same shape a live
capture callback would hand to :meth:`RecordingSession.submit`.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Generator, Iterator, List, Optional, Tuple, Union

import cv2
import numpy as np

from ppg_pulse.frame_sampler import FingerDetector, extract_intensity

logger = logging.getLogger(__name__)

Sample = Tuple[float, float]


class VideoFileSource:
    """
    Replays a video file as a stream of PPG samples.

    Parameters
    ----------
    path:
        Video file readable by ``cv2.VideoCapture``.
    step:
        Pixel sub-sampling step for intensity extraction.
    detector:
        Finger-on-lens gate; frames it rejects are skipped.  *None* disables
        gating.
    fallback_fps:
        Frame rate assumed when the container reports neither per-frame
        timestamps nor a frame rate.
    """

    def __init__(
        self,
        path: Union[str, Path],
        step: int = 2,
        detector: Optional[FingerDetector] = None,
        fallback_fps: float = 30.0,
    ) -> None:
        self.path = Path(path)
        self.step = step
        self.detector = detector
        self.fallback_fps = fallback_fps

        self._cap: "cv2.VideoCapture | None" = None
        self._fps: float = fallback_fps

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        cap = cv2.VideoCapture(str(self.path))
        if not cap.isOpened():
            raise RuntimeError(f"Cannot open video file {self.path}")
        fps = cap.get(cv2.CAP_PROP_FPS)
        self._fps = fps if fps and fps > 0 else self.fallback_fps
        self._cap = cap
        logger.info("Video opened – %s at %.1f fps", self.path, self._fps)

    def close(self) -> None:
        if self._cap is None:
            return
        self._cap.release()
        self._cap = None
        logger.info("Video closed.")

    def __enter__(self) -> "VideoFileSource":
        self.open()
        return self

    def __exit__(self, *_) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Sample acquisition
    # ------------------------------------------------------------------

    def samples(self) -> Generator[Sample, None, None]:
        """
        Yield ``(timestamp, intensity)`` until the file is exhausted.

        Timestamps come from the container (``CAP_PROP_POS_MSEC``) and are
        rebased so that the first yielded sample is at 0 s.
        """
        if self._cap is None:
            raise RuntimeError("Video is not open.  Call open() first.")

        index = 0
        origin: Optional[float] = None
        skipped = 0
        while self._cap is not None:
            ok, frame = self._cap.read()
            if not ok:
                break
            timestamp = self._frame_time(index)
            index += 1

            if self.detector is not None and not self.detector.is_finger(frame):
                skipped += 1
                continue
            value = extract_intensity(frame, self.step)
            if value is None:
                continue
            if origin is None:
                origin = timestamp
            yield timestamp - origin, value

        if skipped:
            logger.warning("Skipped %d of %d frames without a finger on the lens.", skipped, index)

    def _frame_time(self, index: int) -> float:
        pos_ms = self._cap.get(cv2.CAP_PROP_POS_MSEC)
        if pos_ms and pos_ms > 0:
            return pos_ms / 1000.0
        return index / self._fps


def read_csv_samples(path: Union[str, Path]) -> List[Sample]:
    """
    Load ``timestamp,value`` rows from *path*.

    A non-numeric first row is treated as a header.  Any other malformed row
    raises :class:`ValueError` naming its line number.
    """
    samples: List[Sample] = []
    with open(path, newline="") as fh:
        for line_no, row in enumerate(csv.reader(fh), start=1):
            if not row or not "".join(row).strip():
                continue
            try:
                timestamp, value = float(row[0]), float(row[1])
            except (ValueError, IndexError) as exc:
                if line_no == 1:
                    continue
                raise ValueError(f"{path}:{line_no}: expected 'timestamp,value', got {row!r}") from exc
            samples.append((timestamp, value))
    logger.info("Loaded %d samples from %s", len(samples), path)
    return samples


def synthetic_pulse(
    duration: float,
    fps: float = 30.0,
    bpm: float = 72.0,
    baseline: float = 128.0,
    amplitude: float = 20.0,
    noise_std: float = 0.0,
    seed: Optional[int] = None,
) -> Iterator[Sample]:
    """Yield a sinusoidal pulse ``baseline + amplitude * sin(2π f t)`` plus white noise."""
    rng = np.random.default_rng(seed)
    t = np.arange(int(round(duration * fps))) / fps
    values = baseline + amplitude * np.sin(2 * np.pi * (bpm / 60.0) * t)
    if noise_std > 0:
        values = values + rng.normal(0.0, noise_std, t.size)
    for ts, value in zip(t, values):
        yield float(ts), float(value)
