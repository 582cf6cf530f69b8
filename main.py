#!/usr/bin/env python3
"""
PPG Pulse – command-line replay driver.

Feeds recorded or generated samples through a :class:`RecordingSession`
exactly as a live capture callback would, logs the live heart rate and prints
the final measurement as JSON.

Usage
-----
    python main.py (--video PATH | --csv PATH | --synthetic) [OPTIONS]

Options
-------
    --video PATH          Replay a fingertip video (mean green channel per frame)
    --csv PATH            Replay ``timestamp,value`` rows
    --synthetic           Generate a sinusoidal pulse
    --bpm FLOAT           Synthetic pulse rate (default: 72)
    --noise FLOAT         Synthetic white-noise std (default: 1.0)
    --seed INT            Synthetic noise seed
    --length FLOAT        Synthetic signal length in seconds (default: 45)
    --duration FLOAT      Countdown after first detection (default: 30)
    --update-interval F   Live refresh cadence in seconds (default: 2)
    --display-window F    Live display window in seconds (default: 6)
    --step INT            Pixel sub-sampling step for video (default: 2)
    --no-finger-gate      Keep video frames that do not look like a finger
    --verbose             Debug logging
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Tuple

from ppg_pulse.frame_sampler import FingerDetector
from ppg_pulse.session import LiveUpdate, RecordingSession
from ppg_pulse.sources import VideoFileSource, read_csv_samples, synthetic_pulse

logger = logging.getLogger("ppg_pulse")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fingertip PPG heart-rate estimation from recorded samples",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--video", type=Path, default=None,
                        help="Fingertip video file to replay")
    source.add_argument("--csv", type=Path, default=None,
                        help="CSV file of timestamp,value rows")
    source.add_argument("--synthetic", action="store_true",
                        help="Generate a synthetic pulse")
    parser.add_argument("--bpm", type=float, default=72.0,
                        help="Synthetic pulse rate")
    parser.add_argument("--noise", type=float, default=1.0,
                        help="Synthetic white-noise standard deviation")
    parser.add_argument("--seed", type=int, default=None,
                        help="Synthetic noise seed")
    parser.add_argument("--length", type=float, default=45.0,
                        help="Synthetic signal length in seconds")
    parser.add_argument("--duration", type=float, default=30.0,
                        help="Recording countdown after first detection (s)")
    parser.add_argument("--update-interval", type=float, default=2.0,
                        help="Live BPM / quality refresh cadence (s)")
    parser.add_argument("--display-window", type=float, default=6.0,
                        help="Live display window (s)")
    parser.add_argument("--step", type=int, default=2,
                        help="Pixel sub-sampling step for video frames")
    parser.add_argument("--no-finger-gate", action="store_true",
                        help="Do not skip video frames without a finger")
    parser.add_argument("--verbose", action="store_true",
                        help="Enable debug logging")
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Replay
# ---------------------------------------------------------------------------

def _log_update(update: LiveUpdate, state: dict) -> None:
    # Once per refresh cadence is plenty for a terminal.
    if update.timestamp - state["last"] < 1.0:
        return
    state["last"] = update.timestamp
    if update.bpm is not None:
        logger.info("t=%5.1fs  BPM=%d  quality=%s  phase=%s",
                    update.timestamp, update.bpm, update.quality.value, update.phase.value)
    else:
        logger.info("t=%5.1fs  Waiting for signal…  phase=%s",
                    update.timestamp, update.phase.value)


def replay(session: RecordingSession, samples: Iterable[Tuple[float, float]]) -> None:
    session.start()
    for timestamp, value in samples:
        session.submit(timestamp, value)
        if not session.is_recording:
            break
    if session.is_recording:
        session.stop()


def run(args: argparse.Namespace) -> int:
    state = {"last": float("-inf")}
    session = RecordingSession(
        bpm_update_interval=args.update_interval,
        recording_duration=args.duration,
        display_window=args.display_window,
        on_update=lambda update: _log_update(update, state),
    )

    try:
        if args.video is not None:
            detector = None if args.no_finger_gate else FingerDetector()
            with VideoFileSource(args.video, step=args.step, detector=detector) as video:
                replay(session, video.samples())
        elif args.csv is not None:
            replay(session, read_csv_samples(args.csv))
        else:
            replay(session, synthetic_pulse(
                args.length, bpm=args.bpm, noise_std=args.noise, seed=args.seed,
            ))
    except (RuntimeError, ValueError, OSError) as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        if session.is_recording:
            session.stop()

    measurement = session.measurement
    if measurement is None:
        logger.error("Recording failed: %s", session.error_message)
        return 1

    print(json.dumps(measurement.to_dict(), indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
        datefmt="%H:%M:%S",
    )
    return run(args)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
