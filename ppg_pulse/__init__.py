"""
PPG Pulse — fingertip photoplethysmography from a camera-and-torch stream.
Press a finger over the lens; each frame is reduced to one brightness sample,
and the pipeline in this package turns the sample stream into a heart rate,
a signal-quality verdict and a compact waveform for storage.
"""

from ppg_pulse.samples import PPGSample, SignalQuality
from ppg_pulse.signal_processor import PPGProcessor
from ppg_pulse.session import LiveUpdate, Measurement, RecordingSession, SessionPhase

__version__ = "0.1.0"
__author__ = "ppg_pulse"

__all__ = [
    "LiveUpdate",
    "Measurement",
    "PPGProcessor",
    "PPGSample",
    "RecordingSession",
    "SessionPhase",
    "SignalQuality",
]
