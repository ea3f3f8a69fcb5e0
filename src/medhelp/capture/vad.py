"""
Speech Detection

Energy-based check for whether a recording contains any speech.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from dataclasses import dataclass

import numpy as np

from medhelp.capture.audio_utils import AudioSegment


@dataclass
class VADConfig:
    """Configuration for speech detection."""

    energy_threshold: float = 0.01
    frame_duration_ms: int = 30
    min_speech_duration_ms: float = 250


class SpeechDetector:
    """Detects whether a segment holds enough loud frames to be speech."""

    def __init__(self, config: VADConfig | None = None):
        self.config = config or VADConfig()

    def frame_energies(self, segment: AudioSegment) -> np.ndarray:
        """RMS energy of each fixed-length frame."""
        frame_len = max(1, int(segment.sample_rate * self.config.frame_duration_ms / 1000))
        n_frames = len(segment.data) // frame_len
        if n_frames == 0:
            return np.array([], dtype=np.float32)
        frames = segment.data[: n_frames * frame_len].reshape(n_frames, frame_len)
        return np.sqrt(np.mean(frames**2, axis=1))

    def speech_duration_ms(self, segment: AudioSegment) -> float:
        """Total duration of frames above the energy threshold."""
        energies = self.frame_energies(segment)
        loud = int(np.sum(energies > self.config.energy_threshold))
        return loud * self.config.frame_duration_ms

    def contains_speech(self, segment: AudioSegment) -> bool:
        """True when the segment has at least the minimum amount of speech."""
        if segment.is_empty:
            return False
        return self.speech_duration_ms(segment) >= self.config.min_speech_duration_ms
