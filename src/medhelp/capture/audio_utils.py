"""
Audio Utilities

Audio buffers passed between capture, speech detection and transcription.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from dataclasses import dataclass, field
from pathlib import Path
import io

import numpy as np


@dataclass
class AudioChunk:
    """A block of samples delivered by the input stream."""

    data: np.ndarray
    sample_rate: int
    sequence_number: int = 0

    @property
    def duration_ms(self) -> float:
        """Duration of this chunk in milliseconds."""
        return (len(self.data) / self.sample_rate) * 1000


@dataclass
class AudioSegment:
    """A complete recording, mono float32."""

    data: np.ndarray
    sample_rate: int
    metadata: dict = field(default_factory=dict)

    @classmethod
    def empty(cls, sample_rate: int = 16000) -> "AudioSegment":
        return cls(data=np.array([], dtype=np.float32), sample_rate=sample_rate)

    @classmethod
    def from_chunks(cls, chunks: list[AudioChunk], sample_rate: int) -> "AudioSegment":
        """Concatenate captured chunks into one segment."""
        if not chunks:
            return cls.empty(sample_rate)
        return cls(
            data=np.concatenate([c.data for c in chunks]).astype(np.float32),
            sample_rate=sample_rate,
        )

    @property
    def duration_seconds(self) -> float:
        """Duration in seconds."""
        return len(self.data) / self.sample_rate

    @property
    def is_empty(self) -> bool:
        return len(self.data) == 0

    @classmethod
    def from_file(cls, filepath: str | Path) -> "AudioSegment":
        """Load audio from a file."""
        import soundfile as sf

        data, sample_rate = sf.read(filepath, dtype="float32")
        if len(data.shape) > 1:
            data = np.mean(data, axis=1)
        return cls(data=data, sample_rate=sample_rate, metadata={"source_file": str(filepath)})

    @classmethod
    def from_bytes(cls, audio_bytes: bytes) -> "AudioSegment":
        """Load audio from encoded bytes (WAV, FLAC, OGG)."""
        import soundfile as sf

        with io.BytesIO(audio_bytes) as buffer:
            data, sample_rate = sf.read(buffer, dtype="float32")
        if len(data.shape) > 1:
            data = np.mean(data, axis=1)
        return cls(data=data, sample_rate=sample_rate)

    def to_bytes(self, format: str = "wav") -> bytes:
        """Encode to bytes."""
        import soundfile as sf

        buffer = io.BytesIO()
        sf.write(buffer, self.data, self.sample_rate, format=format)
        buffer.seek(0)
        return buffer.read()

    def resample(self, target_sample_rate: int) -> "AudioSegment":
        """Resample to ``target_sample_rate``."""
        if self.sample_rate == target_sample_rate or self.is_empty:
            return self

        from scipy import signal

        num_samples = int(len(self.data) * target_sample_rate / self.sample_rate)
        resampled = signal.resample(self.data, num_samples)
        return AudioSegment(
            data=resampled.astype(np.float32),
            sample_rate=target_sample_rate,
            metadata={**self.metadata, "resampled_from": self.sample_rate},
        )
