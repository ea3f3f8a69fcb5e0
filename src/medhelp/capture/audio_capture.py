"""
Audio Capture

Microphone recording through a sounddevice input stream.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from dataclasses import dataclass
import logging

import numpy as np

from medhelp.capture.audio_utils import AudioChunk, AudioSegment
from medhelp.errors import PermissionDeniedError

logger = logging.getLogger(__name__)


@dataclass
class CaptureConfig:
    """Configuration for audio capture."""

    sample_rate: int = 16000
    channels: int = 1
    chunk_duration_ms: int = 100
    dtype: str = "float32"
    device: int | str | None = None  # None = default device

    @property
    def chunk_samples(self) -> int:
        """Number of samples per chunk."""
        return int(self.sample_rate * self.chunk_duration_ms / 1000)


class AudioCapture:
    """Records from an input device until stopped."""

    def __init__(self, config: CaptureConfig | None = None):
        self.config = config or CaptureConfig()
        self._stream = None
        self._is_capturing = False
        self._recorded_chunks: list[AudioChunk] = []
        self._sequence_number = 0

    @property
    def is_capturing(self) -> bool:
        return self._is_capturing

    def _audio_callback(self, indata: np.ndarray, frames: int, time_info, status) -> None:
        """Callback for the input stream."""
        if status:
            logger.warning("Audio capture status: %s", status)

        if len(indata.shape) > 1:
            data = np.mean(indata, axis=1)
        else:
            data = indata.flatten()

        chunk = AudioChunk(
            data=data.astype(np.float32),
            sample_rate=self.config.sample_rate,
            sequence_number=self._sequence_number,
        )
        self._sequence_number += 1
        self._recorded_chunks.append(chunk)

    def start(self) -> None:
        """Open the input device and begin recording.

        Raises PermissionDeniedError when the device cannot be opened, which
        is how refused or missing microphone access surfaces.
        """
        try:
            import sounddevice as sd
        except OSError as e:
            raise PermissionDeniedError(f"No audio input available: {e}") from e

        if self._is_capturing:
            return

        self._sequence_number = 0
        self._recorded_chunks = []

        try:
            self._stream = sd.InputStream(
                samplerate=self.config.sample_rate,
                channels=self.config.channels,
                dtype=self.config.dtype,
                blocksize=self.config.chunk_samples,
                device=self.config.device,
                callback=self._audio_callback,
            )
            self._stream.start()
        except (sd.PortAudioError, ValueError) as e:
            self._stream = None
            raise PermissionDeniedError(f"Microphone unavailable: {e}") from e

        self._is_capturing = True
        logger.debug("Audio capture started at %d Hz", self.config.sample_rate)

    def stop(self) -> AudioSegment:
        """Stop recording and return the captured audio."""
        if not self._is_capturing:
            return AudioSegment.empty(self.config.sample_rate)

        self._is_capturing = False
        if self._stream:
            self._stream.stop()
            self._stream.close()
            self._stream = None

        segment = AudioSegment.from_chunks(self._recorded_chunks, self.config.sample_rate)
        logger.debug("Audio capture stopped after %.1fs", segment.duration_seconds)
        return segment

    @staticmethod
    def list_devices() -> list[dict]:
        """List available audio input devices."""
        import sounddevice as sd

        devices = sd.query_devices()
        input_devices = []

        for i, device in enumerate(devices):
            if device["max_input_channels"] > 0:
                input_devices.append(
                    {
                        "index": i,
                        "name": device["name"],
                        "channels": device["max_input_channels"],
                        "sample_rate": device["default_samplerate"],
                    }
                )

        return input_devices
