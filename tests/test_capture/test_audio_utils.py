"""
Tests for audio buffers and capture.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

import sys
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from medhelp.capture.audio_capture import AudioCapture, CaptureConfig
from medhelp.capture.audio_utils import AudioChunk, AudioSegment
from medhelp.errors import PermissionDeniedError


class TestAudioSegment:
    """Tests for AudioSegment."""

    def test_from_chunks(self):
        chunks = [
            AudioChunk(data=np.ones(1600, dtype=np.float32), sample_rate=16000, sequence_number=i)
            for i in range(5)
        ]

        segment = AudioSegment.from_chunks(chunks, 16000)

        assert len(segment.data) == 8000
        assert segment.duration_seconds == 0.5
        assert chunks[0].duration_ms == 100

    def test_from_no_chunks_is_empty(self):
        assert AudioSegment.from_chunks([], 16000).is_empty

    def test_wav_bytes(self, speech_like_audio):
        segment = AudioSegment(data=speech_like_audio, sample_rate=16000)

        restored = AudioSegment.from_bytes(segment.to_bytes())

        assert restored.sample_rate == 16000
        assert len(restored.data) == len(speech_like_audio)

    def test_resample(self, speech_like_audio):
        segment = AudioSegment(data=speech_like_audio, sample_rate=16000)

        resampled = segment.resample(8000)

        assert resampled.sample_rate == 8000
        assert len(resampled.data) == len(speech_like_audio) // 2
        assert resampled.metadata["resampled_from"] == 16000

    def test_resample_same_rate_is_noop(self, speech_like_audio):
        segment = AudioSegment(data=speech_like_audio, sample_rate=16000)

        assert segment.resample(16000) is segment


class TestAudioCapture:
    """Tests for AudioCapture with a mocked sounddevice."""

    @pytest.fixture
    def fake_sd(self):
        module = MagicMock()
        module.PortAudioError = type("PortAudioError", (Exception,), {})
        with patch.dict(sys.modules, {"sounddevice": module}):
            yield module

    def test_chunk_samples(self):
        assert CaptureConfig(sample_rate=16000, chunk_duration_ms=100).chunk_samples == 1600

    def test_start_and_stop(self, fake_sd):
        capture = AudioCapture()

        capture.start()
        assert capture.is_capturing
        capture._audio_callback(np.ones((1600, 1), dtype=np.float32), 1600, None, None)
        capture._audio_callback(np.ones((1600, 1), dtype=np.float32), 1600, None, None)
        segment = capture.stop()

        assert not capture.is_capturing
        assert len(segment.data) == 3200
        fake_sd.InputStream.return_value.close.assert_called_once()

    def test_stereo_downmixed(self, fake_sd):
        capture = AudioCapture()
        capture.start()

        capture._audio_callback(np.ones((100, 2), dtype=np.float32), 100, None, None)

        assert capture.stop().data.shape == (100,)

    def test_device_error_is_permission_denied(self, fake_sd):
        fake_sd.InputStream.side_effect = fake_sd.PortAudioError("Error querying device")
        capture = AudioCapture()

        with pytest.raises(PermissionDeniedError):
            capture.start()

        assert not capture.is_capturing

    def test_stop_without_start(self):
        assert AudioCapture().stop().is_empty

    def test_list_devices(self, fake_sd):
        fake_sd.query_devices.return_value = [
            {"name": "Speakers", "max_input_channels": 0, "default_samplerate": 48000},
            {"name": "Mic", "max_input_channels": 1, "default_samplerate": 16000},
        ]

        devices = AudioCapture.list_devices()

        assert devices == [{"index": 1, "name": "Mic", "channels": 1, "sample_rate": 16000}]
