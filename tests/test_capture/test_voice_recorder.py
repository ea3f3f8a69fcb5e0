"""
Tests for the voice recorder state machine.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from medhelp.capture.audio_utils import AudioSegment
from medhelp.capture.vad import SpeechDetector
from medhelp.capture.voice_recorder import (
    NO_SPEECH_MESSAGE,
    CaptureStatus,
    RecorderState,
    VoiceRecorder,
)
from medhelp.errors import PermissionDeniedError, TranscriptionError
from medhelp.transcription.speech_client import SpeechClient, SpeechClientConfig
from medhelp.transcription.transcript_types import Transcript


class FakeCapture:
    """Audio source returning a fixed segment."""

    def __init__(self, segment=None, error=None, stop_error=None):
        self.segment = segment
        self.error = error
        self.stop_error = stop_error
        self.starts = 0

    def start(self):
        if self.error:
            raise self.error
        self.starts += 1

    def stop(self):
        if self.stop_error:
            raise self.stop_error
        return self.segment


@pytest.fixture
def speech_segment(speech_like_audio):
    return AudioSegment(data=speech_like_audio, sample_rate=16000)


@pytest.fixture
def transcriber():
    mock = MagicMock()
    mock.transcribe.return_value = Transcript(text="  Patient reports chest pain. ", confidence=0.9)
    return mock


@pytest.fixture
def results():
    return []


class TestVoiceRecorder:
    """Tests for VoiceRecorder."""

    def test_full_cycle_emits_text(self, speech_segment, transcriber, results):
        recorder = VoiceRecorder(FakeCapture(speech_segment), transcriber, results.append)

        assert recorder.state == RecorderState.IDLE
        assert recorder.start()
        assert recorder.state == RecorderState.RECORDING

        result = recorder.stop()

        assert recorder.state == RecorderState.IDLE
        assert result.ok
        assert result.text == "Patient reports chest pain."
        assert results == [result]

    def test_overlapping_start_ignored(self, speech_segment, transcriber, results):
        capture = FakeCapture(speech_segment)
        recorder = VoiceRecorder(capture, transcriber, results.append)

        recorder.start()
        assert not recorder.start()

        recorder.stop()
        assert capture.starts == 1
        assert len(results) == 1

    def test_stop_when_idle_ignored(self, transcriber, results):
        recorder = VoiceRecorder(FakeCapture(), transcriber, results.append)

        assert recorder.stop() is None
        assert results == []

    def test_permission_denied(self, transcriber, results):
        """Test refused microphone access is reported and leaves the recorder idle."""
        capture = FakeCapture(error=PermissionDeniedError())
        recorder = VoiceRecorder(capture, transcriber, results.append)

        assert not recorder.start()

        assert recorder.state == RecorderState.IDLE
        assert results[0].status == CaptureStatus.FAILED
        assert results[0].message == "Microphone access denied"
        transcriber.transcribe.assert_not_called()

    def test_empty_recording_is_no_speech(self, transcriber, results):
        recorder = VoiceRecorder(FakeCapture(AudioSegment.empty()), transcriber, results.append)

        recorder.start()
        result = recorder.stop()

        assert result.status == CaptureStatus.NO_SPEECH
        assert result.message == NO_SPEECH_MESSAGE
        transcriber.transcribe.assert_not_called()

    def test_silence_skips_transcription(self, silent_audio, transcriber, results):
        segment = AudioSegment(data=silent_audio, sample_rate=16000)
        recorder = VoiceRecorder(
            FakeCapture(segment), transcriber, results.append, detector=SpeechDetector()
        )

        recorder.start()
        result = recorder.stop()

        assert result.status == CaptureStatus.NO_SPEECH
        transcriber.transcribe.assert_not_called()

    def test_empty_transcript_is_no_speech(self, speech_segment, results):
        transcriber = MagicMock()
        transcriber.transcribe.return_value = Transcript(text="   ")
        recorder = VoiceRecorder(FakeCapture(speech_segment), transcriber, results.append)

        recorder.start()

        assert recorder.stop().status == CaptureStatus.NO_SPEECH

    def test_low_confidence_is_no_speech(self, speech_segment, results):
        transcriber = MagicMock()
        transcriber.transcribe.return_value = Transcript(text="mumble", confidence=0.2)
        recorder = VoiceRecorder(
            FakeCapture(speech_segment), transcriber, results.append, min_confidence=0.5
        )

        recorder.start()

        assert recorder.stop().status == CaptureStatus.NO_SPEECH

    def test_transcription_failure(self, speech_segment, results):
        transcriber = MagicMock()
        transcriber.transcribe.side_effect = TranscriptionError("service down")
        recorder = VoiceRecorder(FakeCapture(speech_segment), transcriber, results.append)

        recorder.start()
        result = recorder.stop()

        assert result.status == CaptureStatus.FAILED
        assert result.message == "service down"
        assert recorder.state == RecorderState.IDLE

    def test_capture_stop_error_is_failed(self, transcriber, results):
        """Test a broken audio device still ends the capture with one result."""
        capture = FakeCapture(stop_error=RuntimeError("device unplugged"))
        recorder = VoiceRecorder(capture, transcriber, results.append)

        recorder.start()
        result = recorder.stop()

        assert recorder.state == RecorderState.IDLE
        assert results == [result]
        assert result.status == CaptureStatus.FAILED
        assert "device unplugged" in result.message
        transcriber.transcribe.assert_not_called()

    def test_unexpected_transcriber_error_is_failed(self, speech_segment, results):
        transcriber = MagicMock()
        transcriber.transcribe.side_effect = TypeError("float() argument must be a string")
        recorder = VoiceRecorder(FakeCapture(speech_segment), transcriber, results.append)

        recorder.start()
        result = recorder.stop()

        assert recorder.state == RecorderState.IDLE
        assert len(results) == 1
        assert result.status == CaptureStatus.FAILED
        assert result.error.error_code == "CAPTURE_FAILED"

    @patch("medhelp.transcription.speech_client.requests")
    def test_null_confidence_from_service(self, mock_requests, speech_segment, results):
        """Test a real client with a null confidence still yields text."""
        response = MagicMock()
        response.status_code = 200
        response.json.return_value = {"text": "chest pain", "confidence": None}
        mock_requests.post.return_value = response
        client = SpeechClient(SpeechClientConfig(api_key="k"))
        recorder = VoiceRecorder(FakeCapture(speech_segment), client, results.append)

        recorder.start()
        result = recorder.stop()

        assert result.ok
        assert result.text == "chest pain"
        assert results == [result]

    def test_can_record_again_after_result(self, speech_segment, transcriber, results):
        recorder = VoiceRecorder(FakeCapture(speech_segment), transcriber, results.append)

        for _ in range(3):
            recorder.start()
            recorder.stop()

        assert len(results) == 3
        assert all(r.ok for r in results)

    def test_processing_state_during_transcription(self, speech_segment):
        """Test the recorder reports processing while the transcriber runs."""
        seen = []
        recorder = None

        def transcribe(segment):
            seen.append(recorder.state)
            # A start while processing is ignored
            seen.append(recorder.start())
            return Transcript(text="ok")

        transcriber = MagicMock()
        transcriber.transcribe.side_effect = transcribe
        recorder = VoiceRecorder(FakeCapture(speech_segment), transcriber)

        recorder.start()
        recorder.stop()

        assert seen == [RecorderState.PROCESSING, False]

    def test_toggle(self, speech_segment, transcriber):
        recorder = VoiceRecorder(FakeCapture(speech_segment), transcriber)

        assert recorder.toggle() is None
        assert recorder.state == RecorderState.RECORDING
        assert recorder.toggle().ok
        assert recorder.last_result.text == "Patient reports chest pain."


class TestSpeechDetector:
    """Tests for energy-based speech detection."""

    def test_speech_detected(self, speech_like_audio):
        segment = AudioSegment(data=speech_like_audio, sample_rate=16000)

        assert SpeechDetector().contains_speech(segment)

    def test_silence_not_detected(self, silent_audio):
        segment = AudioSegment(data=silent_audio, sample_rate=16000)

        assert not SpeechDetector().contains_speech(segment)

    def test_short_burst_below_minimum(self):
        data = np.zeros(16000, dtype=np.float32)
        data[:1600] = 0.5
        segment = AudioSegment(data=data, sample_rate=16000)

        assert SpeechDetector().speech_duration_ms(segment) < 250
        assert not SpeechDetector().contains_speech(segment)

    def test_empty_segment(self):
        assert not SpeechDetector().contains_speech(AudioSegment.empty())
