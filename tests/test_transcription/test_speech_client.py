"""
Tests for the speech-to-text client.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from medhelp.capture.audio_utils import AudioSegment
from medhelp.errors import TranscriptionError
from medhelp.transcription.speech_client import SpeechClient, SpeechClientConfig
from medhelp.transcription.transcript_types import Transcript


def make_response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.text = str(payload)
    response.json.return_value = payload
    return response


@pytest.fixture
def segment(speech_like_audio):
    return AudioSegment(data=speech_like_audio, sample_rate=16000)


class TestSpeechClient:
    """Tests for SpeechClient."""

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown transcription backend"):
            SpeechClient(SpeechClientConfig(backend="dictaphone"))

    def test_requires_api_key(self, segment):
        with pytest.raises(TranscriptionError, match="API key"):
            SpeechClient().transcribe(segment)

    @patch("medhelp.transcription.speech_client.requests")
    def test_whisper_posts_raw_wav(self, mock_requests, segment):
        mock_requests.post.return_value = make_response({"text": " chest pain "})
        client = SpeechClient(SpeechClientConfig(api_key="hf-token"))

        transcript = client.transcribe(segment)

        assert transcript.text == "chest pain"
        assert transcript.metadata["backend"] == "whisper"
        _, kwargs = mock_requests.post.call_args
        assert kwargs["headers"]["Content-Type"] == "audio/wav"
        assert kwargs["data"][:4] == b"RIFF"

    @patch("medhelp.transcription.speech_client.requests")
    def test_openai_posts_multipart(self, mock_requests, segment):
        mock_requests.post.return_value = make_response({"text": "fever"})
        client = SpeechClient(SpeechClientConfig(api_key="k", backend="openai"))

        transcript = client.transcribe(segment)

        assert transcript.text == "fever"
        args, kwargs = mock_requests.post.call_args
        assert args[0].endswith("/audio/transcriptions")
        assert kwargs["files"]["file"][0] == "recording.wav"
        assert kwargs["data"]["model"] == "whisper-large-v3"

    @patch("medhelp.transcription.speech_client.requests")
    def test_chunked_response(self, mock_requests, segment):
        mock_requests.post.return_value = make_response([{"text": "one"}, {"text": "two"}])
        client = SpeechClient(SpeechClientConfig(api_key="k"))

        assert client.transcribe(segment).text == "one two"

    @patch("medhelp.transcription.speech_client.requests")
    def test_resamples_to_16k(self, mock_requests, speech_like_audio):
        mock_requests.post.return_value = make_response({"text": "ok"})
        client = SpeechClient(SpeechClientConfig(api_key="k"))

        client.transcribe(AudioSegment(data=speech_like_audio, sample_rate=8000))

        _, kwargs = mock_requests.post.call_args
        restored = AudioSegment.from_bytes(kwargs["data"])
        assert restored.sample_rate == 16000

    @patch("medhelp.transcription.speech_client.requests")
    def test_api_error(self, mock_requests, segment):
        mock_requests.post.return_value = make_response("overloaded", status_code=503)
        client = SpeechClient(SpeechClientConfig(api_key="k"))

        with pytest.raises(TranscriptionError, match="503"):
            client.transcribe(segment)

    @patch("medhelp.transcription.speech_client.requests")
    def test_unreachable(self, mock_requests, segment):
        mock_requests.RequestException = requests.RequestException
        mock_requests.post.side_effect = requests.ConnectionError("no route")
        client = SpeechClient(SpeechClientConfig(api_key="k"))

        with pytest.raises(TranscriptionError, match="unreachable"):
            client.transcribe(segment)

    @patch("medhelp.transcription.speech_client.requests")
    def test_null_confidence(self, mock_requests, segment):
        mock_requests.post.return_value = make_response({"text": "chest pain", "confidence": None})
        client = SpeechClient(SpeechClientConfig(api_key="k"))

        transcript = client.transcribe(segment)

        assert transcript.text == "chest pain"
        assert transcript.confidence == 1.0

    @patch("medhelp.transcription.speech_client.requests")
    def test_non_numeric_confidence(self, mock_requests, segment):
        mock_requests.post.return_value = make_response({"text": "cough", "confidence": "high"})
        client = SpeechClient(SpeechClientConfig(api_key="k"))

        assert client.transcribe(segment).confidence == 1.0

    @patch("medhelp.transcription.speech_client.requests")
    def test_null_chunk_text(self, mock_requests, segment):
        """Test chunks without text are skipped instead of breaking the join."""
        mock_requests.post.return_value = make_response(
            [{"text": None, "confidence": "x"}, {"text": "fever"}, "noise"]
        )
        client = SpeechClient(SpeechClientConfig(api_key="k"))

        transcript = client.transcribe(segment)

        assert transcript.text == "fever noise"
        assert transcript.confidence == 1.0

    @patch("medhelp.transcription.speech_client.requests")
    def test_unexpected_response_shape(self, mock_requests, segment):
        mock_requests.post.return_value = make_response("just a string")
        client = SpeechClient(SpeechClientConfig(api_key="k"))

        with pytest.raises(TranscriptionError, match="Unexpected transcription response"):
            client.transcribe(segment)


class TestTranscript:
    """Tests for Transcript."""

    def test_is_empty(self):
        assert Transcript(text="  ").is_empty
        assert not Transcript(text="hi").is_empty

    def test_from_dict(self):
        transcript = Transcript.from_dict({"text": "hello", "confidence": 0.5})

        assert transcript.confidence == 0.5
        assert transcript.to_dict()["text"] == "hello"
