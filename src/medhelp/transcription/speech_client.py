"""
Speech Client

Speech-to-text over HTTP.

Supports multiple backends:
- whisper: Whisper via the HuggingFace Inference router (raw WAV body)
- openai: any OpenAI-compatible /audio/transcriptions endpoint (e.g. Groq)

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from dataclasses import dataclass
import logging
import os

import requests

from medhelp.capture.audio_utils import AudioSegment
from medhelp.errors import TranscriptionError
from medhelp.transcription.transcript_types import Transcript

logger = logging.getLogger(__name__)

AVAILABLE_BACKENDS = ["whisper", "openai"]


@dataclass
class SpeechClientConfig:
    """Configuration for the speech-to-text client."""

    api_key: str | None = None
    backend: str = "whisper"
    whisper_url: str = "https://router.huggingface.co/hf-inference/models/openai/whisper-large-v3"
    openai_url: str = "https://api.groq.com/openai/v1/audio/transcriptions"
    model_id: str = "whisper-large-v3"
    language: str = "en"
    timeout_seconds: float = 120.0

    @classmethod
    def from_env(cls) -> "SpeechClientConfig":
        """Create configuration from environment variables."""
        backend = os.environ.get("MEDHELP_STT_BACKEND", "whisper")
        key_var = "GROQ_API_KEY" if backend == "openai" else "HF_TOKEN"
        return cls(
            api_key=os.environ.get(key_var),
            backend=backend,
            timeout_seconds=float(os.environ.get("MEDHELP_STT_TIMEOUT", "120.0")),
        )


class SpeechClient:
    """Transcribes recorded audio through a hosted speech model."""

    def __init__(self, config: SpeechClientConfig | None = None):
        self.config = config or SpeechClientConfig()

        if self.config.backend not in AVAILABLE_BACKENDS:
            raise ValueError(
                f"Unknown transcription backend: {self.config.backend}. "
                f"Available: {AVAILABLE_BACKENDS}"
            )
        self.api_key = self.config.api_key

    def _prepare_audio(self, audio: AudioSegment) -> bytes:
        """Encode audio as 16 kHz WAV."""
        if audio.sample_rate != 16000:
            audio = audio.resample(16000)
        return audio.to_bytes(format="wav")

    def transcribe(self, audio: AudioSegment) -> Transcript:
        """Transcribe audio to text.

        Raises TranscriptionError when the service is unconfigured,
        unreachable or returns an error.
        """
        if not self.api_key:
            raise TranscriptionError(
                f"API key required for the {self.config.backend} transcription backend"
            )

        try:
            audio_bytes = self._prepare_audio(audio)
        except (RuntimeError, ValueError) as e:
            raise TranscriptionError(f"Could not encode audio: {e}") from e
        logger.info("Transcribing %.1fs of audio with backend: %s",
                    audio.duration_seconds, self.config.backend)

        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            if self.config.backend == "openai":
                response = requests.post(
                    self.config.openai_url,
                    headers=headers,
                    files={"file": ("recording.wav", audio_bytes, "audio/wav")},
                    data={
                        "model": self.config.model_id,
                        "language": self.config.language,
                        "response_format": "json",
                    },
                    timeout=self.config.timeout_seconds,
                )
            else:
                headers["Content-Type"] = "audio/wav"
                response = requests.post(
                    self.config.whisper_url,
                    headers=headers,
                    data=audio_bytes,
                    timeout=self.config.timeout_seconds,
                )
        except requests.RequestException as e:
            raise TranscriptionError(f"Transcription service unreachable: {e}") from e

        if response.status_code != 200:
            raise TranscriptionError(
                f"Transcription API error: {response.status_code} - {response.text[:500]}"
            )

        try:
            result = response.json()
        except ValueError as e:
            raise TranscriptionError("Transcription response is not JSON") from e

        # Parse response (format varies by backend)
        if isinstance(result, dict):
            text = _chunk_text(result)
            confidence = _confidence(result.get("confidence"))
        elif isinstance(result, list) and result:
            # Chunked responses: join the chunk texts
            text = " ".join(t for t in (_chunk_text(chunk) for chunk in result) if t)
            first = result[0] if isinstance(result[0], dict) else {}
            confidence = _confidence(first.get("confidence"))
        elif isinstance(result, list):
            text = ""
            confidence = 0.0
        else:
            raise TranscriptionError(
                f"Unexpected transcription response: {type(result).__name__}"
            )

        return Transcript(
            text=text.strip(),
            confidence=confidence,
            language=self.config.language,
            metadata={"model": self.config.model_id, "backend": self.config.backend},
        )


def _chunk_text(chunk) -> str:
    """Text of one response chunk; missing or null text is empty."""
    if isinstance(chunk, dict):
        chunk = chunk.get("text")
    if chunk is None:
        return ""
    return str(chunk)


def _confidence(value) -> float:
    """Confidence as a float; absent or non-numeric values count as certain."""
    if value is None or isinstance(value, bool):
        return 1.0
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 1.0
    if confidence != confidence:
        return 1.0
    return confidence
