"""
Voice Recorder

Dictation state machine: idle -> recording -> processing -> idle.

Each capture ends with exactly one CaptureResult delivered to the listener:
recognized text, "no speech detected", or a failure. Nothing is retried
automatically.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable
import logging

from medhelp.capture.audio_utils import AudioSegment
from medhelp.capture.vad import SpeechDetector
from medhelp.errors import MedHelpError, PermissionDeniedError

logger = logging.getLogger(__name__)

NO_SPEECH_MESSAGE = "No speech detected. Please speak clearly into the microphone."


class RecorderState(str, Enum):
    """Voice recorder states."""

    IDLE = "idle"
    RECORDING = "recording"
    PROCESSING = "processing"


class CaptureStatus(str, Enum):
    """How a capture ended."""

    TEXT = "text"
    NO_SPEECH = "no_speech"
    FAILED = "failed"


@dataclass
class CaptureResult:
    """Outcome of one capture."""

    status: CaptureStatus
    text: str | None = None
    error: MedHelpError | None = None

    @property
    def ok(self) -> bool:
        return self.status == CaptureStatus.TEXT

    @property
    def message(self) -> str:
        """User-facing notice for this outcome."""
        if self.status == CaptureStatus.TEXT:
            return f'Transcribed: "{self.text}"'
        if self.status == CaptureStatus.NO_SPEECH:
            return NO_SPEECH_MESSAGE
        return self.error.message if self.error else "Voice capture failed"


class VoiceRecorder:
    """Drives an audio source and a transcriber through one capture at a time.

    ``capture`` needs ``start()`` (may raise PermissionDeniedError) and
    ``stop() -> AudioSegment``; ``transcriber`` needs
    ``transcribe(AudioSegment) -> Transcript``.
    """

    def __init__(
        self,
        capture,
        transcriber,
        listener: Callable[[CaptureResult], None] | None = None,
        detector: SpeechDetector | None = None,
        min_confidence: float = 0.0,
    ):
        self.capture = capture
        self.transcriber = transcriber
        self.listener = listener
        self.detector = detector
        self.min_confidence = min_confidence
        self._state = RecorderState.IDLE
        self.last_result: CaptureResult | None = None

    @property
    def state(self) -> RecorderState:
        return self._state

    def _emit(self, result: CaptureResult) -> CaptureResult:
        self.last_result = result
        if self.listener is not None:
            self.listener(result)
        return result

    def start(self) -> bool:
        """Begin recording. Ignored (returns False) unless idle."""
        if self._state != RecorderState.IDLE:
            logger.debug("Ignoring start while %s", self._state.value)
            return False

        try:
            self.capture.start()
        except PermissionDeniedError as e:
            logger.warning("Voice capture refused: %s", e.message)
            self._emit(CaptureResult(CaptureStatus.FAILED, error=e))
            return False

        self._state = RecorderState.RECORDING
        logger.info("Recording started")
        return True

    def stop(self) -> CaptureResult | None:
        """Stop recording and transcribe. Ignored (returns None) unless recording."""
        if self._state != RecorderState.RECORDING:
            logger.debug("Ignoring stop while %s", self._state.value)
            return None

        self._state = RecorderState.PROCESSING
        try:
            result = self._process(self.capture.stop())
        except MedHelpError as e:
            logger.error("Voice capture failed: %s", e.message)
            result = CaptureResult(CaptureStatus.FAILED, error=e)
        except Exception as e:
            logger.exception("Voice capture failed")
            result = CaptureResult(
                CaptureStatus.FAILED,
                error=MedHelpError(f"Voice capture failed: {e}", "CAPTURE_FAILED"),
            )
        finally:
            self._state = RecorderState.IDLE
        return self._emit(result)

    def _process(self, segment: AudioSegment) -> CaptureResult:
        if segment.is_empty:
            return CaptureResult(CaptureStatus.NO_SPEECH)
        if self.detector is not None and not self.detector.contains_speech(segment):
            logger.info("No speech energy in %.1fs recording", segment.duration_seconds)
            return CaptureResult(CaptureStatus.NO_SPEECH)

        try:
            transcript = self.transcriber.transcribe(segment)
        except MedHelpError as e:
            logger.error("Transcription failed: %s", e.message)
            return CaptureResult(CaptureStatus.FAILED, error=e)

        if transcript.is_empty or transcript.confidence < self.min_confidence:
            return CaptureResult(CaptureStatus.NO_SPEECH)
        return CaptureResult(CaptureStatus.TEXT, text=transcript.text.strip())

    def toggle(self) -> CaptureResult | None:
        """Start when idle, stop when recording."""
        if self._state == RecorderState.RECORDING:
            return self.stop()
        self.start()
        return None
