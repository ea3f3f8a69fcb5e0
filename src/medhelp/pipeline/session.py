"""
Clinic Session

Wires identity, record store, intake pipeline and dictation together.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from pathlib import Path
import logging

from medhelp.capture.audio_capture import AudioCapture, CaptureConfig as DeviceCaptureConfig
from medhelp.capture.vad import SpeechDetector, VADConfig
from medhelp.capture.voice_recorder import CaptureResult, VoiceRecorder
from medhelp.extraction.extraction_types import ExtractionResult
from medhelp.extraction.intake import IntakePipeline, build_extractors
from medhelp.identity import IdentityProvider, ProfileIdentityProvider
from medhelp.pipeline.config import AppConfig, load_config
from medhelp.pipeline.form import PatientForm
from medhelp.records.backends import RecordBackend, create_backend
from medhelp.records.store import RecordStore
from medhelp.transcription.speech_client import SpeechClient, SpeechClientConfig

logger = logging.getLogger(__name__)


class ClinicSession:
    """One clinician's working session."""

    def __init__(
        self,
        config: AppConfig,
        identity: IdentityProvider | None = None,
        backend: RecordBackend | None = None,
    ):
        """Initialize session with configuration."""
        self.config = config
        self.identity = identity or ProfileIdentityProvider(config.storage.data_dir)

        # Initialize components (lazy)
        self._backend = backend
        self._store: RecordStore | None = None
        self._intake: IntakePipeline | None = None
        self._transcriber: SpeechClient | None = None

    @classmethod
    def from_config(cls, config_path: str | Path | None = None) -> "ClinicSession":
        """Create session from a config file, or defaults, plus environment."""
        config = load_config(config_path) if config_path else AppConfig()
        return cls(config.with_env())

    @property
    def backend(self) -> RecordBackend:
        if self._backend is None:
            self._backend = create_backend(self.config.storage)
        return self._backend

    @property
    def store(self) -> RecordStore:
        """Get or create the record store."""
        if self._store is None:
            self._store = RecordStore(self.backend, self.identity, tz=self.config.tzinfo)
        return self._store

    @property
    def intake(self) -> IntakePipeline:
        """Get or create the intake pipeline."""
        if self._intake is None:
            self._intake = IntakePipeline(build_extractors(self.config.extraction))
        return self._intake

    @property
    def transcriber(self) -> SpeechClient:
        """Get or create the speech client."""
        if self._transcriber is None:
            trans = self.config.transcription
            self._transcriber = SpeechClient(
                SpeechClientConfig(
                    api_key=trans.api_key,
                    backend=trans.backend,
                    model_id=trans.model_id,
                    language=trans.language,
                    timeout_seconds=trans.timeout_seconds,
                )
            )
        return self._transcriber

    def new_form(self, record_id: str | None = None) -> PatientForm:
        """Open a blank form, or an edit form for ``record_id``."""
        return PatientForm(self.store, record_id)

    def recorder(self, listener=None, capture=None) -> VoiceRecorder:
        """Create a voice recorder wired to the configured transcriber."""
        cap = self.config.capture
        if capture is None:
            capture = AudioCapture(
                DeviceCaptureConfig(
                    sample_rate=cap.sample_rate,
                    channels=cap.channels,
                    chunk_duration_ms=cap.chunk_duration_ms,
                )
            )
        detector = SpeechDetector(
            VADConfig(
                energy_threshold=cap.energy_threshold,
                min_speech_duration_ms=cap.min_speech_duration_ms,
            )
        )
        return VoiceRecorder(
            capture,
            self.transcriber,
            listener=listener,
            detector=detector,
            min_confidence=self.config.transcription.min_confidence,
        )

    def extract_into(self, form: PatientForm, text: str) -> ExtractionResult:
        """Run intake on ``text`` and merge any draft into ``form``."""
        result = self.intake.extract(text)
        if not result.failed:
            form.apply_draft(result.draft)
            logger.info("AI extraction complete (%s)", result.backend)
        return result

    def dictation_listener(self, form: PatientForm, on_extracted=None):
        """Listener that sends recognized text through intake into ``form``."""

        def _listener(result: CaptureResult) -> None:
            if not result.ok:
                logger.info(result.message)
                return
            extraction = self.extract_into(form, result.text)
            if on_extracted is not None:
                on_extracted(result, extraction)

        return _listener
