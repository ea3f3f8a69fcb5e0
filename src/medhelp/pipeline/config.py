"""
Application Configuration

Configuration management for storage, extraction, transcription and capture.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo
import os

import yaml


@dataclass
class StorageConfig:
    """Record persistence configuration."""

    backend: str = "local"  # memory, local, remote
    data_dir: str = "~/.medhelp"
    remote_url: str | None = None
    remote_api_key: str | None = None
    remote_table: str = "patients"
    timeout_seconds: float = 30.0


@dataclass
class ExtractionConfig:
    """Extraction configuration."""

    # Tried in order until one yields a usable draft
    backends: list[str] = field(default_factory=lambda: ["groq", "gemini"])
    groq_api_key: str | None = None
    groq_url: str = "https://api.groq.com/openai/v1/chat/completions"
    groq_model: str = "llama-3.3-70b-versatile"
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.0-flash-exp"
    max_tokens: int = 1024
    temperature: float = 0.2
    timeout_seconds: float = 60.0


@dataclass
class TranscriptionConfig:
    """Transcription configuration."""

    backend: str = "whisper"  # whisper, openai
    api_key: str | None = None
    model_id: str = "whisper-large-v3"
    language: str = "en"
    min_confidence: float = 0.0
    timeout_seconds: float = 120.0


@dataclass
class CaptureConfig:
    """Audio capture configuration."""

    sample_rate: int = 16000
    channels: int = 1
    chunk_duration_ms: int = 100
    energy_threshold: float = 0.01
    min_speech_duration_ms: float = 250


@dataclass
class AppConfig:
    """Complete application configuration."""

    name: str = "medhelp"
    version: str = "0.1.0"
    # Timezone used when matching records by calendar day
    timezone: str = "UTC"

    storage: StorageConfig = field(default_factory=StorageConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    transcription: TranscriptionConfig = field(default_factory=TranscriptionConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)

    @property
    def tzinfo(self) -> tzinfo:
        if self.timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.timezone)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppConfig":
        """Create config from dictionary."""
        config = cls()

        if "name" in data:
            config.name = data["name"]
        if "version" in data:
            config.version = data["version"]
        if "timezone" in data:
            config.timezone = data["timezone"]

        # Storage config
        if "storage" in data:
            st = data["storage"]
            config.storage = StorageConfig(
                backend=st.get("backend", "local"),
                data_dir=st.get("data_dir", "~/.medhelp"),
                remote_url=st.get("remote_url"),
                remote_api_key=st.get("remote_api_key"),
                remote_table=st.get("remote_table", "patients"),
                timeout_seconds=st.get("timeout_seconds", 30.0),
            )

        # Extraction config
        if "extraction" in data:
            ext = data["extraction"]
            config.extraction = ExtractionConfig(
                backends=list(ext.get("backends", ["groq", "gemini"])),
                groq_api_key=ext.get("groq_api_key"),
                groq_url=ext.get("groq_url", "https://api.groq.com/openai/v1/chat/completions"),
                groq_model=ext.get("groq_model", "llama-3.3-70b-versatile"),
                gemini_api_key=ext.get("gemini_api_key"),
                gemini_model=ext.get("gemini_model", "gemini-2.0-flash-exp"),
                max_tokens=ext.get("max_tokens", 1024),
                temperature=ext.get("temperature", 0.2),
                timeout_seconds=ext.get("timeout_seconds", 60.0),
            )

        # Transcription config
        if "transcription" in data:
            trans = data["transcription"]
            config.transcription = TranscriptionConfig(
                backend=trans.get("backend", "whisper"),
                api_key=trans.get("api_key"),
                model_id=trans.get("model_id", "whisper-large-v3"),
                language=trans.get("language", "en"),
                min_confidence=trans.get("min_confidence", 0.0),
                timeout_seconds=trans.get("timeout_seconds", 120.0),
            )

        # Capture config
        if "capture" in data:
            cap = data["capture"]
            config.capture = CaptureConfig(
                sample_rate=cap.get("sample_rate", 16000),
                channels=cap.get("channels", 1),
                chunk_duration_ms=cap.get("chunk_duration_ms", 100),
                energy_threshold=cap.get("energy_threshold", 0.01),
                min_speech_duration_ms=cap.get("min_speech_duration_ms", 250),
            )

        return config

    def with_env(self) -> "AppConfig":
        """Fill unset credentials and endpoints from environment variables."""
        env = os.environ
        self.storage.backend = env.get("MEDHELP_STORAGE", self.storage.backend)
        self.storage.data_dir = env.get("MEDHELP_DATA_DIR", self.storage.data_dir)
        self.storage.remote_url = self.storage.remote_url or env.get("MEDHELP_REMOTE_URL")
        self.storage.remote_api_key = self.storage.remote_api_key or env.get("MEDHELP_REMOTE_KEY")
        self.extraction.groq_api_key = self.extraction.groq_api_key or env.get("GROQ_API_KEY")
        self.extraction.gemini_api_key = self.extraction.gemini_api_key or env.get("GEMINI_API_KEY")
        if "MEDHELP_EXTRACTION_BACKENDS" in env:
            self.extraction.backends = [
                b.strip() for b in env["MEDHELP_EXTRACTION_BACKENDS"].split(",") if b.strip()
            ]
        if not self.transcription.api_key:
            key_var = "GROQ_API_KEY" if self.transcription.backend == "openai" else "HF_TOKEN"
            self.transcription.api_key = env.get(key_var)
        self.timezone = env.get("MEDHELP_TIMEZONE", self.timezone)
        return self

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Default configuration overlaid with environment variables."""
        return cls().with_env()

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary. Credentials are left out."""
        return {
            "name": self.name,
            "version": self.version,
            "timezone": self.timezone,
            "storage": {
                "backend": self.storage.backend,
                "data_dir": self.storage.data_dir,
                "remote_url": self.storage.remote_url,
                "remote_table": self.storage.remote_table,
                "timeout_seconds": self.storage.timeout_seconds,
            },
            "extraction": {
                "backends": list(self.extraction.backends),
                "groq_url": self.extraction.groq_url,
                "groq_model": self.extraction.groq_model,
                "gemini_model": self.extraction.gemini_model,
                "max_tokens": self.extraction.max_tokens,
                "temperature": self.extraction.temperature,
                "timeout_seconds": self.extraction.timeout_seconds,
            },
            "transcription": {
                "backend": self.transcription.backend,
                "model_id": self.transcription.model_id,
                "language": self.transcription.language,
                "min_confidence": self.transcription.min_confidence,
                "timeout_seconds": self.transcription.timeout_seconds,
            },
            "capture": {
                "sample_rate": self.capture.sample_rate,
                "channels": self.capture.channels,
                "chunk_duration_ms": self.capture.chunk_duration_ms,
                "energy_threshold": self.capture.energy_threshold,
                "min_speech_duration_ms": self.capture.min_speech_duration_ms,
            },
        }


def load_config(config_path: str | Path) -> AppConfig:
    """Load configuration from YAML file."""
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return AppConfig.from_dict(data)
