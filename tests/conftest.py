"""
Pytest Configuration and Shared Fixtures

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable
from unittest.mock import MagicMock

import numpy as np
import pytest

from medhelp.identity import StaticIdentityProvider, User
from medhelp.records.backends import InMemoryBackend
from medhelp.records.store import RecordStore


# =============================================================================
# ENVIRONMENT
# =============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real credentials out of tests."""
    for var in [
        "GROQ_API_KEY",
        "GEMINI_API_KEY",
        "HF_TOKEN",
        "MEDHELP_REMOTE_URL",
        "MEDHELP_REMOTE_KEY",
        "MEDHELP_STORAGE",
        "MEDHELP_DATA_DIR",
        "MEDHELP_EXTRACTION_BACKENDS",
        "MEDHELP_TIMEZONE",
    ]:
        monkeypatch.delenv(var, raising=False)


# =============================================================================
# IDENTITY / STORE FIXTURES
# =============================================================================


@pytest.fixture
def user() -> User:
    """Signed-in clinician."""
    return User(id="user-1", name="Dr. Ada", email="ada@example.org")


@pytest.fixture
def other_user() -> User:
    """A second clinician."""
    return User(id="user-2", name="Dr. Bo", email="bo@example.org")


@pytest.fixture
def identity(user: User) -> StaticIdentityProvider:
    return StaticIdentityProvider(user)


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def store(backend: InMemoryBackend, identity: StaticIdentityProvider) -> RecordStore:
    return RecordStore(backend, identity)


@pytest.fixture
def patient_fields() -> dict[str, Any]:
    """Valid fields for a new record."""
    return {
        "name": "John Doe",
        "age": 54,
        "gender": "male",
        "history": "Type 2 diabetes",
        "symptoms": "Chest pain for two days",
        "tests": "ECG pending",
        "allergies": "None known",
        "possible_condition": "Angina",
        "recommendations": "Cardiology referral",
    }


@pytest.fixture
def second_patient_fields() -> dict[str, Any]:
    return {
        "name": "Mary Major",
        "age": 31,
        "gender": "female",
        "history": "Asthma",
        "symptoms": "Wheezing and cough",
    }


@pytest.fixture
def march_5() -> datetime:
    """A fixed creation instant."""
    return datetime(2024, 3, 5, 14, 30, tzinfo=timezone.utc)


# =============================================================================
# EXTRACTION FIXTURES
# =============================================================================


@pytest.fixture
def sample_note() -> str:
    """Sample dictated clinical note."""
    return (
        "The patient is a 54-year-old male with a history of diabetes and chest pain "
        "for the past two days. Blood pressure is 140/90. No known allergies."
    )


@pytest.fixture
def chat_response() -> Callable[..., MagicMock]:
    """Build a mocked OpenAI-style chat completions response."""

    def _build(content: str, status_code: int = 200) -> MagicMock:
        response = MagicMock()
        response.status_code = status_code
        response.text = content
        response.json.return_value = {"choices": [{"message": {"content": content}}]}
        return response

    return _build


@pytest.fixture
def gemini_response() -> Callable[..., MagicMock]:
    """Build a mocked Gemini generateContent response."""

    def _build(text: str, status_code: int = 200) -> MagicMock:
        response = MagicMock()
        response.status_code = status_code
        response.text = text
        response.json.return_value = {
            "candidates": [{"content": {"parts": [{"text": text}]}}]
        }
        return response

    return _build


# =============================================================================
# AUDIO FIXTURES
# =============================================================================


@pytest.fixture
def silent_audio() -> np.ndarray:
    """One second of near silence."""
    return (np.random.randn(16000) * 0.001).astype(np.float32)


@pytest.fixture
def speech_like_audio() -> np.ndarray:
    """Two seconds of a loud speech-like signal."""
    t = np.linspace(0, 2.0, 32000)
    signal = (
        0.3 * np.sin(2 * np.pi * 200 * t) +
        0.2 * np.sin(2 * np.pi * 400 * t) +
        0.1 * np.sin(2 * np.pi * 800 * t)
    )
    return signal.astype(np.float32)


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================


@pytest.fixture
def sample_config_dict(tmp_path: Path) -> dict[str, Any]:
    """Sample application configuration dictionary."""
    return {
        "name": "test-medhelp",
        "version": "1.0.0",
        "timezone": "UTC",
        "storage": {
            "backend": "local",
            "data_dir": str(tmp_path / "data"),
        },
        "extraction": {
            "backends": ["gemini", "groq"],
            "temperature": 0.1,
        },
        "transcription": {
            "backend": "openai",
            "min_confidence": 0.4,
        },
        "capture": {
            "sample_rate": 16000,
            "energy_threshold": 0.02,
        },
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, sample_config_dict: dict) -> Path:
    """Create a temporary config file."""
    import yaml

    config_path = tmp_path / "config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config_dict, f)
    return config_path
