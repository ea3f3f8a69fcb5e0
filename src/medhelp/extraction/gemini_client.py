"""
Gemini Client

Extraction through the Google Generative Language ``generateContent`` API.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from dataclasses import dataclass
import os

from medhelp.errors import ExtractionServiceError
from medhelp.extraction.base import ExtractionClient


@dataclass
class GeminiClientConfig:
    """Configuration for the Gemini extraction client."""

    api_key: str | None = None
    api_url: str = "https://generativelanguage.googleapis.com/v1beta/models"
    model_id: str = "gemini-2.0-flash-exp"
    max_tokens: int = 1024
    temperature: float = 0.2
    top_k: int = 40
    top_p: float = 0.95
    timeout_seconds: float = 60.0

    @classmethod
    def from_env(cls) -> "GeminiClientConfig":
        """Create configuration from environment variables."""
        return cls(
            api_key=os.environ.get("GEMINI_API_KEY"),
            model_id=os.environ.get("GEMINI_MODEL_ID", "gemini-2.0-flash-exp"),
            timeout_seconds=float(os.environ.get("GEMINI_TIMEOUT", "60.0")),
        )


class GeminiClient(ExtractionClient):
    """Gemini extraction client."""

    name = "gemini"

    def __init__(self, config: GeminiClientConfig | None = None):
        self.config = config or GeminiClientConfig()
        super().__init__(
            api_key=self.config.api_key or os.environ.get("GEMINI_API_KEY"),
            timeout_seconds=self.config.timeout_seconds,
        )

    @property
    def _endpoint(self) -> str:
        base = self.config.api_url.rstrip("/")
        return f"{base}/{self.config.model_id}:generateContent"

    def complete(self, prompt: str) -> str:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.config.temperature,
                "topK": self.config.top_k,
                "topP": self.config.top_p,
                "maxOutputTokens": self.config.max_tokens,
            },
        }
        result = self._post(
            self._endpoint,
            params={"key": self.api_key},
            headers={"Content-Type": "application/json"},
            json=payload,
        )

        try:
            text = result["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            text = None

        if not isinstance(text, str) or not text.strip():
            raise ExtractionServiceError(self.name, "invalid response format")
        return text
