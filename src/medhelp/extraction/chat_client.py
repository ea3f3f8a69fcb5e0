"""
Chat Completions Client

Extraction through any OpenAI-compatible chat completions endpoint.
Defaults target Groq.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from dataclasses import dataclass
import os

from medhelp.errors import ExtractionServiceError
from medhelp.extraction.base import ExtractionClient


@dataclass
class ChatClientConfig:
    """Configuration for a chat completions extraction client."""

    api_key: str | None = None
    api_url: str = "https://api.groq.com/openai/v1/chat/completions"
    model_id: str = "llama-3.3-70b-versatile"
    max_tokens: int = 1024
    temperature: float = 0.2
    timeout_seconds: float = 60.0

    @classmethod
    def from_env(cls) -> "ChatClientConfig":
        """Create configuration from environment variables."""
        return cls(
            api_key=os.environ.get("GROQ_API_KEY"),
            api_url=os.environ.get(
                "GROQ_API_URL", "https://api.groq.com/openai/v1/chat/completions"
            ),
            model_id=os.environ.get("GROQ_MODEL_ID", "llama-3.3-70b-versatile"),
            timeout_seconds=float(os.environ.get("GROQ_TIMEOUT", "60.0")),
        )


class ChatCompletionsClient(ExtractionClient):
    """OpenAI-compatible chat completions extraction client."""

    name = "groq"

    def __init__(self, config: ChatClientConfig | None = None, name: str | None = None):
        self.config = config or ChatClientConfig()
        super().__init__(
            api_key=self.config.api_key or os.environ.get("GROQ_API_KEY"),
            timeout_seconds=self.config.timeout_seconds,
        )
        if name:
            self.name = name

    @property
    def _headers(self) -> dict[str, str]:
        """Request headers."""
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def complete(self, prompt: str) -> str:
        payload = {
            "model": self.config.model_id,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }
        result = self._post(self.config.api_url, headers=self._headers, json=payload)

        # OpenAI format: {"choices": [{"message": {"content": "..."}}]}
        try:
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not isinstance(content, str) or not content.strip():
            raise ExtractionServiceError(self.name, "invalid response format")
        return content
