"""
Transcript Data Types

Data models for transcription results.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Transcript:
    """Text recognized from a recording."""

    text: str
    confidence: float = 1.0
    language: str = "en"
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True when no words were recognized."""
        return not self.text.strip()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "text": self.text,
            "confidence": self.confidence,
            "language": self.language,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transcript":
        """Create from dictionary."""
        return cls(
            text=data.get("text", ""),
            confidence=data.get("confidence", 1.0),
            language=data.get("language", "en"),
            metadata=data.get("metadata", {}),
        )
