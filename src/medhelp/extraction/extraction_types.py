"""
Extraction Data Types

Provisional patient fields guessed by an extraction service.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from dataclasses import dataclass, field, fields
from typing import Any
import re

DRAFT_FIELDS = (
    "age",
    "history",
    "symptoms",
    "tests",
    "allergies",
    "possible_condition",
    "recommendations",
)

# Keys accepted from AI payloads, mapped onto draft fields
PAYLOAD_KEYS = {
    "age": "age",
    "history": "history",
    "symptoms": "symptoms",
    "tests": "tests",
    "allergies": "allergies",
    "possibleCondition": "possible_condition",
    "possible_condition": "possible_condition",
    "recommendations": "recommendations",
}

_LEADING_INT = re.compile(r"^\s*(\d+)")


def coerce_age(value: Any) -> int | None:
    """Coerce an AI-supplied age to a non-negative int, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if value != value or value < 0 or not value.is_integer():
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def coerce_text(value: Any) -> str | None:
    """Coerce an AI-supplied text field to a non-empty string, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        parts = [coerce_text(v) for v in value]
        joined = ", ".join(p for p in parts if p)
        return joined or None
    return None


@dataclass
class ExtractionDraft:
    """Possibly-partial patient fields pending clinician review."""

    age: int | None = None
    history: str | None = None
    symptoms: str | None = None
    tests: str | None = None
    allergies: str | None = None
    possible_condition: str | None = None
    recommendations: str | None = None

    @property
    def is_empty(self) -> bool:
        """True when no field is set."""
        return not self.set_fields()

    def set_fields(self) -> list[str]:
        """Names of fields holding a usable value."""
        names = []
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            names.append(f.name)
        return names

    def to_dict(self) -> dict[str, Any]:
        """Only the set fields."""
        return {name: getattr(self, name) for name in self.set_fields()}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "ExtractionDraft":
        """Map a loosely-typed AI payload onto the draft schema.

        Unknown keys are ignored; type mismatches leave the field unset.
        """
        draft = cls()
        for key, value in data.items():
            name = PAYLOAD_KEYS.get(key)
            if name is None:
                continue
            if name == "age":
                draft.age = coerce_age(value)
            else:
                setattr(draft, name, coerce_text(value))
        return draft


@dataclass
class ExtractionResult:
    """Outcome of running the intake pipeline."""

    draft: ExtractionDraft = field(default_factory=ExtractionDraft)
    backend: str | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        """True when no backend produced a usable draft."""
        return self.backend is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": not self.failed,
            "backend": self.backend,
            "draft": self.draft.to_dict(),
            "errors": list(self.errors),
        }


def merge_draft(values: dict[str, str], draft: ExtractionDraft) -> dict[str, str]:
    """Merge a draft into form values.

    Set draft fields overwrite the form value; unset ones leave it untouched.
    Form values are strings, so the age is rendered as text.
    """
    merged = dict(values)
    for name in draft.set_fields():
        value = getattr(draft, name)
        merged[name] = str(value)
    return merged
