"""
Record Data Types

Patient record model, validation and serialization.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any
import uuid

from medhelp.errors import ValidationError


class Gender(str, Enum):
    """Patient gender."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


REQUIRED_FIELDS = ("name", "age", "gender")

TEXT_FIELDS = ("history", "symptoms", "tests", "allergies")

OPTIONAL_FIELDS = ("possible_condition", "recommendations")

EDITABLE_FIELDS = REQUIRED_FIELDS + TEXT_FIELDS + OPTIONAL_FIELDS

IMMUTABLE_FIELDS = ("id", "created_at", "updated_at")

# camelCase names used in serialized records and AI payloads
CAMEL_CASE = {
    "possible_condition": "possibleCondition",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}
SNAKE_CASE = {v: k for k, v in CAMEL_CASE.items()}


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Map camelCase keys onto their snake_case field names."""
    return {SNAKE_CASE.get(k, k): v for k, v in data.items()}


def parse_timestamp(value: datetime | str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""
    if isinstance(value, datetime):
        ts = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        ts = datetime.fromisoformat(text)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Serialize a timestamp so it parses back to the same instant."""
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def coerce_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate and coerce editable record fields.

    Only the keys present in ``fields`` are checked, so this serves both full
    creation payloads and partial updates. Raises ValidationError naming every
    missing or invalid field.
    """
    missing: list[str] = []
    invalid: dict[str, str] = {}
    result: dict[str, Any] = {}

    for key, value in fields.items():
        if key == "name":
            name = str(value).strip() if value is not None else ""
            if not name:
                missing.append("name")
            else:
                result["name"] = name
        elif key == "age":
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append("age")
                continue
            try:
                if isinstance(value, bool):
                    raise ValueError
                age = int(str(value).strip()) if isinstance(value, str) else int(value)
                if isinstance(value, float) and value != age:
                    raise ValueError
            except (TypeError, ValueError):
                invalid["age"] = "must be a whole number"
                continue
            if age < 0:
                invalid["age"] = "must not be negative"
            else:
                result["age"] = age
        elif key == "gender":
            if value is None or value == "":
                missing.append("gender")
                continue
            try:
                result["gender"] = Gender(value.lower() if isinstance(value, str) else value)
            except ValueError:
                invalid["gender"] = "must be one of male, female, other"
        elif key in TEXT_FIELDS:
            result[key] = "" if value is None else str(value)
        elif key in OPTIONAL_FIELDS:
            text = None if value is None else str(value)
            result[key] = text or None
        elif key in IMMUTABLE_FIELDS:
            invalid[key] = "cannot be changed"
        else:
            invalid[key] = "unknown field"

    if missing or invalid:
        raise ValidationError(missing, invalid)
    return result


@dataclass(frozen=True)
class PatientRecord:
    """A single patient encounter owned by one user."""

    name: str
    age: int
    gender: Gender
    history: str = ""
    symptoms: str = ""
    tests: str = ""
    allergies: str = ""
    possible_condition: str | None = None
    recommendations: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.updated_at is None:
            object.__setattr__(self, "updated_at", self.created_at)

    @classmethod
    def create(cls, fields: dict[str, Any], now: datetime | None = None) -> "PatientRecord":
        """Create a new record from editable fields."""
        data = coerce_fields(normalize_keys(fields))
        absent = [f for f in REQUIRED_FIELDS if f not in data]
        if absent:
            raise ValidationError(absent)
        created = now or utcnow()
        return cls(**data, created_at=created, updated_at=created)

    def with_updates(
        self, updates: dict[str, Any], now: datetime | None = None
    ) -> "PatientRecord":
        """Return a copy with ``updates`` merged and ``updated_at`` refreshed.

        ``updated_at`` always moves strictly forward, even when the clock has
        not advanced since the previous mutation.
        """
        data = coerce_fields(normalize_keys(updates))
        stamp = now or utcnow()
        floor = self.updated_at + timedelta(microseconds=1)
        return replace(self, **data, updated_at=max(stamp, floor))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dictionary with camelCase keys."""
        return {
            "id": self.id,
            "name": self.name,
            "age": self.age,
            "gender": self.gender.value,
            "history": self.history,
            "symptoms": self.symptoms,
            "tests": self.tests,
            "allergies": self.allergies,
            "possibleCondition": self.possible_condition,
            "recommendations": self.recommendations,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }

    def to_row(self, owner_id: str) -> dict[str, Any]:
        """Convert to a snake_case database row."""
        return {
            "id": self.id,
            "user_id": owner_id,
            "name": self.name,
            "age": self.age,
            "gender": self.gender.value,
            "history": self.history,
            "symptoms": self.symptoms,
            "tests": self.tests,
            "allergies": self.allergies,
            "possible_condition": self.possible_condition,
            "recommendations": self.recommendations,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PatientRecord":
        """Create from a serialized record or database row."""
        data = normalize_keys(data)
        created = parse_timestamp(data["created_at"])
        updated = data.get("updated_at")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            age=int(data["age"]),
            gender=Gender(data["gender"]),
            history=data.get("history") or "",
            symptoms=data.get("symptoms") or "",
            tests=data.get("tests") or "",
            allergies=data.get("allergies") or "",
            possible_condition=data.get("possible_condition") or None,
            recommendations=data.get("recommendations") or None,
            created_at=created,
            updated_at=parse_timestamp(updated) if updated else created,
        )
