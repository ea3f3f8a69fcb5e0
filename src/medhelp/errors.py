"""
Error Types

Errors raised by the record store, intake pipeline and voice capture.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from typing import Any


class MedHelpError(Exception):
    """Base error for all MedHelp failures."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(MedHelpError):
    """Record not found for the current user."""

    def __init__(self, record_id: str) -> None:
        super().__init__(
            f"Patient record '{record_id}' not found",
            "NOT_FOUND",
            {"record_id": record_id},
        )
        self.record_id = record_id


class ValidationError(MedHelpError):
    """Record fields missing or invalid at save time."""

    def __init__(
        self,
        missing: list[str] | None = None,
        invalid: dict[str, str] | None = None,
    ) -> None:
        self.missing = list(missing or [])
        self.invalid = dict(invalid or {})

        parts = []
        if self.missing:
            parts.append(f"missing required fields: {', '.join(self.missing)}")
        if self.invalid:
            parts.append(
                "invalid fields: "
                + ", ".join(f"{k} ({v})" for k, v in self.invalid.items())
            )
        super().__init__(
            "; ".join(parts) or "invalid record",
            "VALIDATION_FAILED",
            {"missing": self.missing, "invalid": self.invalid},
        )


class PersistenceError(MedHelpError):
    """Backing store read or write failed."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        super().__init__(message, "PERSISTENCE_FAILED", {"operation": operation})
        self.operation = operation


class AuthenticationRequiredError(MedHelpError):
    """Operation needs a signed-in user."""

    def __init__(self, message: str = "Sign in to manage patient records") -> None:
        super().__init__(message, "AUTHENTICATION_REQUIRED")


class PermissionDeniedError(MedHelpError):
    """Audio input access refused or unavailable."""

    def __init__(self, message: str = "Microphone access denied") -> None:
        super().__init__(message, "PERMISSION_DENIED")


class TranscriptionError(MedHelpError):
    """Speech-to-text service failed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "TRANSCRIPTION_FAILED")


class ExtractionServiceError(MedHelpError):
    """A single extraction backend failed or returned unusable output."""

    def __init__(self, backend: str, message: str) -> None:
        super().__init__(f"{backend}: {message}", "EXTRACTION_SERVICE_ERROR", {"backend": backend})
        self.backend = backend


class ExtractionFailedError(MedHelpError):
    """Every configured extraction backend failed."""

    def __init__(self, errors: list[str]) -> None:
        message = "Failed to extract patient data"
        if errors:
            message += ": " + "; ".join(errors)
        super().__init__(message, "EXTRACTION_FAILED", {"errors": list(errors)})
        self.errors = list(errors)
