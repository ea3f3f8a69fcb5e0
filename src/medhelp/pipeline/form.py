"""
Patient Form

Editable form state between AI drafts and the record store.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

import logging
import threading

from medhelp.errors import ValidationError
from medhelp.extraction.extraction_types import ExtractionDraft, merge_draft
from medhelp.records.record_types import EDITABLE_FIELDS, REQUIRED_FIELDS, PatientRecord, coerce_fields
from medhelp.records.store import RecordStore

logger = logging.getLogger(__name__)


class PatientForm:
    """New-patient or edit form backed by a RecordStore.

    Values are held as strings, as typed. ``submit`` validates, then creates
    or updates the record; a submit issued while another is in flight is
    ignored.
    """

    def __init__(self, store: RecordStore, record_id: str | None = None):
        self.store = store
        self.record_id = record_id
        self.values: dict[str, str] = {name: "" for name in EDITABLE_FIELDS}
        self.last_draft: ExtractionDraft | None = None
        self._submit_lock = threading.Lock()

        if record_id is not None:
            self.load(store.get(record_id))

    @property
    def is_editing(self) -> bool:
        return self.record_id is not None

    @property
    def busy(self) -> bool:
        """True while a submit is in flight."""
        return self._submit_lock.locked()

    def load(self, record: PatientRecord) -> None:
        """Fill the form from an existing record."""
        self.record_id = record.id
        self.values = {
            "name": record.name,
            "age": str(record.age),
            "gender": record.gender.value,
            "history": record.history,
            "symptoms": record.symptoms,
            "tests": record.tests,
            "allergies": record.allergies,
            "possible_condition": record.possible_condition or "",
            "recommendations": record.recommendations or "",
        }

    def set(self, name: str, value: str) -> None:
        if name not in self.values:
            raise KeyError(name)
        self.values[name] = value

    def apply_draft(self, draft: ExtractionDraft) -> None:
        """Merge an AI draft without blanking anything already entered."""
        self.last_draft = draft
        self.values = merge_draft(self.values, draft)

    def validate(self) -> dict:
        """Return coerced fields or raise ValidationError naming the problems."""
        missing = [name for name in REQUIRED_FIELDS if not self.values.get(name, "").strip()]
        present = {k: v for k, v in self.values.items() if k not in missing}
        try:
            fields = coerce_fields(present)
        except ValidationError as e:
            raise ValidationError(missing + e.missing, e.invalid) from None
        if missing:
            raise ValidationError(missing)
        return fields

    def submit(self) -> PatientRecord | None:
        """Save the form. Returns None if a submit is already in flight."""
        if not self._submit_lock.acquire(blocking=False):
            logger.debug("Ignoring duplicate submit")
            return None
        try:
            fields = self.validate()
            if self.record_id is None:
                record = self.store.add(fields)
                self.record_id = record.id
            else:
                record = self.store.update(self.record_id, fields)
            return record
        finally:
            self._submit_lock.release()
