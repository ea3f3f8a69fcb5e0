"""
Record Store

Owns the current user's patient records and keeps them in step with a backend.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from __future__ import annotations

from datetime import timezone, tzinfo
from typing import Any
import logging

from medhelp.errors import NotFoundError
from medhelp.identity import IdentityProvider
from medhelp.records.backends import RecordBackend
from medhelp.records.record_types import PatientRecord
from medhelp.records.search import filter_records, search_records

logger = logging.getLogger(__name__)


class RecordStore:
    """CRUD and search over the signed-in user's records.

    Records are loaded from the backend when the store is created and again
    whenever the signed-in user changes. Every mutation is persisted before it
    returns; if persisting fails the in-memory change is rolled back and the
    PersistenceError propagates.
    """

    def __init__(
        self,
        backend: RecordBackend,
        identity: IdentityProvider,
        tz: tzinfo = timezone.utc,
    ):
        self.backend = backend
        self.identity = identity
        self.tz = tz
        self._owner_id: str | None = None
        self._records: list[PatientRecord] = []
        self.reload()

    @property
    def owner_id(self) -> str | None:
        """Id of the user whose records are loaded."""
        return self._owner_id

    def reload(self) -> None:
        """Re-read the current user's records from the backend."""
        user = self.identity.current_user()
        if user is None:
            self._owner_id = None
            self._records = []
            return

        records = self.backend.load(user.id)
        self._records = sorted(records, key=lambda r: r.created_at, reverse=True)
        self._owner_id = user.id
        logger.debug("Loaded %d records for %s from %s", len(records), user.id, self.backend.name)

    def _sync_owner(self) -> None:
        user = self.identity.current_user()
        current = user.id if user else None
        if current != self._owner_id:
            self.reload()

    def _require_owner(self) -> str:
        user = self.identity.require_user()
        if user.id != self._owner_id:
            self.reload()
        return user.id

    def _index(self, record_id: str) -> int:
        for i, record in enumerate(self._records):
            if record.id == record_id:
                return i
        raise NotFoundError(record_id)

    def list(self) -> list[PatientRecord]:
        """All records, newest first."""
        self._sync_owner()
        return list(self._records)

    def get(self, record_id: str) -> PatientRecord:
        """Get a record by id."""
        self._sync_owner()
        return self._records[self._index(record_id)]

    def add(self, fields: dict[str, Any]) -> PatientRecord:
        """Create, persist and return a new record."""
        owner = self._require_owner()
        record = PatientRecord.create(fields)

        previous = self._records
        self._records = [record] + previous
        try:
            self.backend.put(owner, record, list(self._records))
        except Exception:
            self._records = previous
            raise

        logger.info("Created patient record %s", record.id)
        return record

    def update(self, record_id: str, updates: dict[str, Any]) -> PatientRecord:
        """Merge ``updates`` into a record and persist it."""
        owner = self._require_owner()
        index = self._index(record_id)
        updated = self._records[index].with_updates(updates)

        previous = self._records
        self._records = previous[:index] + [updated] + previous[index + 1:]
        try:
            self.backend.put(owner, updated, list(self._records))
        except Exception:
            self._records = previous
            raise

        logger.info("Updated patient record %s", record_id)
        return updated

    def delete(self, record_id: str) -> None:
        """Remove a record permanently."""
        owner = self._require_owner()
        index = self._index(record_id)

        previous = self._records
        self._records = previous[:index] + previous[index + 1:]
        try:
            self.backend.remove(owner, record_id, list(self._records))
        except Exception:
            self._records = previous
            raise

        logger.info("Deleted patient record %s", record_id)

    def search(self, query: str | None) -> list[PatientRecord]:
        """Case-insensitive search over name, symptoms and history."""
        return search_records(self.list(), query)

    def filter(self, query: str | None = "", date_text: str | None = "") -> list[PatientRecord]:
        """Text search combined with a dd/mm/yy or dd/mm/yyyy date filter."""
        return filter_records(self.list(), query, date_text, self.tz)

    def __len__(self) -> int:
        return len(self.list())
