"""
Record Backends

Interchangeable persistence for patient records.

Supports multiple backends:
- memory: in-process dictionary (tests, demos)
- local: one JSON file per user on the local device
- remote: PostgREST-style table API (e.g. a hosted Postgres)

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from dataclasses import dataclass
from pathlib import Path
import json
import logging
import os
import re
import tempfile

import requests

from medhelp.errors import PersistenceError
from medhelp.records.record_types import PatientRecord

logger = logging.getLogger(__name__)


class RecordBackend:
    """Base class for record persistence.

    ``put`` and ``remove`` receive both the changed record and the full
    post-change collection, newest first. Collection-oriented backends write
    the collection, row-oriented backends write only the changed row.
    """

    name = "base"

    def load(self, owner_id: str) -> list[PatientRecord]:
        raise NotImplementedError

    def put(
        self, owner_id: str, record: PatientRecord, collection: list[PatientRecord]
    ) -> None:
        raise NotImplementedError

    def remove(
        self, owner_id: str, record_id: str, collection: list[PatientRecord]
    ) -> None:
        raise NotImplementedError


class InMemoryBackend(RecordBackend):
    """Records kept in a dictionary keyed by owner."""

    name = "memory"

    def __init__(self):
        self._data: dict[str, list[dict]] = {}

    def load(self, owner_id: str) -> list[PatientRecord]:
        return [PatientRecord.from_dict(d) for d in self._data.get(owner_id, [])]

    def put(self, owner_id, record, collection) -> None:
        self._data[owner_id] = [r.to_dict() for r in collection]

    def remove(self, owner_id, record_id, collection) -> None:
        self._data[owner_id] = [r.to_dict() for r in collection]


class JsonFileBackend(RecordBackend):
    """One JSON document per owner, rewritten whole on every change."""

    name = "local"

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir).expanduser()

    def path_for(self, owner_id: str) -> Path:
        """File holding an owner's records."""
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", owner_id)
        return self.data_dir / "records" / f"{safe}.json"

    def load(self, owner_id: str) -> list[PatientRecord]:
        path = self.path_for(owner_id)
        if not path.exists():
            return []
        try:
            with open(path) as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError(f"expected an object, got {type(data).__name__}")
            return [PatientRecord.from_dict(d) for d in data.get("records", [])]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise PersistenceError(f"Could not read {path}: {e}", "load") from e

    def _write(self, owner_id: str, collection: list[PatientRecord], operation: str) -> None:
        path = self.path_for(owner_id)
        payload = {"owner": owner_id, "records": [r.to_dict() for r in collection]}
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
            try:
                with os.fdopen(fd, "w") as f:
                    json.dump(payload, f, indent=2)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise PersistenceError(f"Could not write {path}: {e}", operation) from e
        logger.debug("Wrote %d records to %s", len(collection), path)

    def put(self, owner_id, record, collection) -> None:
        self._write(owner_id, collection, "put")

    def remove(self, owner_id, record_id, collection) -> None:
        self._write(owner_id, collection, "remove")


@dataclass
class RestBackendConfig:
    """Configuration for the remote table backend."""

    base_url: str
    api_key: str | None = None
    table: str = "patients"
    timeout_seconds: float = 30.0

    @classmethod
    def from_env(cls) -> "RestBackendConfig":
        """Create configuration from environment variables."""
        return cls(
            base_url=os.environ.get("MEDHELP_REMOTE_URL", ""),
            api_key=os.environ.get("MEDHELP_REMOTE_KEY"),
            table=os.environ.get("MEDHELP_REMOTE_TABLE", "patients"),
            timeout_seconds=float(os.environ.get("MEDHELP_REMOTE_TIMEOUT", "30.0")),
        )


class RestBackend(RecordBackend):
    """Row-per-record persistence over a PostgREST-style HTTP API."""

    name = "remote"

    def __init__(self, config: RestBackendConfig):
        if not config.base_url:
            raise ValueError(
                "base_url required for remote backend. "
                "Set MEDHELP_REMOTE_URL or pass base_url in config."
            )
        self.config = config

    @property
    def _endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/rest/v1/{self.config.table}"

    @property
    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["apikey"] = self.config.api_key
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    def _request(
        self, method: str, operation: str, prefer: str | None = None, **kwargs
    ) -> requests.Response:
        headers = self._headers
        if prefer:
            headers["Prefer"] = prefer
        try:
            response = requests.request(
                method,
                self._endpoint,
                headers=headers,
                timeout=self.config.timeout_seconds,
                **kwargs,
            )
        except requests.RequestException as e:
            raise PersistenceError(f"Remote store unreachable: {e}", operation) from e

        if not 200 <= response.status_code < 300:
            raise PersistenceError(
                f"Remote store error: {response.status_code} - {response.text[:500]}",
                operation,
            )
        return response

    def load(self, owner_id: str) -> list[PatientRecord]:
        response = self._request(
            "GET",
            "load",
            params={
                "select": "*",
                "user_id": f"eq.{owner_id}",
                "order": "created_at.desc",
            },
        )
        try:
            rows = response.json()
            return [PatientRecord.from_dict(row) for row in rows]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise PersistenceError(f"Malformed rows from remote store: {e}", "load") from e

    def put(self, owner_id, record, collection) -> None:
        # Upsert on primary key so the same call serves create and update
        self._request(
            "POST",
            "put",
            params={"on_conflict": "id"},
            json=record.to_row(owner_id),
            prefer="resolution=merge-duplicates",
        )

    def remove(self, owner_id, record_id, collection) -> None:
        self._request(
            "DELETE",
            "remove",
            params={"id": f"eq.{record_id}", "user_id": f"eq.{owner_id}"},
        )


def create_backend(storage) -> RecordBackend:
    """Create a backend from a StorageConfig."""
    if storage.backend == "memory":
        return InMemoryBackend()
    if storage.backend == "local":
        return JsonFileBackend(storage.data_dir)
    if storage.backend == "remote":
        return RestBackend(
            RestBackendConfig(
                base_url=storage.remote_url or "",
                api_key=storage.remote_api_key,
                table=storage.remote_table,
                timeout_seconds=storage.timeout_seconds,
            )
        )
    raise ValueError(f"Unknown storage backend: {storage.backend}")
