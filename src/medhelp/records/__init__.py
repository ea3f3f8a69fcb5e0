"""
Records Module

Patient record model, persistence backends, store and search.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from medhelp.records.record_types import Gender, PatientRecord
from medhelp.records.backends import (
    RecordBackend,
    InMemoryBackend,
    JsonFileBackend,
    RestBackend,
    RestBackendConfig,
    create_backend,
)
from medhelp.records.store import RecordStore
from medhelp.records.search import filter_records, parse_date_filter, search_records

__all__ = [
    "Gender",
    "PatientRecord",
    "RecordBackend",
    "InMemoryBackend",
    "JsonFileBackend",
    "RestBackend",
    "RestBackendConfig",
    "create_backend",
    "RecordStore",
    "filter_records",
    "parse_date_filter",
    "search_records",
]
