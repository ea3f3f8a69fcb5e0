"""
Record Search

Text search and creation-date filtering over an in-memory record list.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from dataclasses import dataclass
from datetime import date, timezone, tzinfo
from typing import Iterable
import re

from medhelp.records.record_types import PatientRecord

SEARCH_FIELDS = ("name", "symptoms", "history")

_DATE_PATTERN = re.compile(r"^(\d{2})/(\d{2})/(\d{2}|\d{4})$")


@dataclass(frozen=True)
class DateFilter:
    """A calendar-day filter parsed from ``dd/mm/yy`` or ``dd/mm/yyyy``."""

    day: int
    month: int
    year: int
    short_year: bool = False
    valid: bool = True

    def matches(self, value: date) -> bool:
        """Check whether a calendar day matches this filter."""
        if not self.valid:
            return False
        year = value.year % 100 if self.short_year else value.year
        return (value.day, value.month, year) == (self.day, self.month, self.year)


NO_MATCH = DateFilter(day=0, month=0, year=0, valid=False)


def parse_date_filter(text: str | None) -> DateFilter | None:
    """Parse a date filter string.

    Blank input means "no filter" and returns None. Text in neither accepted
    format yields a filter that matches nothing.
    """
    if text is None or not text.strip():
        return None

    match = _DATE_PATTERN.match(text.strip())
    if not match:
        return NO_MATCH

    day, month, year = match.groups()
    return DateFilter(
        day=int(day),
        month=int(month),
        year=int(year),
        short_year=len(year) == 2,
    )


def search_records(records: Iterable[PatientRecord], query: str | None) -> list[PatientRecord]:
    """Case-insensitive substring search over name, symptoms and history."""
    records = list(records)
    if query is None or not query.strip():
        return records

    needle = query.strip().lower()
    return [
        r for r in records
        if any(needle in (getattr(r, f) or "").lower() for f in SEARCH_FIELDS)
    ]


def filter_records(
    records: Iterable[PatientRecord],
    query: str | None = "",
    date_text: str | None = "",
    tz: tzinfo = timezone.utc,
) -> list[PatientRecord]:
    """Apply text search and date filter together.

    ``created_at`` is converted to ``tz`` before comparing calendar days.
    """
    matched = search_records(records, query)
    date_filter = parse_date_filter(date_text)
    if date_filter is None:
        return matched
    return [r for r in matched if date_filter.matches(r.created_at.astimezone(tz).date())]
