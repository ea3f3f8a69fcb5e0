"""
Response Parsing

Locate and decode the JSON object inside free-form model output.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from typing import Any, Iterator
import json


def iter_balanced_objects(text: str) -> Iterator[str]:
    """Yield each balanced ``{...}`` block in order of its opening brace.

    Braces inside JSON string literals (including escaped quotes) do not
    count towards the balance. Quotes outside any block are prose and are
    ignored. An opening brace that is never closed is skipped, and the
    blocks nested after it are still found. The text is scanned once.
    """
    opens: list[int] = []
    spans: list[tuple[int, int]] = []
    in_string = False
    escaped = False

    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == "{":
            opens.append(i)
        elif ch == "}" and opens:
            spans.append((opens.pop(), i))
        elif ch == '"' and opens:
            in_string = True

    for start, end in sorted(spans):
        yield text[start:end + 1]


def find_json_object(text: str | None) -> dict[str, Any] | None:
    """Return the first balanced block that decodes to a JSON object."""
    if not text:
        return None

    for block in iter_balanced_objects(text):
        try:
            data = json.loads(block)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data
    return None
