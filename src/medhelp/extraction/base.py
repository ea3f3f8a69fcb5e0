"""
Extraction Client Base

Shared request/parse flow for extraction services.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

import logging

import requests

from medhelp.errors import ExtractionServiceError
from medhelp.extraction.extraction_types import ExtractionDraft
from medhelp.extraction.parsing import find_json_object
from medhelp.extraction.prompts import build_prompt

logger = logging.getLogger(__name__)


class ExtractionClient:
    """An extraction service: clinical note in, ExtractionDraft out.

    Subclasses implement ``complete`` to send a prompt and return the raw
    generated text. Every failure surfaces as ExtractionServiceError so the
    intake pipeline can move on to the next service.
    """

    name = "base"

    def __init__(self, api_key: str | None = None, timeout_seconds: float = 60.0):
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    @property
    def is_configured(self) -> bool:
        """Whether an API key is available."""
        return bool(self.api_key)

    def complete(self, prompt: str) -> str:
        """Send a prompt and return the generated text."""
        raise NotImplementedError

    def _post(self, url: str, **kwargs) -> dict:
        """POST JSON and return the decoded body, raising on any failure."""
        try:
            response = requests.post(url, timeout=self.timeout_seconds, **kwargs)
        except requests.RequestException as e:
            raise ExtractionServiceError(self.name, f"unreachable: {e}") from e

        if response.status_code != 200:
            raise ExtractionServiceError(
                self.name, f"API error {response.status_code} - {response.text[:500]}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise ExtractionServiceError(self.name, "response body is not JSON") from e

    def extract(self, note: str) -> ExtractionDraft:
        """Extract draft patient fields from a clinical note."""
        if not self.is_configured:
            raise ExtractionServiceError(self.name, "API key is not configured")

        generated = self.complete(build_prompt(note))

        logger.debug("[%s] Raw response length: %d", self.name, len(generated))
        logger.debug("[%s] Raw response preview: %s", self.name, generated[:500])

        data = find_json_object(generated)
        if data is None:
            raise ExtractionServiceError(self.name, "no JSON object found in response")

        draft = ExtractionDraft.from_payload(data)
        if draft.is_empty:
            raise ExtractionServiceError(self.name, "response contained no usable fields")

        logger.debug("[%s] Extracted fields: %s", self.name, draft.set_fields())
        return draft
