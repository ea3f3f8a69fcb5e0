"""
Intake Pipeline

Free-form clinical text to an ExtractionDraft, trying extraction services in order.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from typing import Sequence
import logging

from medhelp.errors import ExtractionFailedError, MedHelpError
from medhelp.extraction.base import ExtractionClient
from medhelp.extraction.chat_client import ChatClientConfig, ChatCompletionsClient
from medhelp.extraction.extraction_types import ExtractionResult
from medhelp.extraction.gemini_client import GeminiClient, GeminiClientConfig

logger = logging.getLogger(__name__)

AVAILABLE_BACKENDS = ["groq", "gemini"]


class IntakePipeline:
    """Ordered fallback over extraction services.

    Services are tried one after another until one returns a usable draft.
    ``extract`` never raises for service or parsing failures: when every
    service fails it returns an empty draft with ``failed`` set.
    """

    def __init__(self, extractors: Sequence[ExtractionClient]):
        self.extractors = list(extractors)

    @property
    def backend_names(self) -> list[str]:
        return [e.name for e in self.extractors]

    def extract(self, text: str) -> ExtractionResult:
        """Extract draft patient fields from free text."""
        if not text or not text.strip():
            return ExtractionResult(errors=["no text to extract from"])

        errors: list[str] = []
        for extractor in self.extractors:
            logger.info("Extracting with backend: %s", extractor.name)
            try:
                draft = extractor.extract(text)
            except MedHelpError as e:
                logger.warning("Extraction with %s failed: %s", extractor.name, e.message)
                errors.append(e.message)
                continue
            return ExtractionResult(draft=draft, backend=extractor.name, errors=errors)

        if not self.extractors:
            errors.append("no extraction backends configured")
        logger.error("Failed to extract patient data from all backends")
        return ExtractionResult(errors=errors)

    def extract_or_raise(self, text: str) -> ExtractionResult:
        """Like ``extract`` but raise ExtractionFailedError on failure."""
        result = self.extract(text)
        if result.failed:
            raise ExtractionFailedError(result.errors)
        return result


def build_extractors(config) -> list[ExtractionClient]:
    """Create extraction clients named in an ExtractionConfig, in order."""
    extractors: list[ExtractionClient] = []
    for name in config.backends:
        if name == "groq":
            extractors.append(
                ChatCompletionsClient(
                    ChatClientConfig(
                        api_key=config.groq_api_key,
                        api_url=config.groq_url,
                        model_id=config.groq_model,
                        max_tokens=config.max_tokens,
                        temperature=config.temperature,
                        timeout_seconds=config.timeout_seconds,
                    )
                )
            )
        elif name == "gemini":
            extractors.append(
                GeminiClient(
                    GeminiClientConfig(
                        api_key=config.gemini_api_key,
                        model_id=config.gemini_model,
                        max_tokens=config.max_tokens,
                        temperature=config.temperature,
                        timeout_seconds=config.timeout_seconds,
                    )
                )
            )
        else:
            raise ValueError(
                f"Unknown extraction backend: {name}. Available: {AVAILABLE_BACKENDS}"
            )
    return extractors
