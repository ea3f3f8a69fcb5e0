"""
Extraction Module

AI-assisted intake: clinical text to draft patient fields.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from medhelp.extraction.extraction_types import (
    ExtractionDraft,
    ExtractionResult,
    merge_draft,
)
from medhelp.extraction.base import ExtractionClient
from medhelp.extraction.chat_client import ChatCompletionsClient, ChatClientConfig
from medhelp.extraction.gemini_client import GeminiClient, GeminiClientConfig
from medhelp.extraction.intake import IntakePipeline, build_extractors
from medhelp.extraction.parsing import find_json_object

__all__ = [
    "ExtractionDraft",
    "ExtractionResult",
    "merge_draft",
    "ExtractionClient",
    "ChatCompletionsClient",
    "ChatClientConfig",
    "GeminiClient",
    "GeminiClientConfig",
    "IntakePipeline",
    "build_extractors",
    "find_json_object",
]
