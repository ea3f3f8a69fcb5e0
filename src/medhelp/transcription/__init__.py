"""
Transcription Module

Speech-to-text for dictated clinical notes.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from medhelp.transcription.transcript_types import Transcript
from medhelp.transcription.speech_client import SpeechClient, SpeechClientConfig

__all__ = [
    "Transcript",
    "SpeechClient",
    "SpeechClientConfig",
]
