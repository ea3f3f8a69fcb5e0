"""
Audio Capture Module

Microphone recording, speech detection and the dictation state machine.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from medhelp.capture.audio_capture import AudioCapture, CaptureConfig
from medhelp.capture.audio_utils import AudioChunk, AudioSegment
from medhelp.capture.vad import SpeechDetector, VADConfig
from medhelp.capture.voice_recorder import (
    CaptureResult,
    CaptureStatus,
    RecorderState,
    VoiceRecorder,
)

__all__ = [
    "AudioCapture",
    "CaptureConfig",
    "AudioChunk",
    "AudioSegment",
    "SpeechDetector",
    "VADConfig",
    "CaptureResult",
    "CaptureStatus",
    "RecorderState",
    "VoiceRecorder",
]
