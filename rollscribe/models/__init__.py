"""Data models for the rollscribe application."""

from .transcription import RecognitionUpdate, TranscriptSnapshot
from .audio import AudioChunk, AudioStats
from .session import Session, SessionState, ControllerStatus

__all__ = [
    "RecognitionUpdate",
    "TranscriptSnapshot",
    "AudioStats",
    "AudioChunk",
    "Session",
    "SessionState",
    "ControllerStatus",
]
