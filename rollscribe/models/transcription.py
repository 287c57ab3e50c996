"""Transcription-related data models."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class RecognitionUpdate:
    """One hypothesis delivered by the recognizer."""
    text: str
    is_final: bool
    confidence: float = 0.0
    language: str = "en-US"
    stability: float = 0.0  # Only meaningful for partial results
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class TranscriptSnapshot:
    """Point-in-time view of the transcript buffer."""
    finalized_text: str = ""
    partial_text: str = ""
