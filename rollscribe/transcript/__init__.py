"""Transcript buffer and its publisher."""

from .buffer import TranscriptBuffer
from .publisher import TranscriptPublisher

__all__ = [
    "TranscriptBuffer",
    "TranscriptPublisher",
]
