"""Terminal user interface."""

from .transcription_screen import TranscriptionScreen
from .keyboard_input import create_input_handler

__all__ = [
    "TranscriptionScreen",
    "create_input_handler",
]
