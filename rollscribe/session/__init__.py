"""Recognition session lifecycle."""

from .controller import SessionController
from .timer import SilenceTimer

__all__ = [
    "SessionController",
    "SilenceTimer",
]
