"""Session-related data models."""

from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class SessionState(Enum):
    """Lifecycle state of the session controller."""
    IDLE = "idle"
    RECORDING = "recording"
    STOPPING = "stopping"
    SILENCE_RESTARTING = "silence_restarting"


@dataclass
class Session:
    """One active recognition attempt."""
    session_id: str
    language: str
    handle: Any  # CaptureHandle owned by the controller
    started_at: datetime = field(default_factory=datetime.now)
    cancelled: bool = False
    # Resolved exactly once, when the stream has ended and the handle is closed
    teardown_complete: Future = field(default_factory=Future)


@dataclass(frozen=True)
class ControllerStatus:
    """Observable controller state published to the UI."""
    state: SessionState = SessionState.IDLE
    is_recording: bool = False
    language: Optional[str] = None
    session_id: Optional[str] = None
