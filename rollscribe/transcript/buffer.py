"""Transcript buffer holding finalized and in-progress text.

The buffer outlives every recognition session. `finalized_text` only grows
from the controller's side (the user may still edit it through
`edit_finalized`), while `partial_text` is replaced wholesale on every
recognizer hypothesis. Observers are notified after every mutation.
"""

import logging
import threading
from typing import Optional

from ..models.transcription import TranscriptSnapshot
from .publisher import TranscriptPublisher

logger = logging.getLogger(__name__)


class TranscriptBuffer:
    """Accumulated transcript plus the live partial hypothesis."""

    def __init__(self, separator: str = " ", publisher: Optional[TranscriptPublisher] = None):
        """Initialize transcript buffer.

        Args:
            separator: Appended after every finalized segment
            publisher: Notified with a snapshot after every mutation
        """
        self.separator = separator
        self.publisher = publisher or TranscriptPublisher()
        self._finalized_text = ""
        self._partial_text = ""
        self.lock = threading.RLock()

    @property
    def finalized_text(self) -> str:
        with self.lock:
            return self._finalized_text

    @property
    def partial_text(self) -> str:
        with self.lock:
            return self._partial_text

    def snapshot(self) -> TranscriptSnapshot:
        with self.lock:
            return TranscriptSnapshot(
                finalized_text=self._finalized_text,
                partial_text=self._partial_text,
            )

    def append_final(self, text: str) -> bool:
        """Append a finalized segment followed by the separator.

        Returns:
            False if `text` is empty or blank, in which case nothing changes
        """
        if not text or not text.strip():
            return False
        with self.lock:
            self._finalized_text += text + self.separator
            snapshot = self.snapshot()
        logger.debug(f"Appended final segment: '{text}'")
        self._notify(snapshot)
        return True

    def set_partial(self, text: str) -> None:
        with self.lock:
            self._partial_text = text
            snapshot = self.snapshot()
        self._notify(snapshot)

    def clear_partial(self) -> None:
        with self.lock:
            if not self._partial_text:
                return
            self._partial_text = ""
            snapshot = self.snapshot()
        self._notify(snapshot)

    def flush_partial(self) -> bool:
        """Move the partial hypothesis into the finalized text.

        Returns:
            True if a non-empty partial was committed
        """
        with self.lock:
            text = self._partial_text
            self._partial_text = ""
            if not text.strip():
                flushed = False
            else:
                self._finalized_text += text + self.separator
                flushed = True
            snapshot = self.snapshot()
        if flushed:
            logger.info(f"Flushed partial text: '{text}'")
        if text:
            self._notify(snapshot)
        return flushed

    def edit_finalized(self, text: str) -> None:
        """Replace the finalized text with a user edit."""
        with self.lock:
            self._finalized_text = text
            snapshot = self.snapshot()
        self._notify(snapshot)

    def reset(self) -> None:
        with self.lock:
            self._finalized_text = ""
            self._partial_text = ""
            snapshot = self.snapshot()
        logger.info("Transcript buffer reset")
        self._notify(snapshot)

    def _notify(self, snapshot: TranscriptSnapshot) -> None:
        # Outside the lock so listeners may read the buffer
        self.publisher.publish_snapshot(snapshot)
