"""Abstract base classes for recognition backends."""

from abc import ABC, abstractmethod
from typing import Iterator
import itertools
import logging
import threading

from ..exceptions import AuthorizationStatus
from ..models.transcription import RecognitionUpdate

logger = logging.getLogger(__name__)

_handle_ids = itertools.count(1)


class CaptureHandle:
    """An open audio capture bound to one recognition request.

    Subclasses release their audio resources in `_release_audio`. Both
    `end_audio` and `cancel` are idempotent.
    """

    def __init__(self, language: str):
        self.language = language
        self.handle_id = f"capture_{next(_handle_ids)}"
        self.cancelled = False
        self.closed = False
        self.audio_ended = False
        self._lock = threading.Lock()

    def end_audio(self) -> None:
        """Halt capture and signal that no more audio will arrive."""
        with self._lock:
            if self.audio_ended:
                return
            self.audio_ended = True
        logger.debug(f"Ending audio for {self.handle_id}")
        self._release_audio()

    def cancel(self) -> None:
        """Abandon the recognition task; results after this point are discarded."""
        with self._lock:
            self.cancelled = True
        logger.debug(f"Cancelling recognition for {self.handle_id}")
        self.end_audio()

    def _release_audio(self) -> None:
        """Stop the audio source. Called at most once."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.handle_id}, language={self.language!r})"


class AbstractRecognitionBackend(ABC):
    """Abstract base class for streaming recognition backends."""

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize backend resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    def request_authorization(self) -> AuthorizationStatus:
        """Report whether speech recognition may be used."""
        return AuthorizationStatus.AUTHORIZED

    @abstractmethod
    def open(self, language: str) -> CaptureHandle:
        """Activate audio input for a new recognition request.

        Args:
            language: Locale tag the request is bound to (e.g. 'ja-JP')

        Returns:
            Handle owning the audio input and the request

        Raises:
            ConfigurationError: If the audio input cannot be activated
        """
        pass

    @abstractmethod
    def recognize(self, handle: CaptureHandle, partial_results: bool = True) -> Iterator[RecognitionUpdate]:
        """Stream hypotheses for the audio captured by `handle`.

        The iterator ends once audio has ended and the engine has delivered
        its last result.

        Raises:
            RecognitionError: If the engine fails mid-stream
        """
        pass

    def close(self, handle: CaptureHandle) -> None:
        """Release the capture handle. Safe to call more than once."""
        if handle.closed:
            return
        handle.end_audio()
        handle.closed = True
        logger.debug(f"Closed {handle.handle_id}")

    @abstractmethod
    def cleanup(self) -> None:
        """Clean up backend resources."""
        pass
