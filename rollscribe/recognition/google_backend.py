"""Google Speech-to-Text streaming recognition backend."""

import queue
import logging
from pathlib import Path
from typing import Iterator, Optional

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.auth import exceptions as auth_exceptions
from google.oauth2 import service_account

from .base import AbstractRecognitionBackend, CaptureHandle
from ..audio.capture import AudioCapture
from ..exceptions import AuthorizationStatus, ConfigurationError, RecognitionError
from ..models.audio import AudioChunk
from ..models.transcription import RecognitionUpdate

logger = logging.getLogger(__name__)


class GoogleCaptureHandle(CaptureHandle):
    """Microphone capture whose chunks are queued for a streaming request."""

    def __init__(self, language: str, sample_rate: int, chunk_size: int, channels: int):
        super().__init__(language)
        self.audio_queue: "queue.Queue[Optional[bytes]]" = queue.Queue()
        self.audio_capture = AudioCapture(
            callback=self.on_audio_chunk,
            sample_rate=sample_rate,
            chunk_size=chunk_size,
            channels=channels,
        )

    def on_audio_chunk(self, chunk: AudioChunk) -> None:
        if chunk.data:
            self.audio_queue.put(chunk.data)

    def _release_audio(self) -> None:
        self.audio_capture.stop_recording()
        # Sentinel: the request generator stops after draining queued audio
        self.audio_queue.put(None)

    def request_chunks(self) -> Iterator[bytes]:
        """Yield queued audio until end of audio is signalled."""
        while True:
            chunk = self.audio_queue.get()
            if chunk is None or self.cancelled:
                return
            yield chunk


class GoogleStreamingBackend(AbstractRecognitionBackend):
    """Google Speech-to-Text streaming API backend."""

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 sample_rate: int = 16000,
                 chunk_size: int = 1024,
                 channels: int = 1,
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 model: str = "latest_long"):
        """Initialize Google streaming backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            sample_rate: Microphone sample rate in Hz
            chunk_size: Samples per microphone read
            channels: Number of microphone channels
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
            model: Recognition model name
        """
        self.credentials_path = credentials_path
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.model = model
        self.client: Optional[speech.SpeechClient] = None
        self.project_id = None
        self.service_name = "Google Speech-to-Text"

    def request_authorization(self) -> AuthorizationStatus:
        """Check credentials and microphone access."""
        if not self.credentials_path or not Path(self.credentials_path).exists():
            logger.warning(f"Google credentials not found: {self.credentials_path}")
            return AuthorizationStatus.NOT_DETERMINED
        try:
            service_account.Credentials.from_service_account_file(self.credentials_path)
        except (ValueError, auth_exceptions.GoogleAuthError) as e:
            logger.warning(f"Google credentials rejected: {e}")
            return AuthorizationStatus.DENIED
        if not AudioCapture.check_microphone_available():
            return AuthorizationStatus.RESTRICTED
        return AuthorizationStatus.AUTHORIZED

    def initialize(self) -> bool:
        """Initialize Google Speech client and verify credentials."""
        if not self.credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")

        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")

        logger.info("Google Speech-to-Text backend initialized successfully")
        return True

    def open(self, language: str) -> GoogleCaptureHandle:
        if self.client is None:
            raise ConfigurationError("Google Speech backend is not initialized")

        handle = GoogleCaptureHandle(
            language=language,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            channels=self.channels,
        )
        handle.audio_capture.start_recording()
        logger.info(f"Opened {handle.handle_id} for {language}")
        return handle

    def build_streaming_config(self, language: str, partial_results: bool) -> speech.StreamingRecognitionConfig:
        config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=self.sample_rate,
            audio_channel_count=self.channels,
            language_code=language,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
            model=self.model,
        )
        return speech.StreamingRecognitionConfig(config=config, interim_results=partial_results)

    def recognize(self, handle: GoogleCaptureHandle, partial_results: bool = True) -> Iterator[RecognitionUpdate]:
        streaming_config = self.build_streaming_config(handle.language, partial_results)
        requests = (
            speech.StreamingRecognizeRequest(audio_content=chunk)
            for chunk in handle.request_chunks()
        )

        try:
            responses = self.client.streaming_recognize(config=streaming_config, requests=requests)
            for response in responses:
                if handle.cancelled:
                    logger.debug(f"Discarding response for cancelled {handle.handle_id}")
                    break
                yield from self._updates_from_response(response, handle.language)
        except gax_exceptions.OutOfRange as e:
            # Maximum stream duration reached; ending normally lets the session roll over
            logger.info(f"Google stream limit reached for {handle.handle_id}: {e}")
        except gax_exceptions.GoogleAPICallError as e:
            if handle.cancelled:
                logger.debug(f"Ignoring error after cancel of {handle.handle_id}: {e}")
                return
            logger.error(f"Google STT streaming error for {handle.handle_id}: {e}")
            raise RecognitionError(f"Google Speech streaming error ({handle.handle_id}): {e}") from e

    def _updates_from_response(self, response, language: str) -> Iterator[RecognitionUpdate]:
        partial_parts = []
        partial_stability = 0.0
        for result in response.results:
            if not result.alternatives:
                continue
            alternative = result.alternatives[0]
            if result.is_final:
                logger.debug(f"Final: '{alternative.transcript}' (confidence: {alternative.confidence:.2f})")
                yield RecognitionUpdate(
                    text=alternative.transcript,
                    is_final=True,
                    confidence=alternative.confidence,
                    language=language,
                )
            else:
                partial_parts.append(alternative.transcript)
                partial_stability = max(partial_stability, result.stability)

        if partial_parts:
            text = "".join(partial_parts)
            logger.debug(f"Partial: '{text}' (stability: {partial_stability:.2f})")
            yield RecognitionUpdate(
                text=text,
                is_final=False,
                language=language,
                stability=partial_stability,
            )

    def cleanup(self) -> None:
        """Clean up Google Speech client resources."""
        self.client = None
