"""Microphone capture feeding audio chunks to a recognition request."""

import pyaudio
import time
import logging
from threading import Thread, Event
from typing import Optional, Callable
from datetime import datetime

import numpy as np

from ..models.audio import AudioChunk, AudioStats
from ..exceptions import ConfigurationError


logger = logging.getLogger(__name__)

ChunkCallback = Callable[[AudioChunk], None]


def peak_level(pcm: bytes) -> float:
    """Peak amplitude of 16-bit PCM, scaled to 0.0 - 1.0."""
    samples = np.frombuffer(pcm, dtype=np.int16)
    if not samples.size:
        return 0.0
    # Widen first so abs(-32768) does not overflow
    return float(np.abs(samples.astype(np.int32)).max()) / 32768.0


class AudioCapture:
    """Microphone input for one capture, read on a background thread.

    The input stream is opened synchronously by `start_recording` so an
    unusable device is reported to the caller instead of the reader thread.
    """

    def __init__(
        self,
        callback: ChunkCallback,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            callback: Receives an AudioChunk for every microphone read
            sample_rate: Audio sample rate (16kHz for speech recognition)
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
        """
        self.on_chunk = callback
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False

        self.start_time: Optional[datetime] = None
        self.total_chunks = 0
        self.peak_level = 0.0

        # Owned between start_recording and the end of the reader thread
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream: Optional[pyaudio.Stream] = None

    def start_recording(self) -> None:
        """Open the input stream and start the reader thread.

        Raises:
            ConfigurationError: If the input device cannot be opened
        """
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        self._open_stream()
        self.stop_event.clear()
        self.start_time = datetime.now()
        self.total_chunks = 0
        self.peak_level = 0.0

        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.is_recording = True
        self.recording_thread.start()
        logger.info(f"Audio capture started: {self.sample_rate}Hz, {self.chunk_size} samples/chunk")

    def stop_recording(self) -> None:
        """Stop the reader thread; the stream is released as it exits."""
        if not self.is_recording:
            logger.debug("No recording in progress")
            return

        self.stop_event.set()
        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")

        self.is_recording = False
        stats = self.get_recording_stats()
        logger.info(f"Audio capture stopped: {stats.total_chunks} chunks in {stats.duration_seconds:.1f}s, "
                    f"last peak level {stats.peak_level:.2f}")

    def _open_stream(self) -> None:
        try:
            self.pyaudio_instance = pyaudio.PyAudio()
            self.stream = self.pyaudio_instance.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
            )
        except (OSError, ValueError) as e:
            self._release()
            raise ConfigurationError(f"Could not open audio input: {e}") from e

    def _release(self) -> None:
        if self.stream:
            self.stream.stop_stream()
            self.stream.close()
            self.stream = None
        if self.pyaudio_instance:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None

    def read_chunk(self) -> AudioChunk:
        """Read one chunk from the open stream and update statistics."""
        pcm = self.stream.read(self.chunk_size, exception_on_overflow=False)
        self.total_chunks += 1
        self.peak_level = peak_level(pcm)
        return AudioChunk(
            data=pcm,
            sequence_number=self.total_chunks,
            timestamp=time.time(),
            sample_rate=self.sample_rate,
            channels=self.channels,
        )

    def _record_continuously(self) -> None:
        try:
            while not self.stop_event.is_set():
                self.on_chunk(self.read_chunk())
        except OSError as e:
            logger.error(f"Audio input failed: {e}")
        finally:
            self._release()

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            peak_level=self.peak_level,
        )

    @staticmethod
    def check_microphone_available() -> bool:
        """Check if a default input device exists."""
        instance = None
        try:
            instance = pyaudio.PyAudio()
            instance.get_default_input_device_info()
            return True
        except OSError as e:
            logger.debug(f"Microphone not available: {e}")
            return False
        finally:
            if instance:
                instance.terminate()
