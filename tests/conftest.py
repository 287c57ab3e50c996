"""Pytest configuration and fixtures for rollscribe tests."""

import pytest
import queue
import time
import uuid
import logging
from typing import Iterator, List, Optional
from unittest.mock import Mock, patch

import numpy as np
from pubsub import pub

from rollscribe.models.transcription import RecognitionUpdate
from rollscribe.recognition.base import AbstractRecognitionBackend, CaptureHandle
from rollscribe.session.controller import SessionController
from rollscribe.transcript.buffer import TranscriptBuffer
from rollscribe.transcript.publisher import TranscriptPublisher


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

_END_OF_STREAM = object()


class FakeCaptureHandle(CaptureHandle):
    """Capture handle whose recognition stream is fed by the test."""

    def __init__(self, language: str, hold_teardown: bool = False):
        super().__init__(language)
        self.stream: "queue.Queue" = queue.Queue()
        # When held, ending audio does not end the stream until finish()
        self.hold_teardown = hold_teardown

    def emit(self, text: str, is_final: bool = False) -> None:
        self.stream.put(RecognitionUpdate(text=text, is_final=is_final, language=self.language))

    def fail(self, error: Exception) -> None:
        self.stream.put(error)

    def finish(self) -> None:
        self.stream.put(_END_OF_STREAM)

    def _release_audio(self) -> None:
        if not self.hold_teardown:
            self.finish()


class FakeRecognitionBackend(AbstractRecognitionBackend):
    """In-memory backend recording every handle it opens."""

    def __init__(self):
        self.handles: List[FakeCaptureHandle] = []
        self.closed: List[FakeCaptureHandle] = []
        self.open_error: Optional[Exception] = None
        self.return_no_handle = False
        self.hold_teardown = False
        self.scripted_updates: List[RecognitionUpdate] = []

    @property
    def latest(self) -> FakeCaptureHandle:
        return self.handles[-1]

    @property
    def languages(self) -> List[str]:
        return [handle.language for handle in self.handles]

    def initialize(self) -> bool:
        return True

    def open(self, language: str) -> Optional[FakeCaptureHandle]:
        if self.open_error is not None:
            raise self.open_error
        if self.return_no_handle:
            return None
        handle = FakeCaptureHandle(language, hold_teardown=self.hold_teardown)
        for update in self.scripted_updates:
            handle.stream.put(update)
        self.handles.append(handle)
        return handle

    def recognize(self, handle: FakeCaptureHandle, partial_results: bool = True) -> Iterator[RecognitionUpdate]:
        while True:
            item = handle.stream.get()
            if item is _END_OF_STREAM:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    def close(self, handle: FakeCaptureHandle) -> None:
        if not handle.closed:
            self.closed.append(handle)
        super().close(handle)

    def cleanup(self) -> None:
        pass


class ManualTimer:
    """Stand-in for threading.Timer that only fires when told to."""

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.name = None
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.function(*self.args, **self.kwargs)


class ManualTimerFactory:
    """Timer factory keeping every timer it builds."""

    def __init__(self):
        self.timers: List[ManualTimer] = []

    def __call__(self, interval, function, args=None, kwargs=None) -> ManualTimer:
        timer = ManualTimer(interval, function, args=args, kwargs=kwargs)
        self.timers.append(timer)
        return timer

    @property
    def latest(self) -> Optional[ManualTimer]:
        return self.timers[-1] if self.timers else None

    def fire_latest(self) -> None:
        self.latest.fire()


class MessageRecorder:
    """Pub/sub listener collecting messages published on a topic."""

    def __init__(self, topic: str, argument: str):
        self.topic = topic
        self.messages = []
        listener = self.on_snapshot if argument == "snapshot" else self.on_status
        pub.subscribe(listener, topic)

    def on_snapshot(self, snapshot):
        self.messages.append(snapshot)

    def on_status(self, status):
        self.messages.append(status)


def _wait_until(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def wait_until():
    """Poll a predicate until it holds or the timeout elapses."""
    return _wait_until


@pytest.fixture
def unique_topic():
    """Build a pub/sub topic name not shared with other tests."""
    def make(kind: str) -> str:
        return f"test_{kind}.t{uuid.uuid4().hex}"
    return make


@pytest.fixture
def message_recorder():
    return MessageRecorder


@pytest.fixture
def fake_backend():
    return FakeRecognitionBackend()


@pytest.fixture
def manual_timers():
    return ManualTimerFactory()


@pytest.fixture
def transcript_buffer(unique_topic):
    return TranscriptBuffer(separator=" ", publisher=TranscriptPublisher(unique_topic("transcript")))


@pytest.fixture
def controller(fake_backend, transcript_buffer, manual_timers, unique_topic):
    """Session controller driven by the fake backend and manual timers."""
    controller = SessionController(
        backend=fake_backend,
        buffer=transcript_buffer,
        silence_timeout=1.3,
        timer_factory=manual_timers,
        status_topic=unique_topic("session"),
    )
    yield controller
    fake_backend.hold_teardown = False
    for handle in fake_backend.handles:
        handle.hold_teardown = False
    controller.shutdown(timeout=2.0)


@pytest.fixture
def sample_audio_chunk():
    """Generate a sample audio chunk for testing."""
    # Generate 1024 samples of 16-bit audio (sine wave)
    sample_rate = 16000
    duration = 1024 / sample_rate  # ~0.064 seconds
    freq = 440  # A4 note

    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * freq * t)

    # Convert to 16-bit integers
    audio_data = (wave_data * 32767).astype(np.int16)
    return audio_data.tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        def read(chunk_size, exception_on_overflow=True):
            time.sleep(0.005)
            return b'\x00' * 2048  # Silent audio

        # Configure mock stream
        mock_stream.read.side_effect = read
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        # Configure mock PyAudio instance
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_default_input_device_info.return_value = {"name": "mock"}

        # Configure mock PyAudio class
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def config_file(tmp_path):
    """Write a rollscribe.yaml into a temporary directory."""
    def write(text: str):
        path = tmp_path / "rollscribe.yaml"
        path.write_text(text, encoding="utf-8")
        return path
    return write

