"""Session controller: the recognition lifecycle state machine.

The controller owns at most one recognition session at a time. Every state
change runs on a single controller thread that drains a command queue, so
recognizer callbacks, silence expiry and user start/stop requests never touch
the transcript buffer concurrently.

States::

    IDLE --start--> RECORDING --stop/error--> STOPPING --teardown--> IDLE
                    RECORDING --silence--> SILENCE_RESTARTING --teardown--> RECORDING

A new session is only opened once the previous session's teardown has
completed, which is signalled by the reader thread after the recognition
stream has ended and the capture handle is closed.
"""

import logging
import queue
import threading
import uuid
from datetime import datetime
from concurrent.futures import Future, TimeoutError as FuturesTimeoutError
from typing import Callable, NamedTuple, Optional, Tuple

from pubsub import pub

from ..exceptions import ConfigurationError, RecognitionError
from ..models.session import ControllerStatus, Session, SessionState
from ..models.transcription import RecognitionUpdate
from ..recognition.base import AbstractRecognitionBackend
from ..transcript.buffer import TranscriptBuffer
from .timer import SilenceTimer

logger = logging.getLogger(__name__)

RECORDING_STATES = (SessionState.RECORDING, SessionState.SILENCE_RESTARTING)


class ControllerCommand(NamedTuple):
    """A unit of work for the controller thread."""
    handler: Callable
    args: Tuple
    future: Future


class SessionController:
    """Starts, stops and silently restarts recognition sessions."""

    def __init__(self,
                 backend: AbstractRecognitionBackend,
                 buffer: TranscriptBuffer,
                 silence_timeout: float = 1.3,
                 partial_results: bool = True,
                 timer_factory: Callable[..., threading.Timer] = threading.Timer,
                 status_topic: str = "session.state"):
        """Initialize session controller and start its thread.

        Args:
            backend: Capture/recognize collaborator
            buffer: Transcript buffer receiving partial and final text
            silence_timeout: Seconds without recognizer updates before restarting
            partial_results: Ask the backend for interim hypotheses
            timer_factory: Single-shot timer constructor for the silence timer
            status_topic: Pub/sub topic receiving ControllerStatus on every transition
        """
        self.backend = backend
        self.buffer = buffer
        self.partial_results = partial_results
        self.status_topic = status_topic
        self.silence_timer = SilenceTimer(silence_timeout, self._on_silence_elapsed, timer_factory)

        # Written only on the controller thread; lock keeps readers consistent
        self.lock = threading.Lock()
        self._state = SessionState.IDLE
        self._session: Optional[Session] = None
        self._language: Optional[str] = None
        self.sessions_started = 0

        self.command_queue: "queue.Queue[Optional[ControllerCommand]]" = queue.Queue()
        self.shutdown_event = threading.Event()
        self.controller_thread = threading.Thread(target=self._run_loop, daemon=True)
        self.controller_thread.name = "SessionControllerThread"
        self.controller_thread.start()

        logger.info(f"SessionController initialized (silence timeout {silence_timeout}s)")

    # Read-only accessors

    @property
    def state(self) -> SessionState:
        with self.lock:
            return self._state

    @property
    def is_recording(self) -> bool:
        return self.state in RECORDING_STATES

    @property
    def language(self) -> Optional[str]:
        with self.lock:
            return self._language

    @property
    def current_session(self) -> Optional[Session]:
        with self.lock:
            return self._session

    def status(self) -> ControllerStatus:
        with self.lock:
            return ControllerStatus(
                state=self._state,
                is_recording=self._state in RECORDING_STATES,
                language=self._language,
                session_id=self._session.session_id if self._session else None,
            )

    # Public commands

    def start(self, language: str) -> Future:
        """Request a new recognition session.

        Returns:
            Future resolving to True once recording, False if the request was
            rejected or the audio input could not be configured
        """
        return self._post(self._handle_start, language)

    def stop(self) -> Future:
        """Request the current session to stop.

        Returns:
            Future resolving to True once teardown has completed, or False if
            there was nothing to stop
        """
        stopped = Future()

        def _on_stop_handled(handled: Future) -> None:
            error = handled.exception()
            if error is not None:
                stopped.set_exception(error)
                return
            session = handled.result()
            if session is None:
                stopped.set_result(False)
            else:
                session.teardown_complete.add_done_callback(lambda _: stopped.set_result(True))

        self._post(self._handle_stop).add_done_callback(_on_stop_handled)
        return stopped

    def shutdown(self, timeout: float = 5.0) -> bool:
        """Stop any session and terminate the controller thread.

        Returns:
            True if teardown and thread exit completed within the timeout
        """
        if self.shutdown_event.is_set():
            return True

        logger.info("Shutting down SessionController...")
        clean = True
        session = self.current_session
        try:
            self.stop().result(timeout=timeout)
            if session is not None:
                session.teardown_complete.result(timeout=timeout)
        except FuturesTimeoutError:
            logger.warning("Timed out waiting for recognition teardown")
            clean = False

        self.silence_timer.cancel()
        self.shutdown_event.set()
        self.command_queue.put(None)
        self.controller_thread.join(timeout=timeout)
        if self.controller_thread.is_alive():
            logger.warning("Controller thread did not stop cleanly")
            clean = False

        logger.info(f"SessionController shutdown complete: clean={clean}")
        return clean

    # Serialized update path

    def _post(self, handler: Callable, *args) -> Future:
        future = Future()
        if self.shutdown_event.is_set():
            future.set_exception(RuntimeError("Session controller is shut down"))
            return future
        self.command_queue.put(ControllerCommand(handler, args, future))
        return future

    def _run_loop(self) -> None:
        logger.debug("Controller thread starting")
        while True:
            command = self.command_queue.get()
            try:
                if command is None:
                    logger.debug("Controller thread received sentinel, exiting.")
                    break
                try:
                    result = command.handler(*command.args)
                except Exception as e:
                    logger.error(f"Unhandled exception in {command.handler.__name__}: {e}", exc_info=True)
                    command.future.set_exception(e)
                else:
                    command.future.set_result(result)
            finally:
                self.command_queue.task_done()

    def _set_state(self, state: SessionState) -> None:
        with self.lock:
            previous = self._state
            self._state = state
        if previous is not state:
            logger.info(f"Session state: {previous.value} -> {state.value}")
        self._publish_status()

    def _publish_status(self) -> None:
        pub.sendMessage(self.status_topic, status=self.status())

    # Handlers, run on the controller thread only

    def _handle_start(self, language: str) -> bool:
        if self._state is not SessionState.IDLE:
            logger.info(f"Ignoring start({language}): controller is {self._state.value}")
            return False
        return self._open_session(language)

    def _open_session(self, language: str) -> bool:
        try:
            handle = self.backend.open(language)
        except ConfigurationError as e:
            logger.error(f"Audio input configuration failed, not recording: {e}")
            self._set_state(SessionState.IDLE)
            return False

        if handle is None:
            raise RuntimeError(f"Recognition backend returned no capture handle for {language}")

        self.sessions_started += 1
        session = Session(
            session_id=f"session_{self.sessions_started}_{uuid.uuid4().hex[:8]}",
            language=language,
            handle=handle,
        )
        self.buffer.clear_partial()
        with self.lock:
            self._session = session
            self._language = language
        self._set_state(SessionState.RECORDING)

        reader = threading.Thread(target=self._consume_stream, args=(session,), daemon=True)
        reader.name = f"RecognitionReader-{session.session_id}"
        reader.start()

        logger.info(f"Started {session.session_id} ({language}) on {handle.handle_id}")
        return True

    def _handle_update(self, session: Session, update: RecognitionUpdate) -> None:
        if session is not self._session or session.cancelled:
            logger.debug(f"Dropping update from superseded {session.session_id}: '{update.text}'")
            return

        if self._state is SessionState.RECORDING:
            self.silence_timer.reset()
        elif self._state is not SessionState.STOPPING:
            return

        if update.is_final:
            logger.info(f"Final ({session.language}): '{update.text}'")
            self.buffer.append_final(update.text)
            self.buffer.clear_partial()
        else:
            logger.debug(f"Partial ({session.language}): '{update.text}'")
            self.buffer.set_partial(update.text)

    def _handle_stop(self) -> Optional[Session]:
        if self._state not in RECORDING_STATES:
            logger.info(f"Ignoring stop: controller is {self._state.value}")
            return None

        session = self._session
        if session is None:
            # Restart failed between teardown and reopen
            logger.warning(f"No session to stop in state {self._state.value}, resetting to idle")
            self._set_state(SessionState.IDLE)
            return None
        abandoned_restart = self._state is SessionState.SILENCE_RESTARTING
        self._set_state(SessionState.STOPPING)
        self.silence_timer.cancel()
        session.handle.end_audio()

        if abandoned_restart:
            logger.info(f"Stopping {session.session_id}; pending restart abandoned")
        else:
            logger.info(f"Stopping {session.session_id}")
        return session

    def _handle_failure(self, session: Session, error: RecognitionError) -> None:
        if session is not self._session or session.cancelled:
            logger.debug(f"Ignoring error from superseded {session.session_id}: {error}")
            return
        if self._state is not SessionState.RECORDING:
            return
        logger.warning(f"Recognition failed for {session.session_id}, stopping: {error}")
        self._handle_stop()

    def _on_silence_elapsed(self, generation: int) -> None:
        # Runs on the timer thread
        self._post(self._handle_silence, generation)

    def _handle_silence(self, generation: int) -> bool:
        if not self.silence_timer.is_current(generation):
            logger.debug(f"Ignoring stale silence expiry (generation {generation})")
            return False
        if self._state is not SessionState.RECORDING:
            logger.debug(f"Ignoring silence expiry: controller is {self._state.value}")
            return False

        self.silence_timer.cancel()
        logger.info(f"Silence detected, restarting {self._session.session_id}")
        self._begin_restart(self._session)
        return True

    def _begin_restart(self, session: Session) -> None:
        session.cancelled = True
        self._set_state(SessionState.SILENCE_RESTARTING)
        session.handle.cancel()
        self.buffer.flush_partial()

    def _handle_teardown_complete(self, session: Session) -> None:
        if session is not self._session:
            logger.debug(f"Teardown of superseded {session.session_id}")
            self._resolve_teardown(session)
            return

        if self._state is SessionState.RECORDING:
            logger.info(f"Recognition stream for {session.session_id} ended, rolling over")
            self.silence_timer.cancel()
            self._begin_restart(session)

        restart = self._state is SessionState.SILENCE_RESTARTING
        with self.lock:
            self._session = None
        if not restart:
            self._set_state(SessionState.IDLE)
        self._resolve_teardown(session)
        elapsed = (datetime.now() - session.started_at).total_seconds()
        logger.info(f"Teardown of {session.session_id} complete after {elapsed:.1f}s")

        if restart:
            try:
                self._open_session(session.language)
            except Exception as e:
                logger.error(f"Could not restart recognition in {session.language}: {e}")
                self._set_state(SessionState.IDLE)
                raise

    def _resolve_teardown(self, session: Session) -> None:
        if not session.teardown_complete.done():
            session.teardown_complete.set_result(session.session_id)

    # Reader thread

    def _consume_stream(self, session: Session) -> None:
        handle = session.handle
        try:
            for update in self.backend.recognize(handle, partial_results=self.partial_results):
                self._post(self._handle_update, session, update)
        except RecognitionError as e:
            self._post(self._handle_failure, session, e)
        except Exception as e:
            logger.error(f"Unexpected error in recognition stream {session.session_id}: {e}", exc_info=True)
            self._post(self._handle_failure, session, RecognitionError(str(e)))
        finally:
            try:
                self.backend.close(handle)
            except Exception as e:
                logger.warning(f"Error closing {handle.handle_id}: {e}")
            self._post(self._handle_teardown_complete, session)
