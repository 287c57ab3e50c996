"""Keyboard input for the transcription screen."""

import sys
import threading
from contextlib import contextmanager
from typing import Optional, Callable
import logging

logger = logging.getLogger(__name__)

KeyCallback = Callable[[str], bool]


class KeyboardInputHandler:
    """Deliver single keypresses to a callback from a background thread.

    On Unix the terminal stays in cbreak mode while the handler runs and is
    restored when the loop exits.
    """

    poll_interval = 0.1

    def __init__(self, callback: KeyCallback):
        """Initialize keyboard handler.

        Args:
            callback: Receives each key; returns False to end input
        """
        self.callback = callback
        self.running = False
        self.thread: Optional[threading.Thread] = None
        # Terminal attributes saved while the Unix loop holds cbreak mode
        self._saved_attrs = None

    def start(self) -> None:
        if self.running:
            return

        self.running = True
        self.thread = threading.Thread(target=self._input_loop, daemon=True)
        self.thread.name = "KeyboardInputThread"
        self.thread.start()
        logger.info(f"{self.__class__.__name__} started")

    def stop(self) -> None:
        self.running = False
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)
        logger.info(f"{self.__class__.__name__} stopped")

    @contextmanager
    def line_mode(self):
        """Restore normal line input for the duration of the block.

        Only meaningful when called from the input thread, e.g. by a key
        callback that prompts for a line of text.
        """
        if self._saved_attrs is None:
            yield
            return

        import termios
        import tty

        fd = sys.stdin.fileno()
        termios.tcsetattr(fd, termios.TCSADRAIN, self._saved_attrs)
        try:
            yield
        finally:
            tty.setcbreak(fd)

    def _dispatch(self, key: str) -> bool:
        logger.debug(f"Key pressed: {key!r}")
        if self.callback(key):
            return True
        logger.info("Input callback requested exit")
        return False

    def _input_loop(self) -> None:
        if sys.platform == "win32":
            self._windows_loop()
        else:
            self._unix_loop()
        self.running = False
        logger.info("Keyboard input loop ended")

    def _windows_loop(self) -> None:
        import msvcrt

        while self.running:
            if not msvcrt.kbhit():
                threading.Event().wait(self.poll_interval)
                continue
            key = msvcrt.getwch().lower()
            if not self._dispatch(key):
                return

    def _unix_loop(self) -> None:
        import select
        import termios
        import tty

        fd = sys.stdin.fileno()
        saved = termios.tcgetattr(fd)
        self._saved_attrs = saved
        tty.setcbreak(fd)
        try:
            while self.running:
                ready, _, _ = select.select([sys.stdin], [], [], self.poll_interval)
                if not ready:
                    continue
                key = sys.stdin.read(1).lower()
                if key and not self._dispatch(key):
                    return
        finally:
            self._saved_attrs = None
            termios.tcsetattr(fd, termios.TCSADRAIN, saved)


class LineInputHandler(KeyboardInputHandler):
    """Line-based input for stdin that is not a terminal (pipes, IDE consoles)."""

    def _input_loop(self) -> None:
        while self.running:
            try:
                line = input("> ").strip().lower()
            except (EOFError, KeyboardInterrupt):
                break
            # Empty line toggles recording like SPACE
            if not self._dispatch(line[:1] or " "):
                break
        self.running = False
        logger.info("Line input loop ended")


def create_input_handler(callback: KeyCallback) -> KeyboardInputHandler:
    """Pick the input handler suited to the current stdin."""
    if sys.platform != "win32" and not sys.stdin.isatty():
        logger.warning("stdin is not a terminal, using line-based input")
        return LineInputHandler(callback)
    return KeyboardInputHandler(callback)
