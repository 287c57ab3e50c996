"""Terminal transcription screen with live partial results."""

import time
import threading
import logging
from contextlib import contextmanager
from typing import List, Optional

from pubsub import pub
from rich.align import Align
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.prompt import Prompt
from rich.text import Text

from ..models.session import ControllerStatus, SessionState
from ..models.transcription import TranscriptSnapshot
from ..session.controller import SessionController
from ..transcript.buffer import TranscriptBuffer
from .keyboard_input import create_input_handler


logger = logging.getLogger(__name__)

STATE_LABELS = {
    SessionState.IDLE: ("⏹️  STOPPED", "bold yellow"),
    SessionState.RECORDING: ("🔴 RECORDING", "bold red"),
    SessionState.STOPPING: ("⏳ STOPPING", "bold magenta"),
    SessionState.SILENCE_RESTARTING: ("🔁 RESTARTING", "bold cyan"),
}


class TranscriptionScreen:
    """Terminal interface: language picker, start/stop toggle, transcript view."""

    def __init__(self,
                 controller: SessionController,
                 buffer: TranscriptBuffer,
                 languages: List[str],
                 selected_language: Optional[str] = None):
        """Initialize transcription screen.

        Args:
            controller: Session controller driven by the keyboard
            buffer: Transcript buffer to display
            languages: Locale tags offered by the picker (keys 1-9)
            selected_language: Initially selected locale tag
        """
        self.console = Console()
        self.controller = controller
        self.buffer = buffer
        self.languages = languages
        self.selected_language = selected_language or languages[0]

        self.transcript = buffer.snapshot()
        self.status = controller.status()
        self.lock = threading.Lock()
        self.running = False
        self.input_handler = None
        self.live: Optional[Live] = None

        buffer.publisher.subscribe(self.on_transcript_changed)
        pub.subscribe(self.on_status_changed, controller.status_topic)
        logger.info(f"TranscriptionScreen initialized with languages: {languages}")

    def on_transcript_changed(self, snapshot: TranscriptSnapshot) -> None:
        with self.lock:
            self.transcript = snapshot

    def on_status_changed(self, status: ControllerStatus) -> None:
        with self.lock:
            self.status = status

    def create_layout(self) -> Layout:
        """Create the main UI layout."""
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="languages", size=3),
            Layout(name="transcript", ratio=1),
            Layout(name="footer", size=3)
        )
        return layout

    def update_header(self, layout: Layout) -> None:
        with self.lock:
            status = self.status
        label, style = STATE_LABELS[status.state]
        header_text = Text.assemble(
            ("🎙️  rollscribe", "bold blue"), "  |  ",
            (label, style), "  |  ",
            f"Language: {status.language or self.selected_language}"
        )
        layout["header"].update(Panel(Align.center(header_text), style="bright_blue"))

    def update_language_picker(self, layout: Layout) -> None:
        picker = Text()
        for index, language in enumerate(self.languages[:9], start=1):
            style = "bold black on green" if language == self.selected_language else "white"
            picker.append(f" {index}:{language} ", style=style)
            picker.append(" ")
        layout["languages"].update(Panel(Align.center(picker), title="Language", border_style="green"))

    def update_transcript_panel(self, layout: Layout) -> None:
        with self.lock:
            snapshot = self.transcript
        if not snapshot.finalized_text and not snapshot.partial_text:
            body = Text("Press SPACE to start recording, 'q' to quit", style="dim white italic")
        else:
            body = Text.assemble(
                (snapshot.finalized_text, "white"),
                (snapshot.partial_text, "grey50 italic"),
            )
        layout["transcript"].update(Panel(body, title="📝 Transcript", border_style="blue"))

    def update_footer(self, layout: Layout) -> None:
        controls = Text.assemble(
            ("Controls: ", "bold"),
            ("SPACE", "bold green"), " Start/Stop  ",
            ("1-9", "bold cyan"), " Language  ",
            ("E", "bold magenta"), " Edit  ",
            ("C", "bold blue"), " Clear  ",
            ("Q", "bold red"), " Quit"
        )
        layout["footer"].update(Panel(Align.center(controls), style="bright_black"))

    def update_display(self, layout: Layout) -> None:
        self.update_header(layout)
        self.update_language_picker(layout)
        self.update_transcript_panel(layout)
        self.update_footer(layout)

    def toggle_recording(self) -> None:
        if self.controller.is_recording:
            logger.info("Stop requested from keyboard")
            self.controller.stop()
        else:
            logger.info(f"Start requested from keyboard ({self.selected_language})")
            self.controller.start(self.selected_language)

    def select_language(self, index: int) -> None:
        if 0 <= index < len(self.languages):
            self.selected_language = self.languages[index]
            logger.info(f"Selected language: {self.selected_language}")

    @contextmanager
    def paused_display(self):
        """Leave the live screen so a prompt can use the terminal."""
        live = self.live
        if live is not None:
            live.stop()
        try:
            if self.input_handler is not None:
                with self.input_handler.line_mode():
                    yield
            else:
                yield
        finally:
            if live is not None:
                live.start()

    def edit_transcript(self) -> None:
        """Replace the finalized transcript with text typed by the user.

        An empty answer keeps the current transcript. Recognition keeps
        appending to the edited text.
        """
        current = self.buffer.finalized_text.rstrip()
        with self.paused_display():
            self.console.print(Panel(current or "(empty)", title="📝 Current transcript", border_style="blue"))
            edited = Prompt.ask("✏️  Edit transcript", default=current, show_default=False, console=self.console)

        edited = edited.strip()
        if edited == current:
            logger.debug("Transcript edit left text unchanged")
            return
        self.buffer.edit_finalized(edited + self.buffer.separator if edited else "")
        logger.info(f"Transcript edited by user ({len(edited)} chars)")

    def handle_key_input(self, key: str) -> bool:
        """Handle keyboard input. Returns True to continue, False to quit."""
        if key == 'q' or key == '\x03':
            logger.info("Quit key pressed")
            self.running = False
            return False
        if key in (' ', '\r', '\n'):
            self.toggle_recording()
        elif key.isdigit() and key != '0':
            self.select_language(int(key) - 1)
        elif key == 'e':
            self.edit_transcript()
        elif key == 'c':
            self.buffer.reset()
        else:
            logger.debug(f"Unhandled key: '{key}'")
        return True

    def run(self) -> None:
        """Run the transcription screen until the user quits."""
        self.running = True
        layout = self.create_layout()
        self.input_handler = create_input_handler(self.handle_key_input)
        self.input_handler.start()

        try:
            with Live(layout, console=self.console, refresh_per_second=10, screen=True) as live:
                self.live = live
                while self.running:
                    self.update_display(layout)
                    time.sleep(0.1)
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        self.running = False
        if self.input_handler:
            self.input_handler.stop()
        self.buffer.publisher.unsubscribe(self.on_transcript_changed)
        pub.unsubscribe(self.on_status_changed, self.controller.status_topic)
        logger.info("TranscriptionScreen cleanup completed")
