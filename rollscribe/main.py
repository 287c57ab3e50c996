"""Main application entry point for rollscribe."""

import sys
import time
import argparse
import logging
from pathlib import Path
from typing import Optional

from rollscribe import __version__
from rollscribe.exceptions import AuthorizationError, AuthorizationStatus
from rollscribe.recognition.base import AbstractRecognitionBackend
from rollscribe.recognition.google_backend import GoogleStreamingBackend
from rollscribe.session.controller import SessionController
from rollscribe.transcript.buffer import TranscriptBuffer
from rollscribe.ui.transcription_screen import TranscriptionScreen

from .config import RollscribeConfig

logger = logging.getLogger(__name__)

AUTHORIZATION_MESSAGES = {
    AuthorizationStatus.AUTHORIZED: "Speech recognition authorized",
    AuthorizationStatus.DENIED: "Speech recognition denied",
    AuthorizationStatus.RESTRICTED: "Speech recognition restricted",
    AuthorizationStatus.NOT_DETERMINED: "Speech recognition not yet authorized",
}


class Server:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = RollscribeConfig(config_path)
        # Set up logging (override config with command line if specified)
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.backend: Optional[AbstractRecognitionBackend] = None
        self.buffer: Optional[TranscriptBuffer] = None
        self.controller: Optional[SessionController] = None
        self.authorization = AuthorizationStatus.NOT_DETERMINED

    def init(self, backend: Optional[AbstractRecognitionBackend] = None) -> None:
        logger.info("Initializing services...")
        self.backend = backend or self._create_google_backend()

        self.authorization = self.backend.request_authorization()
        message = AUTHORIZATION_MESSAGES[self.authorization]
        if self.authorization is AuthorizationStatus.AUTHORIZED:
            logger.info(message)
        else:
            logger.warning(message)

        if self.authorization is AuthorizationStatus.AUTHORIZED and not self.backend.initialize():
            raise RuntimeError("Recognition backend failed to initialize")

        self.buffer = TranscriptBuffer(separator=self.config.get('recognition.separator', ' '))
        self.controller = SessionController(
            backend=self.backend,
            buffer=self.buffer,
            silence_timeout=self.config.get_silence_timeout(),
            partial_results=self.config.get('recognition.partial_results', True),
        )

    def _create_google_backend(self) -> GoogleStreamingBackend:
        sample_rate = self.config.get('audio.sample_rate', 16000)
        chunk_size = self.config.get('audio.chunk_size', 1024)
        channels = self.config.get('audio.channels', 1)
        logger.info(f"Audio settings: {sample_rate}Hz, {chunk_size} samples/chunk, {channels} channels")

        return GoogleStreamingBackend(
            credentials_path=self.config.get_google_credentials_path(),
            sample_rate=sample_rate,
            chunk_size=chunk_size,
            channels=channels,
            use_enhanced=self.config.get('google_cloud.use_enhanced_model', True),
            enable_automatic_punctuation=self.config.get('google_cloud.enable_automatic_punctuation', True),
            model=self.config.get('google_cloud.model', 'latest_long'),
        )

    def run_auto(self, language: str, duration: float) -> str:
        """Record for `duration` seconds and return the finalized transcript."""
        if self.authorization is not AuthorizationStatus.AUTHORIZED:
            raise AuthorizationError(self.authorization)

        if not self.controller.start(language).result(timeout=10.0):
            raise RuntimeError(f"Could not start recording in {language}")
        time.sleep(duration)
        self.controller.stop().result(timeout=30.0)
        # Text still shown as a hypothesis is kept when recording ends
        self.buffer.flush_partial()
        return self.buffer.finalized_text

    def run_interactive(self, language: str) -> None:
        screen = TranscriptionScreen(
            controller=self.controller,
            buffer=self.buffer,
            languages=self.config.get_languages(),
            selected_language=language,
        )
        screen.run()

    def cleanup(self) -> None:
        if self.controller:
            self.controller.shutdown()
        if self.backend:
            self.backend.cleanup()


def save_transcript(path: str, text: str) -> None:
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text.rstrip() + "\n", encoding='utf-8')
    logger.info(f"Transcript written to {output}")


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/rollscribe.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("rollscribe starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for rollscribe."""
    parser = argparse.ArgumentParser(
        description="rollscribe - rolling speech transcription",
        epilog="Keys: SPACE=Start/stop recording, 1-9=Select language, e=Edit transcript, c=Clear, q=Quit"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: looks for rollscribe.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )

    parser.add_argument(
        "--language",
        type=str,
        help="Locale tag to record in (default: recognition.default_language)"
    )

    parser.add_argument(
        "--auto",
        action="store_true",
        help="Run headless: record for the given duration, then stop and print the transcript"
    )

    parser.add_argument(
        "--duration",
        type=float,
        default=10,
        help="Duration in seconds for auto mode recording (default: 10)"
    )

    parser.add_argument(
        "--output",
        type=str,
        help="Write the finalized transcript to this file on exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"rollscribe v{__version__}"
    )

    args = parser.parse_args()

    server = None
    try:
        server = Server(args.config, args.log_level)
        language = args.language or server.config.get_default_language()
        server.init()
        if args.auto:
            print(server.run_auto(language, args.duration))
        else:
            server.run_interactive(language)
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        logger.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        if server:
            server.cleanup()
            if args.output and server.buffer:
                save_transcript(args.output, server.buffer.finalized_text)


if __name__ == "__main__":
    main()
