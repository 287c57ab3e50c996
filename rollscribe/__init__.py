"""rollscribe - rolling speech transcription with silence-triggered restarts."""

__version__ = "0.1.0"
