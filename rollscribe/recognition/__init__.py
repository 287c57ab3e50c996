"""Recognition backends for rollscribe."""

from .base import AbstractRecognitionBackend, CaptureHandle
from .google_backend import GoogleStreamingBackend, GoogleCaptureHandle

__all__ = [
    "AbstractRecognitionBackend",
    "CaptureHandle",
    "GoogleStreamingBackend",
    "GoogleCaptureHandle",
]
