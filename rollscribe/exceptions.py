"""Error taxonomy for rollscribe."""

from enum import Enum


class AuthorizationStatus(Enum):
    """Speech recognition authorization as reported by a backend."""
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"
    NOT_DETERMINED = "not_determined"


class RollscribeError(Exception):
    """Base class for rollscribe errors."""


class ConfigurationError(RollscribeError):
    """The audio input or the application configuration could not be set up."""


class RecognitionError(RollscribeError):
    """The recognition engine reported a failure mid-session."""


class AuthorizationError(RollscribeError):
    """Speech recognition is not authorized."""

    def __init__(self, status: AuthorizationStatus):
        super().__init__(f"Speech recognition not authorized: {status.value}")
        self.status = status
