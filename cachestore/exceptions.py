"""Exceptions raised by the session store and its codecs."""

from typing import Any, Optional


class ConfigurationError(RuntimeError):
    """Raised when a required service parameter is missing or invalid."""


class CodecError(ValueError):
    """A value could not be encoded or decoded."""


class EncodeError(CodecError):
    """A value could not be serialized, encrypted, or signed."""


class DecodeError(CodecError):
    """An encoded value is malformed, forged, expired, or too long."""


class SessionError(RuntimeError):
    """
    Base class for session store failures.

    The session that was being loaded or saved is attached as
    :attr:`session`, so that callers can carry on with it.
    """

    def __init__(self, message: str, session: Optional[Any] = None) -> None:
        super(SessionError, self).__init__(message)
        self.session = session


class InvalidCookie(SessionError):
    """The session cookie or cache entry failed authentication."""


class UnknownSession(SessionError):
    """Failed to locate a session in the session store."""


class SessionLoadFailed(SessionError):
    """Failed to read a session from the session store."""


class SessionCreationFailed(SessionError):
    """Failed to write a session to the session store."""


class SessionDeletionFailed(SessionError):
    """Failed to delete a session in the session store."""
