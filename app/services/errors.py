"""
Error kinds raised by the EPG cache.

Every failure the cache surfaces is one of a closed set of kinds. Each kind has
its own exception class so callers can catch precisely, while the HTTP layer
matches on ``CacheError.kind`` to build a response.
"""
from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    UPSTREAM_PROTOCOL_ERROR = "UPSTREAM_PROTOCOL_ERROR"
    STORE_ERROR = "STORE_ERROR"


class CacheError(Exception):
    """Base class for all cache errors.

    The optional cause is also chained as ``__cause__`` so tracebacks keep it.
    """
    kind: ErrorKind

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class NotFoundError(CacheError):
    """No airings are known for the requested day."""
    kind = ErrorKind.NOT_FOUND


class InvalidArgumentError(CacheError):
    """Raised for an unknown sort order, an inverted date range or a bad limit."""
    kind = ErrorKind.INVALID_ARGUMENT


class UpstreamUnavailableError(CacheError):
    """The EPG provider could not be reached or answered with a server error."""
    kind = ErrorKind.UPSTREAM_UNAVAILABLE


class UpstreamProtocolError(CacheError):
    """The EPG provider answered with something we cannot interpret."""
    kind = ErrorKind.UPSTREAM_PROTOCOL_ERROR


class StoreError(CacheError):
    """Unexpected failure while mutating a day bucket."""
    kind = ErrorKind.STORE_ERROR


__all__ = [
    "ErrorKind",
    "CacheError",
    "NotFoundError",
    "InvalidArgumentError",
    "UpstreamUnavailableError",
    "UpstreamProtocolError",
    "StoreError",
]
