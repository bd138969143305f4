"""Tracker error taxonomy.

Identifier and argument errors are raised by the tracker layer before any
store round trip. Store errors are raised at the transport boundary and carry
a stable ``ErrorKind`` so callers branch on the kind, not on message text.
The MCP tool layer catches ``Exception`` and turns it into an error result.
"""

import enum
from typing import Optional

import httpx


class ErrorKind(str, enum.Enum):
    """Classification used by the reconnect logic."""

    CONNECTION = "connection"
    CONFIGURATION = "configuration"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    REMOTE = "remote"


class TrackerError(Exception):
    """Base exception for all tracker errors."""

    kind: ErrorKind = ErrorKind.REMOTE


class InvalidFormatError(TrackerError):
    """Composite issue identifier does not match ``PROJECT-NUMBER``."""

    kind = ErrorKind.INVALID


class InvalidArgumentError(TrackerError):
    """A tool was called with missing or unusable arguments."""

    kind = ErrorKind.INVALID


class NotFoundError(TrackerError):
    """Project or issue does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, key: str):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity.capitalize()} not found: {key}")


class ConfigurationError(TrackerError):
    """Required credentials or workspace selector are missing. Never retried."""

    kind = ErrorKind.CONFIGURATION


class StoreConnectionError(TrackerError):
    """The connection to the store was closed, reset or refused."""

    kind = ErrorKind.CONNECTION


class RemoteOperationError(TrackerError):
    """Any other failure reported by the store."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        response_body: str = "",
    ):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


class StoreAuthError(RemoteOperationError):
    """Store rejected the credentials (401/403)."""

    pass


class StoreRateLimitError(RemoteOperationError):
    """Rate limit exceeded (429). Includes retry_after hint if available."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        self.retry_after = retry_after
        super().__init__(message, status_code=429)


# Untyped errors (e.g. raised by a third-party store client) are matched on
# these markers as a last resort.
CONNECTION_ERROR_MARKERS = (
    "connection closed",
    "connection reset",
    "connection refused",
    "econnreset",
    "econnrefused",
    "socket hang up",
    "websocket is not open",
)

_TRANSPORT_CONNECTION_ERRORS = (
    httpx.ConnectError,
    httpx.ReadError,
    httpx.WriteError,
    httpx.CloseError,
    httpx.RemoteProtocolError,
)


def classify_error(exc: BaseException) -> ErrorKind:
    """Return the ``ErrorKind`` for an exception raised by a store call."""
    if isinstance(exc, TrackerError):
        return exc.kind
    if isinstance(exc, (_TRANSPORT_CONNECTION_ERRORS, ConnectionError)):
        return ErrorKind.CONNECTION

    message = str(exc).lower()
    if any(marker in message for marker in CONNECTION_ERROR_MARKERS):
        return ErrorKind.CONNECTION
    return ErrorKind.REMOTE


def is_connection_error(exc: BaseException) -> bool:
    return classify_error(exc) is ErrorKind.CONNECTION
