"""Exception types raised by backends and surfaced by the dispatcher."""

from typing import Any, Optional


class ActionforceError(Exception):
    """Base class for dispatch errors."""


class BackendError(ActionforceError):
    """
    A backend answered with an error status.

    Attributes:
        status: HTTP status code, when there was a response
        payload: Decoded response body, surfaced to the caller as-is
    """

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status = status
        self.payload = payload


class ScriptExecutionError(ActionforceError):
    """The javascript sandbox failed to produce a handler result."""


def error_payload(exc: Exception) -> Any:
    """Value reported under ``error`` for a hard failure."""
    if isinstance(exc, BackendError) and exc.payload:
        return exc.payload
    return str(exc) or type(exc).__name__
