"""Exception types for the client and server.

Every exception raised by postrpc itself derives from :class:`RpcError`.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "DecodeError",
    "HandlerError",
    "RemoteError",
    "RpcError",
    "StatusError",
    "TransportError",
    "ValidationError",
]


class RpcError(Exception):
    """Base class for postrpc errors."""


class TransportError(RpcError):
    """Raised when the HTTP exchange itself fails.

    Connection refused, reset, or a transport-level timeout. The underlying
    ``httpx`` exception is available as ``__cause__``.
    """


class DecodeError(RpcError):
    """Raised when a body is not valid JSON or not a JSON object."""


class ValidationError(RpcError):
    """Raised when a well-formed request cannot be dispatched.

    Covers a missing or empty ``method``, missing ``params``, and method
    names that are not registered.
    """


class HandlerError(Exception):
    """Raised by a handler to report failure with an explicit payload.

    The payload becomes the ``error`` member of the response as is, so it
    must be JSON-serializable.

    Example:
        def divide(a, b):
            if b == 0:
                raise HandlerError({"code": "ZERO_DIVISION", "message": "b is 0"})
            return a / b
    """

    def __init__(self, error: Any = None) -> None:
        super().__init__(error)
        self.error = error


class RemoteError(RpcError):
    """Raised by the client when the server reported a failure.

    ``error`` holds the decoded ``error`` member of the response. It is
    ``None`` when the response carried neither a result nor an error.
    """

    def __init__(self, error: Any) -> None:
        super().__init__(error)
        self.error = error


class StatusError(RpcError):
    """Raised by the client when the server answered with a non-200 status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"HTTP {status_code}: {body.strip()}")
        self.status_code = status_code
        self.body = body
