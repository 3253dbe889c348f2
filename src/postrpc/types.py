"""Type protocols for postrpc.

This module defines semantic types for network configuration and the
protocol every registered handler satisfies.
"""

from typing import Any, NewType, Protocol, runtime_checkable

# Semantic types for HTTP configuration
Host = NewType("Host", str)
"""Network host address (IP or hostname)."""

Port = NewType("Port", int)
"""Network port number (1-65535)."""


@runtime_checkable
class Handler(Protocol):
    """Protocol for JSON-RPC method handlers.

    A handler receives the request ``params`` as positional arguments. It
    reports success by returning a JSON-serializable value (or an awaitable
    resolving to one) and failure by raising. Raise
    :class:`postrpc.errors.HandlerError` to choose the error payload sent
    back to the caller.
    """

    def __call__(self, *params: Any) -> Any:
        """Run the method and return its result.

        Returns:
            A JSON-serializable value, or an awaitable resolving to one.
        """
        ...
