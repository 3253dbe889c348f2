"""Method registry: qualified method name -> handler.

The registry is written during setup and frozen before the server starts
serving, after which it is only read. Concurrent reads need no locking.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any, TypeVar

from postrpc.types import Handler

logger = logging.getLogger(__name__)

__all__ = ["MethodRegistry"]

T = TypeVar("T")


class MethodRegistry:
    """Owned mapping from method name to handler."""

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}
        self._frozen = False

    def expose(self, name: str, handler: Handler) -> None:
        """Register ``handler`` under ``name``.

        A later registration under the same name replaces the earlier one.

        Raises:
            RuntimeError: If the registry has been frozen.
        """
        self._check_writable()
        logger.info("*** exposing: %s", name)
        self._handlers[name] = handler

    def expose_all(self, prefix: str, handlers: Mapping[str, Handler]) -> None:
        """Register each ``(name, handler)`` pair as ``prefix.name``."""
        self._check_writable()
        for name, handler in handlers.items():
            self._handlers[f"{prefix}.{name}"] = handler
        logger.info("*** exposing module: %s [funs: %s]", prefix, ", ".join(handlers))

    def expose_module(self, prefix: str, obj: T) -> T:
        """Register every public callable member of ``obj`` under ``prefix``.

        ``obj`` may be a module, any object, or a mapping. Non-callable
        members and names starting with an underscore are skipped.

        Returns:
            ``obj`` unchanged, so the call can be chained into further setup.

        Example:
            math_api = registry.expose_module("math", math_handlers)
        """
        self.expose_all(prefix, _callable_members(obj))
        return obj

    def lookup(self, name: str) -> Handler | None:
        """Return the handler registered under ``name``, or None."""
        return self._handlers.get(name)

    def names(self) -> list[str]:
        """Return the registered method names, sorted."""
        return sorted(self._handlers)

    def freeze(self) -> None:
        """Reject further registrations."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_writable(self) -> None:
        if self._frozen:
            raise RuntimeError("Cannot register methods after the server has started")

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)


def _callable_members(obj: Any) -> dict[str, Handler]:
    if isinstance(obj, Mapping):
        members = obj.items()
    else:
        members = ((name, getattr(obj, name, None)) for name in dir(obj))
    return {
        name: value
        for name, value in members
        if isinstance(name, str) and not name.startswith("_") and callable(value)
    }
