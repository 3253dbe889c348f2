"""JSON-RPC server: per-request dispatch and the Starlette application.

Every request walks the same path: buffer the body, decode it, validate the
required fields, resolve the method in the registry, invoke the handler and
write exactly one response. Application-level failures are reported as
HTTP 200 with a populated ``error`` member; only malformed requests (400),
non-POST verbs (405) and oversized bodies (413) change the status code.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Mount, request_response

from postrpc.config import ServerConfig
from postrpc.envelope import Request as RpcRequest
from postrpc.envelope import decode_request, encode_response
from postrpc.errors import DecodeError, HandlerError, ValidationError
from postrpc.registry import MethodRegistry
from postrpc.runner import run_server
from postrpc.types import Handler

logger = logging.getLogger(__name__)

__all__ = ["Dispatcher", "Reply", "RpcServer", "create_app"]

METHOD_NOT_ALLOWED = "Method Not Allowed\n"
INVALID_REQUEST = "Invalid Request\n"
ENTITY_TOO_LARGE = "Request Entity Too Large\n"
UNSPECIFIED_FAILURE = "Unspecified Failure"

T = TypeVar("T")


@dataclass(frozen=True)
class Reply:
    """The single HTTP response produced for one request."""

    status_code: int
    body: bytes
    media_type: str = "application/json"
    headers: dict[str, str] = field(default_factory=dict)

    def to_response(self) -> Response:
        return Response(
            self.body,
            status_code=self.status_code,
            media_type=self.media_type,
            headers=self.headers,
        )


def method_not_allowed() -> Reply:
    return Reply(
        405,
        METHOD_NOT_ALLOWED.encode("utf-8"),
        media_type="text/plain",
        headers={"Allow": "POST"},
    )


def invalid_request() -> Reply:
    return Reply(400, INVALID_REQUEST.encode("utf-8"), media_type="text/plain")


def entity_too_large() -> Reply:
    return Reply(413, ENTITY_TOO_LARGE.encode("utf-8"), media_type="text/plain")


async def invoke(handler: Handler, params: list[Any]) -> Any:
    """Call ``handler`` with ``params`` and return its result.

    Coroutine functions run on the event loop; plain callables run in the
    threadpool so they cannot block other requests. An awaitable returned by
    a plain callable is awaited.
    """
    if inspect.iscoroutinefunction(handler):
        result = await handler(*params)
    else:
        result = await run_in_threadpool(handler, *params)
    if inspect.isawaitable(result):
        result = await result
    return result


class Dispatcher:
    """Turns one decoded HTTP request into exactly one :class:`Reply`."""

    def __init__(self, registry: MethodRegistry) -> None:
        self._registry = registry

    async def dispatch(self, http_method: str, body: bytes) -> Reply:
        """Dispatch a buffered request body.

        Args:
            http_method: The HTTP verb of the request.
            body: The complete request body.

        Returns:
            The reply to write back. Never raises for handler failures.
        """
        if http_method != "POST":
            logger.info("--> rejected %s: method not allowed", http_method)
            return method_not_allowed()

        try:
            request = decode_request(body)
        except (DecodeError, ValidationError) as exc:
            logger.info("--> invalid request: %s", exc)
            return invalid_request()

        handler = self._registry.lookup(request.method)
        if handler is None:
            logger.info("--> invalid request: unknown method %r", request.method)
            return invalid_request()

        logger.info(
            "<-- request (id %s): %s(%s)",
            request.id,
            request.method,
            ", ".join(repr(p) for p in request.params),
        )

        try:
            result = await invoke(handler, request.params)
        except HandlerError as exc:
            return self._failure(request, exc.error)
        except (Exception, SystemExit) as exc:
            logger.exception("Handler for %s raised", request.method)
            return self._failure(request, str(exc))

        try:
            encoded = encode_response(request.id, result, None)
        except (TypeError, ValueError) as exc:
            return self._failure(request, f"Result is not JSON-serializable: {exc}")

        logger.info("--> response (id %s): %r", request.id, result)
        return Reply(200, encoded)

    def _failure(self, request: RpcRequest, error: Any) -> Reply:
        error = error or UNSPECIFIED_FAILURE
        try:
            encoded = encode_response(request.id, None, error)
        except (TypeError, ValueError):
            error = repr(error)
            encoded = encode_response(request.id, None, error)
        logger.info("--> failure (id %s): %r", request.id, error)
        return Reply(200, encoded)


async def read_body(request: Request, limit: int | None) -> bytes | None:
    """Buffer the whole request body.

    Returns:
        The body, or None when it is larger than ``limit`` bytes.
    """
    if limit is not None:
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > limit:
            return None
    buffer = bytearray()
    async for chunk in request.stream():
        buffer.extend(chunk)
        if limit is not None and len(buffer) > limit:
            return None
    return bytes(buffer)


class RpcServer:
    """A registry of handlers plus the HTTP application that serves them.

    Example:
        server = RpcServer()
        server.expose("echo", lambda value: value)
        server.expose_module("math", {"add": lambda a, b: a + b})
        server.listen(8000)
    """

    def __init__(
        self,
        config: ServerConfig | None = None,
        registry: MethodRegistry | None = None,
    ) -> None:
        self.config = config or ServerConfig()
        self.registry = registry if registry is not None else MethodRegistry()
        self.dispatcher = Dispatcher(self.registry)
        self._app: Starlette | None = None

    def expose(self, name: str, handler: Handler) -> None:
        self.registry.expose(name, handler)

    def expose_all(self, prefix: str, handlers: Mapping[str, Handler]) -> None:
        self.registry.expose_all(prefix, handlers)

    def expose_module(self, prefix: str, obj: T) -> T:
        return self.registry.expose_module(prefix, obj)

    @property
    def app(self) -> Starlette:
        """The ASGI application, created on first access."""
        if self._app is None:
            self._app = create_app(self)
        return self._app

    async def handle(self, request: Request) -> Response:
        """Starlette endpoint for every path and verb."""
        logger.info("<-- accepted %s %s", request.method, request.url.path)
        if request.method != "POST":
            reply = await self.dispatcher.dispatch(request.method, b"")
            return reply.to_response()

        body = await read_body(request, self.config.max_body_size)
        if body is None:
            logger.info("--> rejected: body exceeds %s bytes", self.config.max_body_size)
            return entity_too_large().to_response()
        reply = await self.dispatcher.dispatch(request.method, body)
        return reply.to_response()

    def listen(self, port: int | None = None, host: str | None = None) -> None:
        """Serve until interrupted. Blocks the calling thread.

        Registration is closed once the server starts.
        """
        asyncio.run(
            run_server(
                self,
                host=host or self.config.host,
                port=port if port is not None else self.config.port,
                log_level=self.config.log_level,
            )
        )


def create_app(server: RpcServer) -> Starlette:
    """Create the Starlette application for ``server``.

    The endpoint is mounted at the root, so every path and every verb reaches
    it; the path is not used for dispatch and verbs are not filtered by the
    router.
    """
    return Starlette(
        routes=[
            Mount("", app=request_response(server.handle)),
        ],
    )
