"""Runner that serves an RpcServer over HTTP with uvicorn."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import uvicorn

from postrpc.types import Host, Port

if TYPE_CHECKING:
    from postrpc.server import RpcServer

__all__ = ["run_server"]

logger = logging.getLogger(__name__)


async def run_server(
    server: RpcServer,
    *,
    host: Host = Host("127.0.0.1"),
    port: Port = Port(8000),
    log_level: str = "info",
) -> None:
    """Run the HTTP server until cancelled.

    The registry is frozen before the socket is bound, so handlers can no
    longer be added or replaced while requests are being served.

    Args:
        server: The RpcServer whose application is served.
        host: Bind address (default: 127.0.0.1).
        port: Bind port (default: 8000).
        log_level: uvicorn log level (default: "info").

    Example:
        server = RpcServer()
        server.expose("ping", lambda: "pong")
        await run_server(server, host="0.0.0.0", port=8000)
    """
    server.registry.freeze()
    config = uvicorn.Config(
        server.app,
        host=host,
        port=port,
        log_level=log_level,
        access_log=False,
    )
    http_server = uvicorn.Server(config)

    logger.info(
        "*** Server listening on http://%s:%s/ [methods: %s]",
        host,
        port,
        ", ".join(server.registry.names()),
    )

    try:
        await http_server.serve()
    except Exception:
        logger.exception("HTTP server error")
        raise
    finally:
        logger.info("*** HTTP server shutdown complete")
