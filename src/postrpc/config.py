"""Centralized configuration for the postrpc server and client.

Values resolve with the precedence explicit argument > ``POSTRPC_*``
environment variable > default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from postrpc.types import Host, Port

__all__ = [
    "ClientConfig",
    "ServerConfig",
    "resolve_client_config",
    "resolve_server_config",
]

DEFAULT_HOST = Host("127.0.0.1")
DEFAULT_PORT = Port(8000)


@dataclass(frozen=True)
class ServerConfig:
    """Server settings.

    Attributes:
        host: Bind address.
        port: Bind port.
        max_body_size: Largest accepted request body in bytes. None means
            unlimited; bodies are buffered in memory either way.
        log_level: uvicorn log level.
    """

    host: Host = DEFAULT_HOST
    port: Port = DEFAULT_PORT
    max_body_size: int | None = None
    log_level: str = "info"


@dataclass(frozen=True)
class ClientConfig:
    """Client settings.

    Attributes:
        host: Server host.
        port: Server port.
        user: Basic auth user; auth is sent only with a password as well.
        password: Basic auth password.
        timeout: Transport timeout in seconds. None waits indefinitely.
    """

    host: Host = DEFAULT_HOST
    port: Port = DEFAULT_PORT
    user: str | None = None
    password: str | None = None
    timeout: float | None = None


def _env_int(name: str) -> int | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _env_float(name: str) -> float | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


def resolve_server_config(
    host: str | None = None,
    port: int | None = None,
    max_body_size: int | None = None,
    log_level: str | None = None,
) -> ServerConfig:
    """Build a ServerConfig from arguments, then env vars, then defaults."""
    env_port = _env_int("POSTRPC_PORT")
    env_max = _env_int("POSTRPC_MAX_BODY_SIZE")
    if port is None:
        port = env_port if env_port is not None else DEFAULT_PORT
    return ServerConfig(
        host=Host(host or os.getenv("POSTRPC_HOST") or DEFAULT_HOST),
        port=Port(port),
        max_body_size=max_body_size if max_body_size is not None else env_max,
        log_level=log_level or os.getenv("POSTRPC_LOG_LEVEL", "info"),
    )


def resolve_client_config(
    host: str | None = None,
    port: int | None = None,
    user: str | None = None,
    password: str | None = None,
    timeout: float | None = None,
) -> ClientConfig:
    """Build a ClientConfig from arguments, then env vars, then defaults."""
    env_port = _env_int("POSTRPC_PORT")
    if port is None:
        port = env_port if env_port is not None else DEFAULT_PORT
    return ClientConfig(
        host=Host(host or os.getenv("POSTRPC_HOST") or DEFAULT_HOST),
        port=Port(port),
        user=user or os.getenv("POSTRPC_USER"),
        password=password or os.getenv("POSTRPC_PASSWORD"),
        timeout=timeout if timeout is not None else _env_float("POSTRPC_TIMEOUT"),
    )
