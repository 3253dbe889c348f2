"""Typer-based CLI for postrpc.

``postrpc serve`` exposes Python modules over HTTP; ``postrpc call`` sends a
single request and prints the result as JSON.
"""

import asyncio
import importlib
import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import typer

from postrpc import __version__
from postrpc.client import RpcClient
from postrpc.config import ServerConfig, resolve_client_config, resolve_server_config
from postrpc.errors import RemoteError, RpcError
from postrpc.server import RpcServer

app = typer.Typer(
    name="postrpc",
    help="Minimal JSON-RPC over HTTP client and server",
    add_completion=False,
)


def setup_logging(log_dir: Path, log_level: str) -> None:
    """Configure file logging with RotatingFileHandler.

    Args:
        log_dir: Directory for log files (created if missing)
        log_level: Logging level (info, debug, warning, error, critical)
    """
    log_dir = log_dir.expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level.upper())

    # Clear existing handlers to prevent duplicates
    root_logger.handlers.clear()

    # 10MB per file, 3 backups
    log_file = log_dir / "postrpc.log"
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=3,
    )
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        ),
    )
    root_logger.addHandler(file_handler)

    # Stderr gets critical errors only; stdout is for command output
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.CRITICAL)
    stderr_handler.setFormatter(
        logging.Formatter("%(levelname)s: %(message)s"),
    )
    root_logger.addHandler(stderr_handler)


def parse_module_spec(spec: str) -> tuple[str, str]:
    """Split a ``PREFIX=import.path`` option into its parts.

    A bare import path uses its last component as the prefix.

    Raises:
        typer.BadParameter: If the prefix or the import path is empty.
    """
    if "=" in spec:
        prefix, _, path = spec.partition("=")
    else:
        path = spec
        prefix = spec.rsplit(".", 1)[-1]
    prefix, path = prefix.strip(), path.strip()
    if not prefix or not path:
        raise typer.BadParameter(f"Expected PREFIX=import.path, got {spec!r}")
    return prefix, path


def parse_param(value: str) -> Any:
    """Parse a command-line parameter as JSON, falling back to the raw string."""
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def build_server(modules: list[str], config: ServerConfig | None = None) -> RpcServer:
    """Create a server exposing each ``PREFIX=import.path`` module."""
    server = RpcServer(config)
    for spec in modules:
        prefix, path = parse_module_spec(spec)
        try:
            module = importlib.import_module(path)
        except ImportError as exc:
            raise typer.BadParameter(f"Cannot import {path!r}: {exc}") from exc
        server.expose_module(prefix, module)
    return server


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Print version and exit",
    ),
) -> None:
    """Minimal JSON-RPC over HTTP client and server."""
    if version:
        typer.echo(f"postrpc {__version__}")
        raise typer.Exit(0)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


@app.command()
def serve(
    host: str | None = typer.Option(
        None,
        "--host",
        help="HTTP server bind address (default: POSTRPC_HOST or 127.0.0.1)",
    ),
    port: int | None = typer.Option(
        None,
        "--port",
        help="HTTP server port (default: POSTRPC_PORT or 8000)",
    ),
    module: list[str] | None = typer.Option(
        None,
        "--module",
        "-m",
        help="Expose a module's callables as PREFIX=import.path (repeatable)",
    ),
    max_body_size: int | None = typer.Option(
        None,
        "--max-body-size",
        help="Reject request bodies larger than this many bytes",
    ),
    log_dir: Path = typer.Option(
        Path("~/.postrpc/logs"),
        "--log-dir",
        help="Directory for log files",
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        help="Logging level (debug, info, warning, error, critical)",
    ),
) -> None:
    """Serve the given modules over JSON-RPC until interrupted."""
    setup_logging(log_dir, log_level)

    config = resolve_server_config(host, port, max_body_size, log_level)
    server = build_server(module or [], config)

    typer.echo("Starting postrpc server")
    typer.echo(f"  HTTP: http://{config.host}:{config.port}/")
    typer.echo(f"  Methods: {', '.join(server.registry.names()) or '(none)'}")
    typer.echo(f"  Logs: {log_dir.expanduser() / 'postrpc.log'}")
    typer.echo("")

    server.listen(config.port, config.host)


@app.command()
def call(
    method: str = typer.Argument(..., help="Qualified method name, e.g. math.add"),
    params: list[str] | None = typer.Argument(
        None,
        help="Positional parameters; each is parsed as JSON when possible",
    ),
    host: str | None = typer.Option(None, "--host", help="Server host"),
    port: int | None = typer.Option(None, "--port", help="Server port"),
    user: str | None = typer.Option(None, "--user", help="Basic auth user"),
    password: str | None = typer.Option(None, "--password", help="Basic auth password"),
    path: str = typer.Option("/", "--path", help="Request path"),
    timeout: float | None = typer.Option(
        None, "--timeout", help="Transport timeout in seconds"
    ),
) -> None:
    """Call a remote method and print its result as JSON."""
    config = resolve_client_config(host, port, user, password, timeout)
    client = RpcClient.from_config(config)
    values = [parse_param(p) for p in params or []]

    try:
        result = asyncio.run(client.call(method, values, path))
    except RemoteError as exc:
        typer.echo(f"Error: {json.dumps(exc.error)}", err=True)
        raise typer.Exit(1)
    except RpcError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1)

    typer.echo(json.dumps(result))
