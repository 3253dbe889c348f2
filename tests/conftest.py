"""Pytest configuration and fixtures."""

import asyncio

import pytest
from starlette.testclient import TestClient

from postrpc import HandlerError, RpcServer


def add(a, b):
    return a + b


def fail_with(payload):
    raise HandlerError(payload)


def explode():
    raise ValueError("boom")


async def slow_echo(value, delay=0.05):
    await asyncio.sleep(delay)
    return value


@pytest.fixture
def server() -> RpcServer:
    """Server exposing a small set of math and failure handlers."""
    rpc = RpcServer()
    rpc.expose_module("math", {"add": add, "pi": 3.14})
    rpc.expose("echo", lambda value: value)
    rpc.expose("slow.echo", slow_echo)
    rpc.expose("fail", fail_with)
    rpc.expose("explode", explode)
    return rpc


@pytest.fixture
def http(server) -> TestClient:
    """Starlette TestClient bound to the server's application."""
    return TestClient(server.app)
