"""Example 02: In-Process Calls

Demonstrates a client calling a server without opening a socket.

This example shows:
- Exposing single handlers and a whole handler mapping under a prefix
- Reporting failure from a handler with HandlerError
- Routing RpcClient through httpx.ASGITransport into the server app
- Running two calls concurrently on one client

Tier: 2 (Async, in-process HTTP)
"""

import asyncio

import httpx

from postrpc import HandlerError, RemoteError, RpcClient, RpcServer


def divide(a, b):
    if b == 0:
        raise HandlerError({"code": "ZERO_DIVISION", "message": "b must not be 0"})
    return a / b


async def countdown(n):
    await asyncio.sleep(0.01 * n)
    return list(range(n, 0, -1))


async def main() -> None:
    """Call exposed handlers through the full HTTP stack."""
    server = RpcServer()
    server.expose_module("math", {"add": lambda a, b: a + b, "divide": divide})
    server.expose("countdown", countdown)

    client = RpcClient(transport=httpx.ASGITransport(app=server.app))

    assert await client.call("math.add", [1, 2]) == 3

    try:
        await client.call("math.divide", [1, 0])
    except RemoteError as exc:
        assert exc.error["code"] == "ZERO_DIVISION"
    else:
        raise AssertionError("divide by zero should fail")

    slow, fast = await asyncio.gather(
        client.call("countdown", [3]),
        client.call("math.divide", [9, 3]),
    )
    assert slow == [3, 2, 1]
    assert fast == 3.0

    print("✓ In-process calls verified")


if __name__ == "__main__":
    asyncio.run(main())
