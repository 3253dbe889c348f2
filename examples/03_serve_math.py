"""Example 03: Serving Over HTTP

Starts a server on http://127.0.0.1:8000/ exposing the ``math`` module.

Try it from another shell:

    postrpc call math.sqrt 16
    curl -X POST -d '{"id": "1", "method": "math.pow", "params": [2, 10]}' \
        http://127.0.0.1:8000/

Tier: 3 (Blocking server; not run by the test suite)
"""

import logging
import math

from postrpc import RpcServer


def serve() -> None:
    """Serve the math module until interrupted."""
    logging.basicConfig(level=logging.INFO)
    server = RpcServer()
    server.expose_module("math", math)
    server.listen(8000)


if __name__ == "__main__":
    serve()
