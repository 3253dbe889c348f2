"""postrpc: minimal JSON-RPC over HTTP.

This package provides:
- Envelope encoding and decoding shared by client and server
- A method registry with single and bulk registration
- An httpx-based client with optional Basic auth
- A Starlette/uvicorn server that dispatches by method name
"""

__version__ = "0.1.0"

from postrpc.client import RpcClient
from postrpc.config import ClientConfig, ServerConfig
from postrpc.envelope import (
    Request,
    Response,
    decode_request,
    decode_response,
    encode_request,
    encode_response,
)
from postrpc.errors import (
    DecodeError,
    HandlerError,
    RemoteError,
    RpcError,
    StatusError,
    TransportError,
    ValidationError,
)
from postrpc.registry import MethodRegistry
from postrpc.server import Dispatcher, RpcServer, create_app

__all__ = [
    # Envelope
    "Request",
    "Response",
    "decode_request",
    "decode_response",
    "encode_request",
    "encode_response",
    # Errors
    "DecodeError",
    "HandlerError",
    "RemoteError",
    "RpcError",
    "StatusError",
    "TransportError",
    "ValidationError",
    # Client and server
    "ClientConfig",
    "Dispatcher",
    "MethodRegistry",
    "RpcClient",
    "RpcServer",
    "ServerConfig",
    "create_app",
]
