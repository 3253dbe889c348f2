"""JSON envelope encoding and decoding shared by client and server.

Wire shapes:

- request: ``{"id": "<string>", "method": "<string>", "params": [...]}``
- response: ``{"result": <json or null>, "error": <json or null>, "id": "<string>"}``
"""

from __future__ import annotations

import json
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from postrpc.errors import DecodeError, ValidationError

__all__ = [
    "Request",
    "Response",
    "decode_request",
    "decode_response",
    "encode_request",
    "encode_response",
    "new_request_id",
]


@dataclass(frozen=True)
class Request:
    """Decoded request envelope."""

    method: str
    params: list[Any]
    id: Any = None


@dataclass(frozen=True)
class Response:
    """Decoded response envelope.

    Attributes:
        result: The ``result`` member, or None.
        error: The ``error`` member, or None.
        id: The echoed request id.
        has_result: Whether the body carried a ``result`` key at all.
    """

    result: Any = None
    error: Any = None
    id: Any = None
    has_result: bool = field(default=False, compare=False)

    @property
    def succeeded(self) -> bool:
        """True when the response carries a result and no error."""
        return self.error is None and self.has_result


def new_request_id() -> str:
    """Return a timestamp-derived request id (milliseconds since the epoch)."""
    return str(time.time_ns() // 1_000_000)


def encode_request(
    method: str, params: Sequence[Any] = (), *, request_id: str | None = None
) -> bytes:
    """Encode a method call as a request body.

    Args:
        method: Qualified method name, e.g. ``"math.add"``.
        params: Positional parameters for the handler.
        request_id: Explicit id; a fresh one is generated when omitted.

    Returns:
        UTF-8 encoded JSON request envelope.

    Raises:
        TypeError: If a parameter is not JSON-serializable.
        ValueError: If a parameter contains NaN or an infinite float.
    """
    if request_id is None:
        request_id = new_request_id()
    return json.dumps(
        {"id": request_id, "method": method, "params": list(params)},
        allow_nan=False,
    ).encode("utf-8")


def _load_object(body: bytes | str) -> dict[str, Any]:
    try:
        decoded = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodeError(f"Malformed JSON body: {exc}") from exc
    if not isinstance(decoded, dict):
        raise DecodeError(f"Expected a JSON object, got {type(decoded).__name__}")
    return decoded


def decode_request(body: bytes | str) -> Request:
    """Decode and validate a request body.

    Raises:
        DecodeError: If the body is not a JSON object.
        ValidationError: If ``method`` is missing or empty, or ``params`` is
            missing or not a list.
    """
    decoded = _load_object(body)
    method = decoded.get("method")
    params = decoded.get("params")
    if not method or not isinstance(method, str):
        raise ValidationError("Request is missing 'method'")
    if params is None:
        raise ValidationError("Request is missing 'params'")
    if not isinstance(params, list):
        raise ValidationError("'params' must be a list")
    return Request(method=method, params=params, id=decoded.get("id"))


def encode_response(request_id: Any, result: Any = None, error: Any = None) -> bytes:
    """Encode a response body.

    Both ``result`` and ``error`` are always emitted, so the wire shape is
    ``{result, error, id}`` even when one of them is null.

    Raises:
        TypeError: If ``result`` or ``error`` is not JSON-serializable.
        ValueError: If ``result`` or ``error`` contains NaN or an infinite
            float, which have no JSON representation.
    """
    return json.dumps(
        {"result": result, "error": error, "id": request_id}, allow_nan=False
    ).encode("utf-8")


def decode_response(body: bytes | str) -> Response:
    """Decode a response body without judging success or failure.

    Raises:
        DecodeError: If the body is not a JSON object.
    """
    decoded = _load_object(body)
    return Response(
        result=decoded.get("result"),
        error=decoded.get("error"),
        id=decoded.get("id"),
        has_result="result" in decoded,
    )
