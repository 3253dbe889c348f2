"""JSON-RPC client over HTTP POST.

Each call performs exactly one POST on its own ``httpx.AsyncClient``; there
is no retry, pooling or deduplication. The call's coroutine resolves once,
either to the remote result or by raising.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from postrpc.config import DEFAULT_HOST, DEFAULT_PORT, ClientConfig
from postrpc.envelope import decode_response, encode_request, new_request_id
from postrpc.errors import RemoteError, StatusError, TransportError

logger = logging.getLogger(__name__)

__all__ = ["RpcClient"]


class RpcClient:
    """Client bound to one host, port and optional Basic auth credentials.

    Args:
        host: Server host.
        port: Server port.
        user: Basic auth user.
        password: Basic auth password. Auth is only sent when both are set.
        timeout: Transport timeout in seconds; None waits indefinitely.
        transport: Optional ``httpx`` transport, e.g. ``httpx.ASGITransport``
            to call an in-process app or ``httpx.MockTransport`` in tests.

    Example:
        client = RpcClient("127.0.0.1", 8000, user="u", password="p")
        total = await client.call("math.add", [1, 2])
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        user: str | None = None,
        password: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(
        cls, config: ClientConfig, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> RpcClient:
        return cls(
            config.host,
            config.port,
            config.user,
            config.password,
            timeout=config.timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def _auth(self) -> httpx.BasicAuth | None:
        if self.user and self.password:
            return httpx.BasicAuth(self.user, self.password)
        return None

    async def call(
        self, method: str, params: Sequence[Any] = (), path: str = "/"
    ) -> Any:
        """Call ``method`` remotely and return its result.

        Args:
            method: Qualified method name.
            params: Positional parameters passed to the remote handler.
            path: Request path; the server accepts any path.

        Returns:
            The ``result`` member of the response.

        Raises:
            TransportError: If the HTTP exchange fails.
            StatusError: If the server answers with a non-200 status.
            DecodeError: If the response body is not a JSON object.
            RemoteError: If the response carries an error, or neither a
                result nor an error.
            ValueError: If ``params`` contains NaN or an infinite float.
        """
        request_id = new_request_id()
        body = encode_request(method, params, request_id=request_id)
        if not path.startswith("/"):
            path = "/" + path
        url = self.base_url + path

        logger.debug("--> request (id %s): %s to %s", request_id, method, url)
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                auth=self._auth(),
                timeout=self.timeout,
            ) as client:
                response = await client.post(
                    url,
                    content=body,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TransportError as exc:
            logger.warning("Transport error calling %s: %s", method, exc)
            raise TransportError(f"{method} failed: {exc}") from exc

        return self._resolve(method, request_id, response)

    def _resolve(self, method: str, request_id: str, response: httpx.Response) -> Any:
        if response.status_code != 200:
            raise StatusError(response.status_code, response.text)

        decoded = decode_response(response.content)
        if decoded.id != request_id:
            # One HTTP exchange per call, so the id is informational only.
            logger.debug("Response id %r differs from request id %r", decoded.id, request_id)

        if decoded.error is not None:
            logger.debug("<-- failure (id %s): %r", request_id, decoded.error)
            raise RemoteError(decoded.error)
        if decoded.has_result:
            logger.debug("<-- response (id %s): %s", request_id, method)
            return decoded.result
        raise RemoteError(decoded.error)
