"""Tests for the dispatcher and the Starlette application.

Tests use Starlette TestClient for fast, synchronous testing without
spawning real servers or opening sockets.
"""

import json

import pytest
from starlette.testclient import TestClient

from postrpc import HandlerError, RpcServer, ServerConfig
from postrpc.envelope import encode_request
from postrpc.registry import MethodRegistry
from postrpc.server import Dispatcher


def post(http: TestClient, method, params, request_id="1", path="/"):
    return http.post(path, content=encode_request(method, params, request_id=request_id))


# === Success and failure ===


def test_success_returns_result(http):
    """Handler return value becomes the result member."""
    response = post(http, "math.add", [1, 2], request_id="9")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    assert response.json() == {"result": 3, "error": None, "id": "9"}


def test_async_handler_is_awaited(http):
    response = post(http, "slow.echo", ["hi", 0])
    assert response.json() == {"result": "hi", "error": None, "id": "1"}


def test_handler_returning_none(http):
    response = post(http, "echo", [None])
    assert response.json() == {"result": None, "error": None, "id": "1"}


def test_handler_error_payload(http):
    """HandlerError carries its payload through as the error member."""
    response = post(http, "fail", [{"code": "E_BAD", "message": "bad"}])
    assert response.status_code == 200
    assert response.json() == {
        "result": None,
        "error": {"code": "E_BAD", "message": "bad"},
        "id": "1",
    }


def test_exception_message_becomes_error(http):
    response = post(http, "explode", [])
    assert response.status_code == 200
    assert response.json() == {"result": None, "error": "boom", "id": "1"}


@pytest.mark.parametrize("payload", [None, "", 0, False])
def test_falsy_failure_is_unspecified(http, payload):
    response = post(http, "fail", [payload])
    assert response.json()["error"] == "Unspecified Failure"


def test_wrong_arity_is_a_handler_failure(http):
    """Calling with the wrong number of params is reported, not a 400."""
    response = post(http, "math.add", [1])
    assert response.status_code == 200
    body = response.json()
    assert body["result"] is None
    assert "add()" in body["error"]


def test_unserializable_result_is_a_failure():
    server = RpcServer()
    server.expose("obj", lambda: object())
    response = post(TestClient(server.app), "obj", [])
    assert response.status_code == 200
    assert response.json()["error"].startswith("Result is not JSON-serializable")


@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
def test_non_finite_result_is_a_failure(value):
    """Non-finite floats have no JSON form and must not reach the wire."""
    server = RpcServer()
    server.expose("num", lambda: value)
    response = post(TestClient(server.app), "num", [])
    assert response.status_code == 200
    body = response.json()
    assert body["result"] is None
    assert body["error"].startswith("Result is not JSON-serializable")


def test_system_exit_in_handler_is_a_failure():
    server = RpcServer()

    async def quit_with(code):
        raise SystemExit(code)

    server.expose("quit", quit_with)
    http = TestClient(server.app)
    assert post(http, "quit", [3]).json() == {"result": None, "error": "3", "id": "1"}
    assert post(http, "quit", [None]).json()["error"] == "Unspecified Failure"
    # The server keeps answering afterwards.
    assert post(http, "quit", [4]).status_code == 200


def test_unserializable_error_payload_is_stringified():
    server = RpcServer()

    def fail():
        raise HandlerError({"when": object()})

    server.expose("fail", fail)
    response = post(TestClient(server.app), "fail", [])
    assert response.status_code == 200
    assert response.json()["error"].startswith("{'when': <object")


def test_any_path_is_dispatched(http):
    """The path is not used for routing."""
    response = post(http, "math.add", [2, 2], path="/some/nested/path")
    assert response.json()["result"] == 4


# === Invalid requests ===


@pytest.mark.parametrize(
    "body",
    [
        b"{not json",
        b"[]",
        json.dumps({"params": []}).encode(),
        json.dumps({"method": "", "params": []}).encode(),
        json.dumps({"method": "math.add"}).encode(),
        json.dumps({"method": "math.pi", "params": []}).encode(),
        json.dumps({"method": "missing", "params": []}).encode(),
        b"",
    ],
)
def test_invalid_request_returns_400(http, body):
    response = http.post("/", content=body)
    assert response.status_code == 400
    assert response.text == "Invalid Request\n"
    assert response.headers["content-type"].startswith("text/plain")


@pytest.mark.parametrize(
    "verb", ["GET", "PUT", "DELETE", "PATCH", "OPTIONS", "TRACE", "PROPFIND"]
)
def test_non_post_returns_405(http, verb):
    response = http.request(verb, "/")
    assert response.status_code == 405
    assert response.text == "Method Not Allowed\n"
    assert response.headers["allow"] == "POST"


def test_non_post_on_nested_path(http):
    response = http.get("/math/add")
    assert response.status_code == 405


# === Body size limit ===


def test_body_over_limit_returns_413():
    server = RpcServer(ServerConfig(max_body_size=32))
    server.expose("echo", lambda value: value)
    response = post(TestClient(server.app), "echo", ["x" * 100])
    assert response.status_code == 413
    assert response.text == "Request Entity Too Large\n"


def test_body_under_limit_is_dispatched():
    server = RpcServer(ServerConfig(max_body_size=1024))
    server.expose("echo", lambda value: value)
    response = post(TestClient(server.app), "echo", ["x"])
    assert response.json()["result"] == "x"


def test_no_limit_by_default(http):
    big = "x" * 100_000
    response = post(http, "echo", [big])
    assert response.json()["result"] == big


# === Dispatcher without HTTP ===


@pytest.mark.asyncio
async def test_dispatcher_rejects_non_post():
    reply = await Dispatcher(MethodRegistry()).dispatch("GET", b"")
    assert reply.status_code == 405
    assert reply.headers == {"Allow": "POST"}


@pytest.mark.asyncio
async def test_dispatcher_echoes_request_id():
    registry = MethodRegistry()
    registry.expose("ping", lambda: "pong")
    reply = await Dispatcher(registry).dispatch(
        "POST", encode_request("ping", [], request_id="abc")
    )
    assert reply.status_code == 200
    assert json.loads(reply.body) == {"result": "pong", "error": None, "id": "abc"}


@pytest.mark.asyncio
async def test_dispatcher_handles_awaitable_from_plain_callable():
    async def later():
        return 5

    registry = MethodRegistry()
    registry.expose("later", lambda: later())
    reply = await Dispatcher(registry).dispatch("POST", encode_request("later", []))
    assert json.loads(reply.body)["result"] == 5


# === RpcServer ===


def test_server_app_is_cached(server):
    assert server.app is server.app


def test_server_expose_module_returns_object(server):
    handlers = {"double": lambda x: x * 2}
    assert server.expose_module("calc", handlers) is handlers
    assert "calc.double" in server.registry


def test_listen_runs_server(monkeypatch, server):
    """listen() hands the configured host and port to the runner."""
    calls = []

    async def fake_run_server(srv, *, host, port, log_level):
        calls.append((srv, host, port, log_level))

    monkeypatch.setattr("postrpc.server.run_server", fake_run_server)
    server.listen(9001, "0.0.0.0")
    assert calls == [(server, "0.0.0.0", 9001, "info")]
