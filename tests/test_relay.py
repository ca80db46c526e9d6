from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from voice_relay.adapters.relay import RelayDispatcher, resolve_display_text
from voice_relay.errors import RelayError, RelayErrorKind
from voice_relay.models import RelayRequest

URL = "https://relay.test/webhook/voice"


def _send(handler, request: RelayRequest | None = None, **kwargs):
    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            dispatcher = RelayDispatcher(URL, client=http, **kwargs)
            return await dispatcher.send(request or RelayRequest(msg="hello", session_id="s-1"))

    return asyncio.run(_run())


def test_display_text_precedence() -> None:
    assert resolve_display_text({"output": "x", "response": "y", "text": "z"}, "hello") == "x"
    assert resolve_display_text({"response": "y", "text": "z"}, "hello") == "y"
    assert resolve_display_text({"text": "z", "message": "m"}, "hello") == "z"
    assert resolve_display_text({"message": "m"}, "hello") == "m"
    assert resolve_display_text({"output": "", "text": "z"}, "hello") == "z"
    assert resolve_display_text({}, "hello") == "hello"
    assert resolve_display_text("plain body", "hello") == "hello"
    assert resolve_display_text(["output"], "hello") == "hello"


def test_send_posts_json_with_session_id() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"output": "hi back"})

    response = _send(handler, RelayRequest(msg="hello", session_id="abc123"))

    assert response.display_text == "hi back"
    assert response.payload == {"output": "hi back"}
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == URL
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {"msg": "hello", "sessionId": "abc123"}


def test_send_uses_relay_timeout() -> None:
    timeouts: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        timeouts.append(request.extensions["timeout"])
        return httpx.Response(200, json={})

    _send(handler)

    assert timeouts[0]["read"] == 300.0


def test_non_json_body_echoes_input() -> None:
    response = _send(lambda request: httpx.Response(200, text="accepted"))

    assert response.payload == "accepted"
    assert response.display_text == "hello"


def test_http_error_keeps_status() -> None:
    with pytest.raises(RelayError) as info:
        _send(lambda request: httpx.Response(500))

    error = info.value
    assert error.kind == RelayErrorKind.HTTP
    assert error.status == 500
    assert error.message == "HTTP 500: Internal Server Error"
    assert error.title == "Server responded with an error"


def test_connection_failure_is_a_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RelayError) as info:
        _send(handler)

    assert info.value.kind == RelayErrorKind.NETWORK
    assert info.value.status is None
    assert info.value.title == "Network unavailable"


def test_deadline_is_a_timeout_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(RelayError) as info:
        _send(handler, timeout_seconds=5)

    assert info.value.kind == RelayErrorKind.TIMEOUT
    assert "5 seconds" in info.value.message
    assert info.value.title == "Connection timed out"


def test_unexpected_failure_is_unknown() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise ValueError("boom")

    with pytest.raises(RelayError) as info:
        _send(handler)

    assert info.value.kind == RelayErrorKind.UNKNOWN
    assert info.value.message == "boom"
    assert info.value.title == "Sending failed"


def test_pending_flag_tracks_request() -> None:
    observed: list[bool] = []

    async def _run() -> bool:
        dispatcher: RelayDispatcher

        def handler(request: httpx.Request) -> httpx.Response:
            observed.append(dispatcher.pending)
            return httpx.Response(200, json={"text": "ok"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            dispatcher = RelayDispatcher(URL, client=http)
            await dispatcher.send(RelayRequest(msg="hello", session_id="s-1"))
            return dispatcher.pending

    assert asyncio.run(_run()) is False
    assert observed == [True]
