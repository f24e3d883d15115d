from __future__ import annotations

import json
from typing import Any

import aiohttp
import pytest

from leakbot._telegram import TelegramNotifier
from leakbot.exceptions import LeakBotNotifyError

_TOKEN = "123456:SECRET-TOKEN"


class _FakeResponse:
    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self._body = body

    async def text(self) -> str:
        return self._body

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _FakeSession:
    def __init__(self, response: _FakeResponse | None = None, error: Exception | None = None) -> None:
        self._response = response
        self._error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def post(self, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append((url, kwargs))
        if self._error is not None:
            raise self._error
        assert self._response is not None
        return self._response


def _notifier(session: _FakeSession, **kwargs: Any) -> TelegramNotifier:
    return TelegramNotifier(_TOKEN, session, **kwargs)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_send_message_posts_chat_and_text() -> None:
    session = _FakeSession(_FakeResponse(200, json.dumps({"ok": True, "result": {"message_id": 1}})))

    await _notifier(session, api_base="https://tg.example/").send_message(-100, "привет")

    url, kwargs = session.calls[0]
    assert url == f"https://tg.example/bot{_TOKEN}/sendMessage"
    assert kwargs["json"] == {"chat_id": -100, "text": "привет"}
    assert isinstance(kwargs["timeout"], aiohttp.ClientTimeout)


@pytest.mark.asyncio
async def test_http_error_maps_to_notify_error() -> None:
    session = _FakeSession(_FakeResponse(401, '{"ok":false,"error_code":401,"description":"Unauthorized"}'))

    with pytest.raises(LeakBotNotifyError) as excinfo:
        await _notifier(session).send_message(1, "x")

    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_rejected_reply_maps_to_notify_error() -> None:
    session = _FakeSession(_FakeResponse(200, '{"ok": false, "description": "chat not found"}'))

    with pytest.raises(LeakBotNotifyError, match="chat not found"):
        await _notifier(session).send_message(1, "x")


@pytest.mark.asyncio
async def test_non_json_reply_maps_to_notify_error() -> None:
    session = _FakeSession(_FakeResponse(200, "<html>bad gateway</html>"))

    with pytest.raises(LeakBotNotifyError, match="Invalid JSON"):
        await _notifier(session).send_message(1, "x")


@pytest.mark.asyncio
async def test_client_error_is_wrapped_and_token_redacted() -> None:
    error = aiohttp.ClientConnectionError(f"Cannot connect to https://api.telegram.org/bot{_TOKEN}/sendMessage")
    session = _FakeSession(error=error)

    with pytest.raises(LeakBotNotifyError) as excinfo:
        await _notifier(session).send_message(1, "x")

    assert _TOKEN not in str(excinfo.value)
    assert "<redacted>" in str(excinfo.value)
    assert excinfo.value.__cause__ is error


@pytest.mark.asyncio
async def test_undecodable_reply_maps_to_notify_error() -> None:
    class _BadEncoding(_FakeResponse):
        async def text(self) -> str:
            raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

    session = _FakeSession(_BadEncoding(200, ""))

    with pytest.raises(LeakBotNotifyError, match="sendMessage failed"):
        await _notifier(session).send_message(1, "x")
