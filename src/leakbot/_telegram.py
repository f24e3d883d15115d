"""Telegram Bot API notification sink."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp

from leakbot._constants import DEFAULT_TELEGRAM_TIMEOUT, TELEGRAM_API_BASE
from leakbot._redact import redact_secret
from leakbot.exceptions import LeakBotNotifyError

_logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Structural chat sink used by the bridge.

    Implementations raise :class:`LeakBotNotifyError` when delivery fails.
    Tests pass simple recording doubles.
    """

    async def send_message(self, chat_id: int, text: str) -> None:
        ...


class TelegramNotifier:
    """Send plain text messages through ``sendMessage``."""

    def __init__(
        self,
        bot_token: str,
        http_session: aiohttp.ClientSession,
        *,
        api_base: str = TELEGRAM_API_BASE,
        timeout: float = DEFAULT_TELEGRAM_TIMEOUT,
    ) -> None:
        self._token = bot_token
        self._http = http_session
        self._api_base = api_base.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def _redact(self, text: str) -> str:
        return redact_secret(text, self._token)

    async def send_message(self, chat_id: int, text: str) -> None:
        url = f"{self._api_base}/bot{self._token}/sendMessage"
        body: dict[str, Any] = {"chat_id": chat_id, "text": text}

        _logger.debug("POST sendMessage chat_id=%s chars=%d", chat_id, len(text))

        try:
            async with self._http.post(url, json=body, timeout=self._timeout) as resp:
                reply = await resp.text()
                status = resp.status
        except (aiohttp.ClientError, TimeoutError, UnicodeDecodeError) as exc:
            raise LeakBotNotifyError(f"sendMessage failed: {self._redact(str(exc))}") from exc

        if status != 200:
            raise LeakBotNotifyError(
                f"HTTP {status} from sendMessage: {self._redact(reply[:200])}",
                status_code=status,
            )

        try:
            decoded = json.loads(reply)
        except json.JSONDecodeError as exc:
            raise LeakBotNotifyError(
                f"Invalid JSON from sendMessage: {self._redact(reply[:200])}",
                status_code=status,
            ) from exc

        if not isinstance(decoded, dict) or decoded.get("ok") is not True:
            description = decoded.get("description", "") if isinstance(decoded, dict) else ""
            raise LeakBotNotifyError(
                f"sendMessage rejected: {description}",
                status_code=status,
            )
