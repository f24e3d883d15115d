"""Helpers for safe logging.

leakbot handles a Telegram bot token (also embedded in request URLs) and
an optional broker password. These helpers keep both out of log lines.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset({"bot_token", "mqtt_password"})


def redact_for_log(values: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of a flat settings mapping with secret values masked."""
    return {
        key: "<redacted>" if key.lower() in _SENSITIVE_KEYS and value is not None else value
        for key, value in values.items()
    }


def redact_secret(text: str, secret: str | None) -> str:
    """Replace every occurrence of *secret* in *text*."""
    if not secret:
        return text
    return text.replace(secret, "<redacted>")
