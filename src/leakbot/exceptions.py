"""Custom exception hierarchy for leakbot."""

from __future__ import annotations


class LeakBotError(Exception):
    """Base exception for all leakbot errors."""


class LeakBotConfigError(LeakBotError):
    """Invalid or missing configuration."""


class LeakBotConnectionError(LeakBotError):
    """MQTT broker connect, subscribe or streaming failure."""

    def __init__(
        self,
        message: str,
        *,
        reason_code: int | None = None,
    ) -> None:
        self.reason_code = reason_code
        super().__init__(message)


class LeakBotPayloadError(LeakBotError):
    """Inbound bus payload could not be decoded into a sensor reading."""

    def __init__(self, message: str, *, topic: str = "") -> None:
        self.topic = topic
        super().__init__(message)


class LeakBotNotifyError(LeakBotError):
    """Chat delivery failed (network, non-200, rejected by the API)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message)
