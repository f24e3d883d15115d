"""Runtime configuration for leakbot."""

from __future__ import annotations

import dataclasses
import json
import os
from typing import Any

from leakbot._constants import (
    DEFAULT_BRIDGE_PREFIX,
    DEFAULT_MQTT_CLIENT_ID,
    DEFAULT_MQTT_HOST,
    DEFAULT_MQTT_KEEPALIVE,
    DEFAULT_MQTT_PORT,
    DEFAULT_MQTT_TOPIC,
    DEFAULT_RECONNECT_DELAY,
    DEFAULT_TELEGRAM_TIMEOUT,
    TELEGRAM_API_BASE,
)
from leakbot.exceptions import LeakBotConfigError


def _env_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _env_port(value: str | None, default: int) -> int:
    port = _env_int(value, default)
    if not 0 <= port <= 0xFFFF:
        return default
    return port


def _env_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value.strip())
    except ValueError:
        return default


def _parse_places(raw: str) -> dict[str, str]:
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise LeakBotConfigError(f"LEAKBOT_PLACES is not valid JSON: {exc}") from exc
    if not isinstance(decoded, dict):
        raise LeakBotConfigError("LEAKBOT_PLACES must be a JSON object of device -> place")
    return {str(key): str(value) for key, value in decoded.items()}


@dataclasses.dataclass(frozen=True)
class LeakBotConfig:
    """Bridge configuration.

    Parameters
    ----------
    bot_token : str
        Telegram bot token used for ``sendMessage``.
    chat_id : int
        Telegram chat that receives every alert.
    mqtt_host : str
        Broker host name or address.
    mqtt_port : int
        Broker TCP port.
    mqtt_topic : str
        Topic filter to subscribe to (QoS 0).
    mqtt_username : str or None
        Optional broker username.
    mqtt_password : str or None
        Optional broker password, only used with ``mqtt_username``.
    mqtt_client_id : str
        MQTT client identifier.
    mqtt_keepalive : int
        MQTT keep-alive interval in seconds.
    bridge_prefix : str
        Topic prefix reserved for bridge status messages; never alerted on.
    reconnect_delay : float
        Fixed delay in seconds between a bus failure and the next connect.
    places : dict
        Extra device id -> place name entries, merged over the built-in table.
    telegram_api_base : str
        Telegram Bot API base URL.
    telegram_timeout : float
        Total timeout in seconds for a single ``sendMessage`` request.
    """

    bot_token: str
    chat_id: int
    mqtt_host: str = DEFAULT_MQTT_HOST
    mqtt_port: int = DEFAULT_MQTT_PORT
    mqtt_topic: str = DEFAULT_MQTT_TOPIC
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_client_id: str = DEFAULT_MQTT_CLIENT_ID
    mqtt_keepalive: int = DEFAULT_MQTT_KEEPALIVE
    bridge_prefix: str = DEFAULT_BRIDGE_PREFIX
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY
    places: dict[str, str] = dataclasses.field(default_factory=dict)
    telegram_api_base: str = TELEGRAM_API_BASE
    telegram_timeout: float = DEFAULT_TELEGRAM_TIMEOUT

    @classmethod
    def from_env(cls, **overrides: Any) -> LeakBotConfig:
        """Create configuration from environment variables.

        Reads ``TELEGRAM_BOT_TOKEN`` and ``TELEGRAM_CHAT_ID`` (required) and
        the optional ``MQTT_*``, ``LEAKBOT_*`` and ``TELEGRAM_*`` variables.
        Explicit keyword arguments override environment values.

        Raises
        ------
        LeakBotConfigError
            A required value is missing or malformed.
        """
        env = os.environ

        config_kwargs: dict[str, Any] = {}

        if "bot_token" not in overrides:
            token = (env.get("TELEGRAM_BOT_TOKEN") or "").strip()
            if not token:
                raise LeakBotConfigError("TELEGRAM_BOT_TOKEN is not set")
            config_kwargs["bot_token"] = token

        if "chat_id" not in overrides:
            raw_chat = (env.get("TELEGRAM_CHAT_ID") or "").strip()
            if not raw_chat:
                raise LeakBotConfigError("TELEGRAM_CHAT_ID is not set")
            try:
                config_kwargs["chat_id"] = int(raw_chat)
            except ValueError as exc:
                raise LeakBotConfigError(f"TELEGRAM_CHAT_ID must be integer, got {raw_chat!r}") from exc

        _ENV_STR_MAP = {
            "MQTT_HOST": "mqtt_host",
            "MQTT_TOPIC": "mqtt_topic",
            "MQTT_USERNAME": "mqtt_username",
            "MQTT_PASSWORD": "mqtt_password",
            "MQTT_CLIENT_ID": "mqtt_client_id",
            "LEAKBOT_BRIDGE_PREFIX": "bridge_prefix",
            "TELEGRAM_API_BASE": "telegram_api_base",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        # Numeric values fall back to defaults when unparsable
        config_kwargs["mqtt_port"] = _env_port(env.get("MQTT_PORT"), DEFAULT_MQTT_PORT)
        config_kwargs["mqtt_keepalive"] = _env_int(env.get("MQTT_KEEPALIVE"), DEFAULT_MQTT_KEEPALIVE)
        config_kwargs["reconnect_delay"] = _env_float(
            env.get("LEAKBOT_RECONNECT_DELAY"),
            DEFAULT_RECONNECT_DELAY,
        )
        config_kwargs["telegram_timeout"] = _env_float(env.get("TELEGRAM_TIMEOUT"), DEFAULT_TELEGRAM_TIMEOUT)

        places_env = env.get("LEAKBOT_PLACES")
        if places_env and "places" not in overrides:
            config_kwargs["places"] = _parse_places(places_env)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
