from __future__ import annotations

import pytest

from leakbot.config import LeakBotConfig
from leakbot.exceptions import LeakBotConfigError

_ENV_KEYS = (
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_CHAT_ID",
    "MQTT_HOST",
    "MQTT_PORT",
    "MQTT_TOPIC",
    "MQTT_USERNAME",
    "MQTT_PASSWORD",
    "MQTT_CLIENT_ID",
    "MQTT_KEEPALIVE",
    "LEAKBOT_BRIDGE_PREFIX",
    "LEAKBOT_RECONNECT_DELAY",
    "LEAKBOT_PLACES",
    "TELEGRAM_API_BASE",
    "TELEGRAM_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _required(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:ABC")
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "-100200300")


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    _required(monkeypatch)

    config = LeakBotConfig.from_env()

    assert config.bot_token == "123:ABC"
    assert config.chat_id == -100200300
    assert config.mqtt_host == "127.0.0.1"
    assert config.mqtt_port == 1883
    assert config.mqtt_topic == "zigbee2mqtt/#"
    assert config.mqtt_keepalive == 10
    assert config.mqtt_client_id == "zigbee-leak-bot"
    assert config.bridge_prefix == "zigbee2mqtt/bridge"
    assert config.reconnect_delay == 5.0
    assert config.mqtt_username is None
    assert config.places == {}


def test_missing_token_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "1")

    with pytest.raises(LeakBotConfigError, match="TELEGRAM_BOT_TOKEN"):
        LeakBotConfig.from_env()


def test_missing_chat_id_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:ABC")

    with pytest.raises(LeakBotConfigError, match="TELEGRAM_CHAT_ID"):
        LeakBotConfig.from_env()


def test_non_integer_chat_id_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:ABC")
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "@my_channel")

    with pytest.raises(LeakBotConfigError, match="integer"):
        LeakBotConfig.from_env()


@pytest.mark.parametrize("raw_port", ["eighteen", "70000", "-1", "65536"])
def test_unparsable_port_falls_back_to_default(monkeypatch: pytest.MonkeyPatch, raw_port: str) -> None:
    _required(monkeypatch)
    monkeypatch.setenv("MQTT_PORT", raw_port)

    assert LeakBotConfig.from_env().mqtt_port == 1883


def test_port_range_bounds_are_accepted(monkeypatch: pytest.MonkeyPatch) -> None:
    _required(monkeypatch)
    monkeypatch.setenv("MQTT_PORT", "65535")

    assert LeakBotConfig.from_env().mqtt_port == 65535


def test_optional_values_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    _required(monkeypatch)
    monkeypatch.setenv("MQTT_HOST", "broker.lan")
    monkeypatch.setenv("MQTT_PORT", "8883")
    monkeypatch.setenv("MQTT_TOPIC", "z2m/#")
    monkeypatch.setenv("MQTT_USERNAME", "bot")
    monkeypatch.setenv("MQTT_PASSWORD", "pw")
    monkeypatch.setenv("LEAKBOT_BRIDGE_PREFIX", "z2m/bridge")
    monkeypatch.setenv("LEAKBOT_RECONNECT_DELAY", "2.5")
    monkeypatch.setenv("LEAKBOT_PLACES", '{"leak_garage": "Гараж"}')

    config = LeakBotConfig.from_env()

    assert config.mqtt_host == "broker.lan"
    assert config.mqtt_port == 8883
    assert config.mqtt_topic == "z2m/#"
    assert config.mqtt_username == "bot"
    assert config.mqtt_password == "pw"
    assert config.bridge_prefix == "z2m/bridge"
    assert config.reconnect_delay == 2.5
    assert config.places == {"leak_garage": "Гараж"}


def test_invalid_places_is_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    _required(monkeypatch)
    monkeypatch.setenv("LEAKBOT_PLACES", '["leak_garage"]')

    with pytest.raises(LeakBotConfigError, match="LEAKBOT_PLACES"):
        LeakBotConfig.from_env()


def test_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MQTT_HOST", "broker.lan")

    config = LeakBotConfig.from_env(bot_token="t", chat_id=7, mqtt_host="other")

    assert config.chat_id == 7
    assert config.mqtt_host == "other"
