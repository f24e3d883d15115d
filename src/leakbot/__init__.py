"""leakbot - MQTT to Telegram bridge for zigbee water leak sensors."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("leakbot")
except PackageNotFoundError:
    __version__ = "0+local"
from leakbot._mqtt import BusClient, MqttBusClient, MqttNotice, MqttPublish
from leakbot._telegram import Notifier, TelegramNotifier
from leakbot.bridge import LeakBridge, LoopState
from leakbot.config import LeakBotConfig
from leakbot.exceptions import (
    LeakBotConfigError,
    LeakBotConnectionError,
    LeakBotError,
    LeakBotNotifyError,
    LeakBotPayloadError,
)
from leakbot.formatting import build_message, pretty_place
from leakbot.models import SensorReading
from leakbot.state.events import LeakTransition
from leakbot.state.store import DeviceStateCache

__all__ = [
    "__version__",
    "BusClient",
    "DeviceStateCache",
    "LeakBotConfig",
    "LeakBotConfigError",
    "LeakBotConnectionError",
    "LeakBotError",
    "LeakBotNotifyError",
    "LeakBotPayloadError",
    "LeakBridge",
    "LeakTransition",
    "LoopState",
    "MqttBusClient",
    "MqttNotice",
    "MqttPublish",
    "Notifier",
    "SensorReading",
    "TelegramNotifier",
    "build_message",
    "pretty_place",
]
