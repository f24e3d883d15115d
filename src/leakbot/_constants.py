"""Internal constants shared across the package."""

DEFAULT_MQTT_HOST = "127.0.0.1"
DEFAULT_MQTT_PORT = 1883
DEFAULT_MQTT_TOPIC = "zigbee2mqtt/#"
DEFAULT_MQTT_CLIENT_ID = "zigbee-leak-bot"
DEFAULT_MQTT_KEEPALIVE = 10

# zigbee2mqtt publishes its own health/config under this prefix.
DEFAULT_BRIDGE_PREFIX = "zigbee2mqtt/bridge"

DEFAULT_RECONNECT_DELAY = 5.0

TELEGRAM_API_BASE = "https://api.telegram.org"
DEFAULT_TELEGRAM_TIMEOUT = 10.0

UNKNOWN_DEVICE = "unknown"

# ------------------------------------------------------------------
# Device id -> human readable place
# ------------------------------------------------------------------

DEFAULT_PLACES: dict[str, str] = {
    "Device 1": "Кухня, под мойкой",
    "leak_kitchen": "Кухня, под мойкой",
    "leak_bathroom": "Ванная, возле стиралки",
}

STATUS_LEAK = "💧 УТЕЧКА ОБНАРУЖЕНА!"
STATUS_CLEAR = "✅ Утечка устранена / воды нет"
