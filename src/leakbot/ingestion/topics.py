"""Topic helpers for zigbee2mqtt style topics (``<root>/<device>/...``)."""

from __future__ import annotations

from leakbot._constants import DEFAULT_BRIDGE_PREFIX, UNKNOWN_DEVICE


def is_bridge_topic(topic: str, prefix: str = DEFAULT_BRIDGE_PREFIX) -> bool:
    """Return ``True`` for bridge/system status topics."""
    return topic.startswith(prefix)


def extract_device_id(topic: str) -> str:
    """Return the second path segment of *topic*, or ``"unknown"``."""
    parts = topic.split("/")
    if len(parts) < 2:
        return UNKNOWN_DEVICE
    return parts[1]
