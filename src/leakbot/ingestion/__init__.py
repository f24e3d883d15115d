"""Ingestion layer.

Turns raw MQTT publishes into sensor readings and leak transitions.
"""

from leakbot.ingestion.mqtt import decode_text, evaluate, parse_reading
from leakbot.ingestion.topics import extract_device_id, is_bridge_topic

__all__ = [
    "decode_text",
    "evaluate",
    "extract_device_id",
    "is_bridge_topic",
    "parse_reading",
]
