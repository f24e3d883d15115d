"""MQTT ingestion helpers.

This module translates raw publish payloads into :class:`SensorReading`
objects and evaluates them against the device state cache.
"""

from __future__ import annotations

from pydantic import ValidationError

from leakbot.exceptions import LeakBotPayloadError
from leakbot.models.reading import SensorReading
from leakbot.state.events import LeakTransition
from leakbot.state.store import DeviceStateCache


def decode_text(payload: bytes, *, topic: str = "") -> str:
    """Decode payload bytes as strict UTF-8."""
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise LeakBotPayloadError(f"Payload is not valid UTF-8: {exc}", topic=topic) from exc


def parse_reading(text: str, *, topic: str = "") -> SensorReading:
    """Parse a JSON object into a :class:`SensorReading`.

    Malformed JSON, a non-object document or a field of the wrong type
    all raise :class:`LeakBotPayloadError`.
    """
    try:
        return SensorReading.model_validate_json(text)
    except ValidationError as exc:
        raise LeakBotPayloadError(f"Invalid sensor payload: {exc}", topic=topic) from exc


def evaluate(
    cache: DeviceStateCache,
    *,
    device_id: str,
    topic: str,
    reading: SensorReading,
) -> LeakTransition | None:
    """Compare *reading* with the cached flag and record a change.

    Returns the transition when the derived leak flag differs from the
    cached value (``False`` for devices never seen), otherwise ``None``.
    The cache is only written on a change.
    """
    leak_active = reading.leak_active
    previous = cache.get(device_id)
    if leak_active == previous:
        return None

    cache.set(device_id, leak_active)
    return LeakTransition(
        device_id=device_id,
        topic=topic,
        previous=previous,
        leak_active=leak_active,
        reading=reading,
    )
