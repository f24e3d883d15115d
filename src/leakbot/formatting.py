"""Telegram alert text for leak transitions."""

from __future__ import annotations

from collections.abc import Mapping

from leakbot._constants import DEFAULT_PLACES, STATUS_CLEAR, STATUS_LEAK
from leakbot.models.reading import SensorReading
from leakbot.state.events import LeakTransition

_NO_DATA = "Нет данных"


def pretty_place(device_id: str, places: Mapping[str, str] | None = None) -> str:
    """Human readable place for *device_id*, falling back to the id itself.

    Entries in *places* take precedence over the built-in table.
    """
    if places and device_id in places:
        return places[device_id]
    return DEFAULT_PLACES.get(device_id, device_id)


def _yes_no(value: bool | None) -> str:
    if value is None:
        return _NO_DATA
    return "Да" if value else "Нет"


def _tamper(value: bool | None) -> str:
    if value is None:
        return _NO_DATA
    return "⚠️ Датчик трогали/вскрывали" if value else "Ок"


def _details(reading: SensorReading) -> list[str]:
    battery = f"{reading.battery}%" if reading.battery is not None else "?%"
    voltage = f"{reading.voltage} mV" if reading.voltage is not None else "?"
    lqi = str(reading.linkquality) if reading.linkquality is not None else "?"
    return [
        f"🔋 Батарея: {battery} (battery_low: {_yes_no(reading.battery_low)}, {voltage})",
        f"📶 Связь: {lqi} lqi",
        f"🔧 Тампер: {_tamper(reading.tamper)}",
    ]


def build_message(transition: LeakTransition, places: Mapping[str, str] | None = None) -> str:
    """Render the alert sent for *transition*."""
    status = STATUS_LEAK if transition.leak_active else STATUS_CLEAR
    lines = [
        status,
        f"Место: {pretty_place(transition.device_id, places)}",
        f"Устройство: {transition.device_id}",
        f"Топик: {transition.topic}",
        "",
        *_details(transition.reading),
    ]
    return "\n".join(lines)
