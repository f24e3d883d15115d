"""Decoded leak sensor telemetry."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

UInt8 = Annotated[int, Field(ge=0, le=0xFF)]
UInt16 = Annotated[int, Field(ge=0, le=0xFFFF)]


class SensorReading(BaseModel):
    """One JSON payload published by a wireless leak sensor.

    Every field is optional; ``None`` means the sensor did not report it,
    which is distinct from a zero/false value. Keys the model does not know
    are ignored.

    Parameters
    ----------
    water_leak : bool or None
        Leak flag as reported by most Aqara/Xiaomi sensors.
    leak : bool or None
        Alternate leak flag name used by other vendors.
    battery_low : bool or None
        Low battery warning.
    battery : int or None
        Battery level in percent.
    tamper : bool or None
        Enclosure opened/moved.
    linkquality : int or None
        Zigbee link quality indicator.
    voltage : int or None
        Battery voltage in millivolts.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        strict=True,
    )

    water_leak: bool | None = None
    leak: bool | None = None
    battery_low: bool | None = None
    battery: UInt8 | None = None
    tamper: bool | None = None
    linkquality: UInt16 | None = None
    voltage: UInt16 | None = None

    @property
    def leak_active(self) -> bool:
        """Either leak flag set; absent flags count as ``False``."""
        return bool(self.water_leak) or bool(self.leak)
