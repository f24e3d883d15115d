"""Leak state transitions emitted by evaluation."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from leakbot.models.reading import SensorReading


class LeakTransition(BaseModel):
    """A change of a device's derived leak flag."""

    model_config = ConfigDict(frozen=True)

    device_id: str
    topic: str
    previous: bool
    leak_active: bool
    reading: SensorReading
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
