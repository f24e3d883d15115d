"""Pydantic models for inbound telemetry."""

from leakbot.models.reading import SensorReading

__all__ = ["SensorReading"]
