"""In-memory last-known leak state per device."""

from __future__ import annotations


class DeviceStateCache:
    """Mapping of device id to the last leak flag that was alerted on.

    A device without an entry reads as ``False``. Entries are never removed
    and nothing is persisted, so a restart starts from an empty cache.
    """

    def __init__(self, initial: dict[str, bool] | None = None) -> None:
        self._states: dict[str, bool] = dict(initial or {})

    def get(self, device_id: str) -> bool:
        return self._states.get(device_id, False)

    def set(self, device_id: str, value: bool) -> None:
        self._states[device_id] = bool(value)

    def snapshot(self) -> dict[str, bool]:
        """Copy of all known device states."""
        return dict(self._states)

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._states

    def __len__(self) -> int:
        return len(self._states)
