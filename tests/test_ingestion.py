from __future__ import annotations

import pytest

from leakbot.exceptions import LeakBotPayloadError
from leakbot.ingestion import decode_text, extract_device_id, is_bridge_topic, parse_reading


class TestTopics:
    def test_device_id_is_second_segment(self) -> None:
        assert extract_device_id("zigbee2mqtt/leak_kitchen/state") == "leak_kitchen"
        assert extract_device_id("zigbee2mqtt/Device 1") == "Device 1"

    def test_device_id_defaults_to_unknown(self) -> None:
        assert extract_device_id("zigbee2mqtt") == "unknown"

    def test_empty_second_segment_is_kept(self) -> None:
        assert extract_device_id("zigbee2mqtt/") == ""

    def test_bridge_prefix(self) -> None:
        assert is_bridge_topic("zigbee2mqtt/bridge/state")
        assert is_bridge_topic("zigbee2mqtt/bridge/devices")
        assert not is_bridge_topic("zigbee2mqtt/leak_kitchen")
        assert is_bridge_topic("home/bridge/log", prefix="home/bridge")


class TestParseReading:
    def test_alternate_leak_fields_are_equivalent(self) -> None:
        a = parse_reading('{"leak": true}')
        b = parse_reading('{"water_leak": true}')

        assert a.leak_active is True
        assert b.leak_active is True

    def test_absent_leak_fields_mean_no_leak(self) -> None:
        reading = parse_reading('{"battery": 55}')

        assert reading.leak_active is False
        assert reading.water_leak is None
        assert reading.leak is None

    def test_either_flag_true_wins(self) -> None:
        assert parse_reading('{"leak": false, "water_leak": true}').leak_active is True
        assert parse_reading('{"leak": true, "water_leak": false}').leak_active is True

    def test_unknown_fields_ignored_and_null_is_absent(self) -> None:
        reading = parse_reading(
            '{"water_leak": false, "battery": 80, "linkquality": 120, "voltage": null,'
            ' "device_temperature": 23, "power_outage_count": 4}'
        )

        assert reading.battery == 80
        assert reading.linkquality == 120
        assert reading.voltage is None
        assert reading.tamper is None

    def test_all_fields(self) -> None:
        reading = parse_reading(
            '{"water_leak": true, "battery_low": false, "battery": 100,'
            ' "tamper": true, "linkquality": 255, "voltage": 3015}'
        )

        assert reading.battery_low is False
        assert reading.tamper is True
        assert reading.voltage == 3015

    @pytest.mark.parametrize(
        "text",
        [
            "not json",
            "online",
            "{",
            "[1, 2]",
            '"offline"',
            '{"water_leak": "yes"}',
            '{"battery": 300}',
            '{"battery": -1}',
            '{"linkquality": "120"}',
        ],
    )
    def test_structural_failures_raise_payload_error(self, text: str) -> None:
        with pytest.raises(LeakBotPayloadError):
            parse_reading(text, topic="zigbee2mqtt/leak_kitchen")

    def test_payload_error_carries_topic(self) -> None:
        with pytest.raises(LeakBotPayloadError) as excinfo:
            parse_reading("nope", topic="zigbee2mqtt/leak_kitchen")

        assert excinfo.value.topic == "zigbee2mqtt/leak_kitchen"


class TestDecodeText:
    def test_utf8(self) -> None:
        assert decode_text('{"x": "вода"}'.encode()) == '{"x": "вода"}'

    def test_invalid_utf8_raises(self) -> None:
        with pytest.raises(LeakBotPayloadError, match="UTF-8"):
            decode_text(b"\xff\xfe\x00")
