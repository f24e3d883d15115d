#!/usr/bin/env python3
"""Passive MQTT probe for leak sensor payloads.

Subscribes with the same MQTT_* configuration the bridge uses and prints
every decoded reading together with the derived leak flag. Nothing is
sent to Telegram and no state is kept.

Use this to check which topics a sensor publishes on and which leak
field name it uses.
"""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from dotenv import find_dotenv, load_dotenv  # noqa: E402

from leakbot._constants import (  # noqa: E402
    DEFAULT_BRIDGE_PREFIX,
    DEFAULT_MQTT_HOST,
    DEFAULT_MQTT_PORT,
    DEFAULT_MQTT_TOPIC,
)
from leakbot.exceptions import LeakBotPayloadError  # noqa: E402
from leakbot.ingestion import decode_text, extract_device_id, is_bridge_topic, parse_reading  # noqa: E402

import paho.mqtt.client as mqtt  # noqa: E402

_LOG = logging.getLogger("mqtt_probe")


@dataclass
class ProbeStats:
    started_at: float
    total_messages: int = 0
    decoded: int = 0
    rejected: int = 0
    bridge: int = 0


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Passive MQTT probe for leak sensor topics.")
    parser.add_argument("--host", default=None, help="Broker host (default: MQTT_HOST or 127.0.0.1).")
    parser.add_argument("--port", type=int, default=None, help="Broker port (default: MQTT_PORT or 1883).")
    parser.add_argument("--topic", default=None, help="Topic filter (default: MQTT_TOPIC or zigbee2mqtt/#).")
    parser.add_argument("--duration", type=int, default=0, help="Maximum runtime in seconds (0 = until Ctrl+C).")
    parser.add_argument("--show-bridge", action="store_true", help="Also print bridge status topics.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logs.")
    return parser.parse_args()


def _print_summary(stats: ProbeStats) -> None:
    runtime = time.time() - stats.started_at
    print("[probe] Summary")
    print(f"[probe]   runtime_s      : {runtime:.1f}")
    print(f"[probe]   total_messages : {stats.total_messages}")
    print(f"[probe]   decoded        : {stats.decoded}")
    print(f"[probe]   rejected       : {stats.rejected}")
    print(f"[probe]   bridge_topics  : {stats.bridge}")


def _main() -> int:
    args = _parse_args()
    load_dotenv(find_dotenv(usecwd=True))
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    host = args.host or os.environ.get("MQTT_HOST") or DEFAULT_MQTT_HOST
    port = args.port or int(os.environ.get("MQTT_PORT") or DEFAULT_MQTT_PORT)
    topic = args.topic or os.environ.get("MQTT_TOPIC") or DEFAULT_MQTT_TOPIC
    bridge_prefix = os.environ.get("LEAKBOT_BRIDGE_PREFIX") or DEFAULT_BRIDGE_PREFIX

    stats = ProbeStats(started_at=time.time())
    should_stop = False

    def stop_handler(_signum: int, _frame: Any) -> None:
        nonlocal should_stop
        should_stop = True

    signal.signal(signal.SIGINT, stop_handler)
    signal.signal(signal.SIGTERM, stop_handler)

    mqtt_client = mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=f"leakbot-probe-{os.getpid()}",
        protocol=mqtt.MQTTv311,
    )
    mqtt_client.enable_logger(_LOG)
    username = os.environ.get("MQTT_USERNAME")
    if username:
        mqtt_client.username_pw_set(username, os.environ.get("MQTT_PASSWORD"))

    def on_connect(
        client: mqtt.Client,
        _userdata: Any,
        _flags: mqtt.ConnectFlags,
        reason_code: mqtt.ReasonCode,
        _properties: mqtt.Properties | None,
    ) -> None:
        if reason_code.value != 0:
            print(f"[probe] MQTT connect failed: {reason_code}", file=sys.stderr)
            client.disconnect()
            return
        print(f"[probe] Connected to {host}:{port}. Subscribing to {topic}")
        client.subscribe(topic, qos=0)

    def on_message(_client: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
        stats.total_messages += 1
        if is_bridge_topic(msg.topic, bridge_prefix):
            stats.bridge += 1
            if args.show_bridge:
                print(f"[probe] bridge topic={msg.topic} bytes={len(msg.payload)}")
            return

        device = extract_device_id(msg.topic)
        try:
            reading = parse_reading(decode_text(msg.payload, topic=msg.topic), topic=msg.topic)
        except LeakBotPayloadError as exc:
            stats.rejected += 1
            print(f"[probe] rejected topic={msg.topic}: {exc}")
            return

        stats.decoded += 1
        fields = reading.model_dump(exclude_none=True)
        print(f"[probe] device={device} leak_active={reading.leak_active} topic={msg.topic} fields={fields}")

    mqtt_client.on_connect = on_connect
    mqtt_client.on_message = on_message

    print("[probe] Connecting...")
    try:
        mqtt_client.connect(host, port, keepalive=30)
        mqtt_client.loop_start()

        while not should_stop:
            if args.duration > 0 and (time.time() - stats.started_at) >= args.duration:
                print(f"[probe] Reached --duration={args.duration}s, stopping.")
                break
            time.sleep(1.0)

    except KeyboardInterrupt:
        pass
    except OSError as exc:
        print(f"[probe] Connect failed: {exc}", file=sys.stderr)
        return 2
    finally:
        should_stop = True
        try:
            mqtt_client.disconnect()
        finally:
            mqtt_client.loop_stop()

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
