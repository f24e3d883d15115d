"""Command line entry point: run the leak alert bridge until stopped."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import os
import signal
import sys

import aiohttp
from dotenv import find_dotenv, load_dotenv

from leakbot import __version__
from leakbot._redact import redact_for_log
from leakbot._telegram import TelegramNotifier
from leakbot.bridge import LeakBridge
from leakbot.config import LeakBotConfig
from leakbot.exceptions import LeakBotConfigError

_LOG = logging.getLogger("leakbot")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="leakbot",
        description="Forward zigbee leak sensor state changes from MQTT to Telegram.",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file (default: .env in the working directory, if present).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    level_name = "DEBUG" if verbose else os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _serve(config: LeakBotConfig) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop.set)
        except NotImplementedError:  # pragma: no cover - Windows
            signal.signal(signum, lambda *_: loop.call_soon_threadsafe(stop.set))

    async with aiohttp.ClientSession() as http_session:
        notifier = TelegramNotifier(
            config.bot_token,
            http_session,
            api_base=config.telegram_api_base,
            timeout=config.telegram_timeout,
        )
        bridge = LeakBridge(config, notifier=notifier)
        await bridge.run(stop)
    _LOG.info("Stopped")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    load_dotenv(args.env_file or find_dotenv(usecwd=True))
    _configure_logging(args.verbose)

    try:
        config = LeakBotConfig.from_env()
    except LeakBotConfigError as exc:
        print(f"leakbot: configuration error: {exc}", file=sys.stderr)
        return 2

    _LOG.info("Starting zigbee-leak-bot %s", __version__)
    _LOG.info("Config: %s", redact_for_log(dataclasses.asdict(config)))

    asyncio.run(_serve(config))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
