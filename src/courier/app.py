"""Application entry point for the courier."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from art import tprint

from courier import settings
from courier.adapters.health import HealthServer
from courier.adapters.telegram_source import TelethonSource
from courier.adapters.webhook_client import WebhookClient
from courier.client import build_client, session_string
from courier.core.acquisition import MessageAcquisition
from courier.core.dedup import DedupCache
from courier.core.forwarder import Forwarder
from courier.core.poller import RoundRobinPoller
from courier.core.processor import MessagePipeline
from courier.core.resolver import EntityResolver
from courier.core.routing import mask_webhook_url
from courier.get_session import authorize
from courier.get_session import main as session_main

NAME = "COURIER"
FONT = "tarty-1"

DEFAULT_REDACT = ["TELEGRAM_API_HASH", "TELEGRAM_SESSION", "TELEGRAM_2FA_PASSWORD"]


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", True):
        return []
    values = []
    for name in redact_cfg.get("patterns", DEFAULT_REDACT):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", True):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/courier.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)
    # Telethon is chatty at INFO about reconnects and update gaps.
    logging.getLogger("telethon").setLevel(max(level, logging.WARNING))


async def _serve() -> None:
    logger = logging.getLogger(__name__)
    logger.info("Starting courier")

    if not settings.CHANNEL_MAPPINGS:
        logger.warning("CHANNEL_MAPPINGS is empty; no message will be forwarded")
    logger.info("Channel mappings:")
    for mapping in settings.CHANNEL_MAPPINGS:
        logger.info("  - %s -> %s", mapping.selector, mask_webhook_url(mapping.webhook_url))

    health: Optional[HealthServer] = None
    if settings.HEALTH_ENABLED:
        health = HealthServer(settings.HEALTH_PORT)
        await health.start()

    client = build_client()
    source = TelethonSource(
        client,
        authorizer=authorize,
        announce_session=not session_string(),
    )
    webhook = WebhookClient()
    forwarder = Forwarder(settings.CHANNEL_MAPPINGS, source, webhook, settings.FORWARDING)
    pipeline = MessagePipeline(
        DedupCache(settings.DEDUP.max_entries),
        EntityResolver(source),
        forwarder,
    )
    poller = None
    if settings.POLL.enabled:
        poller = RoundRobinPoller(
            source,
            settings.POLL.channels,
            pipeline.submit,
            interval=settings.POLL.interval_seconds,
        )
    acquisition = MessageAcquisition(source, pipeline, poller)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops do not support signal handlers.
            pass

    try:
        await acquisition.start()
        logger.info("Courier running (%s)", acquisition.state.value)
        stop_waiter = asyncio.ensure_future(stop_event.wait())
        disconnected = asyncio.ensure_future(client.disconnected)
        done, _ = await asyncio.wait(
            {stop_waiter, disconnected}, return_when=asyncio.FIRST_COMPLETED
        )
        if not stop_waiter.done():
            stop_waiter.cancel()
        if stop_waiter in done:
            logger.info("Shutdown signal received")
        else:
            logger.warning("Telegram client disconnected")
    finally:
        await acquisition.stop()
        await webhook.close()
        if health is not None:
            await health.stop()


def _run() -> None:
    _print_banner()
    _configure_logging()
    asyncio.run(_serve())


def _session() -> None:
    _print_banner()
    _configure_logging()
    asyncio.run(session_main())


def _dialog_type(dialog: Any) -> str:
    if getattr(dialog, "is_channel", False):
        entity = getattr(dialog, "entity", None)
        if getattr(entity, "megagroup", False):
            return "group"
        return "channel"
    if getattr(dialog, "is_group", False):
        return "group"
    if getattr(dialog, "is_user", False):
        return "user"
    return "chat"


def _dialog_title(dialog: Any) -> str:
    entity = getattr(dialog, "entity", None)
    title = getattr(entity, "title", None)
    if title:
        return str(title)
    name = getattr(dialog, "name", None)
    if name:
        return str(name)
    entity_id = getattr(entity, "id", None)
    return str(entity_id or "unknown")


def _selector_from_dialog(dialog: Any) -> str:
    """Return the selector to paste into CHANNEL_MAPPINGS for a dialog."""

    entity = getattr(dialog, "entity", None)
    username = getattr(entity, "username", None)
    if username:
        return f"@{username}"
    # Routing compares ids verbatim against the bare entity id.
    return str(getattr(entity, "id", None) or getattr(dialog, "id", "unknown"))


async def _list_dialogs(source: TelethonSource) -> None:
    dialogs = [dialog for dialog in await source.list_dialogs() if not dialog.is_user]
    if not dialogs:
        print("No channels or groups found.")
        return

    for index, dialog in enumerate(dialogs, start=1):
        print(f"{index}. {_dialog_type(dialog)} | {_dialog_title(dialog)} | {_selector_from_dialog(dialog)}")


def _discover() -> None:
    _print_banner()
    _configure_logging()

    async def _run_discover() -> None:
        source = TelethonSource(build_client(), authorizer=authorize, warm_up_dialogs=False)
        await source.connect()
        try:
            await _list_dialogs(source)
        finally:
            await source.disconnect()

    asyncio.run(_run_discover())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="courier")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start forwarding messages")
    subparsers.add_parser("session", help="Log in and print a session string")
    subparsers.add_parser("discover", help="List channels and groups with their selectors")

    args = parser.parse_args(argv)
    if args.command == "session":
        _session()
        return
    if args.command == "discover":
        _discover()
        return
    _run()


if __name__ == "__main__":
    main()
