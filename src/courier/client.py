"""Telegram client factory for courier.

Sessions are kept as Telethon StringSessions so the courier can run in
containers without a writable .session file: the string is created once by
`courier session` and handed back through TELEGRAM_SESSION.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from telethon import TelegramClient
from telethon.sessions import StringSession

CONNECTION_RETRIES = 5


def session_string() -> str:
    load_dotenv()
    return (os.getenv("TELEGRAM_SESSION") or "").strip()


def build_client() -> TelegramClient:
    """Create a Telethon client from environment variables.

    We read TELEGRAM_API_ID/TELEGRAM_API_HASH via python-dotenv to keep
    secrets out of the repo. An empty TELEGRAM_SESSION starts a new session.
    """

    load_dotenv()

    api_id = os.getenv("TELEGRAM_API_ID")
    api_hash = os.getenv("TELEGRAM_API_HASH")

    # Fail fast on missing credentials to avoid an ambiguous login prompt.
    if not api_id or not api_hash:
        raise RuntimeError("Missing TELEGRAM_API_ID or TELEGRAM_API_HASH in environment")
    try:
        api_id_value = int(api_id)
    except ValueError as exc:
        raise RuntimeError("TELEGRAM_API_ID must be a number") from exc

    session = session_string()
    logger = logging.getLogger(__name__)
    if session:
        logger.info("Session loaded (%s chars)", len(session))
    else:
        logger.info("No stored session, a new one will be created")

    return TelegramClient(
        StringSession(session),
        api_id_value,
        api_hash,
        connection_retries=CONNECTION_RETRIES,
    )
