"""Telethon adapter for the network and subscription ports.

One TelegramClient serves the push subscription, the poller, entity lookups
and media downloads. Handlers only map and enqueue; all processing happens in
the pipeline consumer.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

from telethon import TelegramClient, events
from telethon.tl.types import Message, UpdateNewChannelMessage, UpdateNewMessage

from courier.adapters.telegram_mapper import (
    chat_info_from_entity,
    entity_info_from_entity,
    map_message,
    peer_to_telethon,
)
from courier.core.models import (
    AcquisitionSource,
    ChatInfo,
    EntityInfo,
    PeerRef,
    RawMessage,
    RawUpdate,
)
from courier.core.ports import SubmitFn
from courier.get_session import print_session_string

LOGGER = logging.getLogger(__name__)

DIALOG_WARMUP_LIMIT = 500

Authorizer = Callable[[TelegramClient], Awaitable[None]]


def _selector_to_entity(selector: str) -> Any:
    # Numeric selectors are ids; Telethon would treat the string as a username.
    text = selector.strip()
    if text.lstrip("-").isdigit():
        return int(text)
    return text


class TelethonSource:
    """Network and subscription ports backed by a Telethon client."""

    def __init__(
        self,
        client: TelegramClient,
        authorizer: Optional[Authorizer] = None,
        warm_up_dialogs: bool = True,
        announce_session: bool = False,
    ) -> None:
        self._client = client
        self._authorizer = authorizer
        self._warm_up_dialogs = warm_up_dialogs
        self._announce_session = announce_session
        self._submit: Optional[SubmitFn] = None

    async def connect(self) -> None:
        LOGGER.info("Connecting Telegram client...")
        await self._client.connect()
        if self._authorizer is not None:
            await self._authorizer(self._client)
        if not await self._client.is_user_authorized():
            raise RuntimeError("Telegram session is not authorized; run `courier session` first")
        LOGGER.info("Telegram client connected")

        # Stdout only: log handlers must never receive the session credential.
        if self._announce_session:
            print_session_string(self._client)

        if self._warm_up_dialogs:
            await self._cache_dialogs()

    async def _cache_dialogs(self) -> None:
        # Telegram refuses to resolve channels the session has never "seen",
        # so load the dialog list into Telethon's entity cache first.
        LOGGER.info("Caching dialogs...")
        dialogs = await self._client.get_dialogs(limit=DIALOG_WARMUP_LIMIT)
        LOGGER.info("%s dialogs cached", len(dialogs))
        for dialog in dialogs:
            entity = dialog.entity
            username = getattr(entity, "username", None)
            title = getattr(entity, "title", None)
            if username or title:
                LOGGER.debug(
                    "  - [%s] %s (@%s)", getattr(entity, "id", None), title or "N/A", username or "N/A"
                )

    async def subscribe(self, submit: SubmitFn) -> None:
        self._submit = submit
        self._client.add_event_handler(self._on_new_message, events.NewMessage())
        self._client.add_event_handler(
            self._on_raw_update, events.Raw(types=[UpdateNewChannelMessage, UpdateNewMessage])
        )

    async def unsubscribe(self) -> None:
        self._client.remove_event_handler(self._on_new_message)
        self._client.remove_event_handler(self._on_raw_update)
        self._submit = None

    async def disconnect(self) -> None:
        LOGGER.info("Disconnecting Telegram client...")
        await self._client.disconnect()
        LOGGER.info("Telegram client disconnected")

    async def _on_new_message(self, event) -> None:
        try:
            raw = map_message(event.message)
            if raw is None or self._submit is None:
                return

            async def chat_lookup() -> Optional[ChatInfo]:
                return chat_info_from_entity(await event.get_chat())

            await self._submit(
                RawUpdate(message=raw, source=AcquisitionSource.EVENT, chat_lookup=chat_lookup)
            )
        except Exception:
            LOGGER.exception("NewMessage handler error")

    async def _on_raw_update(self, update) -> None:
        try:
            message = getattr(update, "message", None)
            if not isinstance(message, Message) or self._submit is None:
                return
            raw = map_message(message)
            if raw is None:
                return
            await self._submit(RawUpdate(message=raw, source=AcquisitionSource.RAW_EVENT))
        except Exception:
            LOGGER.exception("Raw update handler error")

    async def get_entity(self, peer: PeerRef) -> Optional[EntityInfo]:
        telethon_peer = peer_to_telethon(peer)
        if telethon_peer is None:
            return None
        return entity_info_from_entity(await self._client.get_entity(telethon_peer))

    async def get_recent_messages(self, selector: str, limit: int) -> list[RawMessage]:
        messages = await self._client.get_messages(_selector_to_entity(selector), limit=limit)
        mapped: list[RawMessage] = []
        for message in messages or []:
            # Service messages (joins, pins) carry no body worth forwarding.
            if not isinstance(message, Message):
                continue
            raw = map_message(message)
            if raw is not None:
                mapped.append(raw)
        return mapped

    async def download_attachment(self, handle: Any) -> Optional[bytes]:
        data = await self._client.download_media(handle, file=bytes)
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
        return None

    async def list_dialogs(self, limit: int = DIALOG_WARMUP_LIMIT) -> list:
        return await self._client.get_dialogs(limit=limit)
