"""Tiered channel identity resolution (core domain).

Telegram does not always hand us usable metadata: the raw update and poll
paths only carry a peer, and entity lookups fail for chats the session has
never seen. Resolution therefore walks a fixed chain:

1) the chat object attached to a NewMessage event (if any)
2) the numeric id carried by the peer reference
3) an explicit entity lookup, merged on top of the peer id

A failing tier is recorded and skipped, never raised.
"""

from __future__ import annotations

import logging
from typing import Optional

from courier.core.models import (
    ChannelIdentity,
    ChannelPeer,
    ChatPeer,
    FailureKind,
    PeerRef,
    RawUpdate,
    Resolution,
    ResolutionStatus,
    UserPeer,
)
from courier.core.ports import NetworkPort

LOGGER = logging.getLogger(__name__)


def peer_id_of(peer: PeerRef) -> Optional[str]:
    """Return the raw id of a peer: channel, else chat, else user, else raw."""

    if isinstance(peer, ChannelPeer):
        return str(peer.channel_id)
    if isinstance(peer, ChatPeer):
        return str(peer.chat_id)
    if isinstance(peer, UserPeer):
        return str(peer.user_id)
    return peer.raw or None


def _clean(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class EntityResolver:
    """Resolve a raw update into a channel identity."""

    def __init__(self, network: NetworkPort) -> None:
        self._network = network

    async def resolve(self, update: RawUpdate) -> Resolution:
        failures: list[str] = []

        if update.chat_lookup is not None:
            try:
                chat = await update.chat_lookup()
            except Exception as exc:
                LOGGER.debug("Chat lookup failed: %s", exc)
                failures.append(f"{FailureKind.TRANSIENT_LOOKUP.value}: chat lookup: {exc}")
                chat = None
            if chat is not None:
                identity = ChannelIdentity(
                    username=_clean(chat.username),
                    title=_clean(chat.title),
                    channel_id=_clean(chat.id),
                )
                if identity.is_identified:
                    return Resolution(identity, ResolutionStatus.CHAT, tuple(failures))

        peer = update.message.peer
        channel_id = peer_id_of(peer)
        username: Optional[str] = None
        title: Optional[str] = None

        try:
            entity = await self._network.get_entity(peer)
        except Exception as exc:
            LOGGER.info("Entity lookup failed, using peer id only: %s", exc)
            failures.append(f"{FailureKind.TRANSIENT_LOOKUP.value}: entity lookup: {exc}")
            entity = None

        if entity is not None:
            username = _clean(entity.username)
            title = _clean(entity.title)
            if channel_id is None:
                channel_id = _clean(entity.id)

        identity = ChannelIdentity(username=username, title=title, channel_id=channel_id)
        if username or title:
            status = ResolutionStatus.ENTITY
        elif channel_id:
            status = ResolutionStatus.PEER
        else:
            status = ResolutionStatus.UNIDENTIFIED
        return Resolution(identity, status, tuple(failures))
