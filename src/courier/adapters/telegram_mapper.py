"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core pipeline: peers, media
and chat objects are turned into closed core variants here, once.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from telethon.tl.types import (
    Document,
    DocumentAttributeFilename,
    MessageMediaDocument,
    MessageMediaPhoto,
    PeerChannel,
    PeerChat,
    PeerUser,
)

from courier.core.models import (
    ChannelPeer,
    ChatInfo,
    ChatPeer,
    DocumentMedia,
    EntityInfo,
    MediaRef,
    PeerRef,
    PhotoMedia,
    RawMessage,
    UnknownPeer,
    UserPeer,
)


def peer_from_telethon(peer_id: Any) -> PeerRef:
    if isinstance(peer_id, PeerChannel):
        return ChannelPeer(peer_id.channel_id)
    if isinstance(peer_id, PeerChat):
        return ChatPeer(peer_id.chat_id)
    if isinstance(peer_id, PeerUser):
        return UserPeer(peer_id.user_id)
    return UnknownPeer(str(peer_id) if peer_id is not None else None)


def peer_to_telethon(peer: PeerRef) -> Any:
    """Return the Telethon peer for a core peer, or None if it has no id."""

    if isinstance(peer, ChannelPeer):
        return PeerChannel(peer.channel_id)
    if isinstance(peer, ChatPeer):
        return PeerChat(peer.chat_id)
    if isinstance(peer, UserPeer):
        return PeerUser(peer.user_id)
    return None


def media_from_telethon(media: Any) -> Optional[MediaRef]:
    if isinstance(media, MessageMediaPhoto) and media.photo:
        return PhotoMedia()
    if isinstance(media, MessageMediaDocument) and isinstance(media.document, Document):
        document = media.document
        file_name = None
        for attribute in document.attributes or []:
            if isinstance(attribute, DocumentAttributeFilename):
                file_name = attribute.file_name
                break
        return DocumentMedia(
            size=int(document.size or 0),
            mime_type=document.mime_type or None,
            file_name=file_name,
        )
    return None


def _epoch(date: Any) -> Optional[int]:
    if isinstance(date, datetime):
        return int(date.timestamp())
    if isinstance(date, (int, float)):
        return int(date)
    return None


def map_message(message: Any) -> Optional[RawMessage]:
    """Build a RawMessage from a Telethon Message, or None without a peer."""

    peer_id = getattr(message, "peer_id", None)
    if peer_id is None:
        return None
    return RawMessage(
        message_id=message.id,
        text=getattr(message, "message", None) or "",
        peer=peer_from_telethon(peer_id),
        date=_epoch(getattr(message, "date", None)),
        media=media_from_telethon(getattr(message, "media", None)),
        handle=message,
    )


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def chat_info_from_entity(entity: Any) -> Optional[ChatInfo]:
    if entity is None:
        return None
    return ChatInfo(
        username=_optional_str(getattr(entity, "username", None)),
        title=_optional_str(getattr(entity, "title", None)),
        id=_optional_str(getattr(entity, "id", None)),
    )


def entity_info_from_entity(entity: Any) -> Optional[EntityInfo]:
    if entity is None:
        return None
    return EntityInfo(
        username=_optional_str(getattr(entity, "username", None)),
        title=_optional_str(getattr(entity, "title", None)),
        id=_optional_str(getattr(entity, "id", None)),
    )
