from __future__ import annotations

import asyncio
from typing import Optional

from courier.core.models import (
    AcquisitionSource,
    ChannelPeer,
    ChatInfo,
    EntityInfo,
    RawUpdate,
    ResolutionStatus,
    UnknownPeer,
    UserPeer,
)
from courier.core.resolver import EntityResolver, peer_id_of

from fakes import FakeNetwork, raw_message


def _chat_lookup(chat: Optional[ChatInfo] = None, error: Optional[Exception] = None):
    async def lookup() -> Optional[ChatInfo]:
        if error is not None:
            raise error
        return chat

    return lookup


def test_chat_object_wins_without_entity_lookup() -> None:
    network = FakeNetwork()
    update = RawUpdate(
        message=raw_message(),
        source=AcquisitionSource.EVENT,
        chat_lookup=_chat_lookup(ChatInfo(username="news", title="News", id="42")),
    )
    resolution = asyncio.run(EntityResolver(network).resolve(update))

    assert resolution.status is ResolutionStatus.CHAT
    assert resolution.identity.username == "news"
    assert resolution.identity.channel_id == "42"
    assert network.entity_calls == []


def test_failed_chat_lookup_falls_back_to_peer_and_entity() -> None:
    network = FakeNetwork()
    network.entities[ChannelPeer(42)] = EntityInfo(username="news", title="News")
    update = RawUpdate(
        message=raw_message(),
        source=AcquisitionSource.EVENT,
        chat_lookup=_chat_lookup(error=ConnectionError("boom")),
    )
    resolution = asyncio.run(EntityResolver(network).resolve(update))

    assert resolution.status is ResolutionStatus.ENTITY
    assert resolution.identity.channel_id == "42"
    assert resolution.identity.username == "news"
    assert resolution.failures and "chat lookup" in resolution.failures[0]


def test_empty_chat_object_falls_through() -> None:
    network = FakeNetwork()
    update = RawUpdate(
        message=raw_message(),
        source=AcquisitionSource.EVENT,
        chat_lookup=_chat_lookup(ChatInfo()),
    )
    resolution = asyncio.run(EntityResolver(network).resolve(update))
    assert resolution.status is ResolutionStatus.PEER
    assert resolution.identity.channel_id == "42"


def test_entity_lookup_failure_keeps_peer_id() -> None:
    network = FakeNetwork()
    network.entity_error = ValueError("Could not find the input entity")
    update = RawUpdate(message=raw_message(peer=UserPeer(99)), source=AcquisitionSource.POLL)
    resolution = asyncio.run(EntityResolver(network).resolve(update))

    assert resolution.status is ResolutionStatus.PEER
    assert resolution.identity.channel_id == "99"
    assert resolution.identity.is_identified
    assert "entity lookup" in resolution.failures[0]


def test_nothing_identifying_is_unidentified() -> None:
    network = FakeNetwork()
    update = RawUpdate(message=raw_message(peer=UnknownPeer()), source=AcquisitionSource.RAW_EVENT)
    resolution = asyncio.run(EntityResolver(network).resolve(update))

    assert resolution.status is ResolutionStatus.UNIDENTIFIED
    assert not resolution.identity.is_identified


def test_peer_id_precedence() -> None:
    assert peer_id_of(ChannelPeer(1)) == "1"
    assert peer_id_of(UserPeer(3)) == "3"
    assert peer_id_of(UnknownPeer("PeerSomething()")) == "PeerSomething()"
    assert peer_id_of(UnknownPeer()) is None
