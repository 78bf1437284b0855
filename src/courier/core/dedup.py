"""Deduplication cache (core domain)."""

from __future__ import annotations

from collections import OrderedDict

from courier.core.models import (
    ChannelPeer,
    ChatPeer,
    DedupKey,
    RawMessage,
    UserPeer,
)

DEFAULT_MAX_ENTRIES = 1000


def dedup_key_for(message: RawMessage) -> DedupKey:
    """Build the dedup key using channel > chat > user id precedence."""

    peer = message.peer
    if isinstance(peer, ChannelPeer):
        channel_id = str(peer.channel_id)
    elif isinstance(peer, ChatPeer):
        channel_id = str(peer.chat_id)
    elif isinstance(peer, UserPeer):
        channel_id = str(peer.user_id)
    else:
        channel_id = "unknown"
    return DedupKey(channel_id=channel_id, message_id=message.message_id)


class DedupCache:
    """Bounded set of already-processed message keys.

    Both acquisition paths share one instance. When an insert pushes the size
    over ``max_entries`` the oldest half (by insertion order) is dropped, so
    memory stays bounded without tracking exact recency. State is not
    persisted; a restart may re-deliver messages that were in flight.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries < 2:
            raise ValueError("max_entries must be at least 2")
        self._max_entries = max_entries
        self._keys: OrderedDict[DedupKey, None] = OrderedDict()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: DedupKey) -> bool:
        return key in self._keys

    def should_process(self, key: DedupKey) -> bool:
        """Return True and remember ``key`` if it was not seen before."""

        if key in self._keys:
            return False
        self._keys[key] = None
        if len(self._keys) > self._max_entries:
            self._evict()
        return True

    def _evict(self) -> None:
        for _ in range(self._max_entries // 2):
            self._keys.popitem(last=False)
