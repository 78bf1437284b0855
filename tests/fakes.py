from __future__ import annotations

from typing import Any, Optional, Sequence

from courier.core.models import (
    Attachment,
    ChannelPeer,
    DeliveryResult,
    EntityInfo,
    PeerRef,
    RawMessage,
)


class FakeNetwork:
    def __init__(self) -> None:
        self.entities: dict[PeerRef, EntityInfo] = {}
        self.entity_error: Optional[Exception] = None
        self.entity_calls: list[PeerRef] = []
        self.recent: dict[str, list[RawMessage]] = {}
        self.recent_calls: list[tuple[str, int]] = []
        self.poll_errors: dict[str, Exception] = {}
        self.downloads: dict[Any, bytes] = {}
        self.download_error: Optional[Exception] = None
        self.download_calls: list[Any] = []

    async def get_entity(self, peer: PeerRef) -> Optional[EntityInfo]:
        self.entity_calls.append(peer)
        if self.entity_error is not None:
            raise self.entity_error
        return self.entities.get(peer)

    async def get_recent_messages(self, selector: str, limit: int) -> list[RawMessage]:
        self.recent_calls.append((selector, limit))
        if selector in self.poll_errors:
            raise self.poll_errors[selector]
        return list(self.recent.get(selector, []))[:limit]

    async def download_attachment(self, handle: Any) -> Optional[bytes]:
        self.download_calls.append(handle)
        if self.download_error is not None:
            raise self.download_error
        return self.downloads.get(handle)


class FakeWebhook:
    def __init__(self, result: Optional[DeliveryResult] = None) -> None:
        self.result = result or DeliveryResult(ok=True, status=204)
        self.json_posts: list[tuple[str, dict]] = []
        self.multipart_posts: list[tuple[str, dict, list[Attachment]]] = []

    @property
    def total_posts(self) -> int:
        return len(self.json_posts) + len(self.multipart_posts)

    async def post_json(self, url: str, payload: dict) -> DeliveryResult:
        self.json_posts.append((url, payload))
        return self.result

    async def post_multipart(
        self, url: str, payload: dict, attachments: Sequence[Attachment]
    ) -> DeliveryResult:
        self.multipart_posts.append((url, payload, list(attachments)))
        return self.result


def raw_message(
    *,
    message_id: int = 7,
    text: str = "hi",
    peer: Optional[PeerRef] = None,
    date: Optional[int] = 1704067200,
    media=None,
    handle: Any = "handle",
) -> RawMessage:
    return RawMessage(
        message_id=message_id,
        text=text,
        peer=peer if peer is not None else ChannelPeer(42),
        date=date,
        media=media,
        handle=handle,
    )
