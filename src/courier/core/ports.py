"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for the Telegram and webhook adapters so
that the core can be exercised with fakes and reused with other backends.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence

from courier.core.models import (
    Attachment,
    DeliveryResult,
    EntityInfo,
    PeerRef,
    RawMessage,
    RawUpdate,
)

SubmitFn = Callable[[RawUpdate], Awaitable[None]]


class NetworkPort(Protocol):
    """Telegram operations required by the resolver, poller and forwarder."""

    async def get_entity(self, peer: PeerRef) -> Optional[EntityInfo]:
        ...

    async def get_recent_messages(self, selector: str, limit: int) -> list[RawMessage]:
        ...

    async def download_attachment(self, handle: Any) -> Optional[bytes]:
        ...


class SubscriptionPort(Protocol):
    """Connection lifecycle and push-event subscription."""

    async def connect(self) -> None:
        ...

    async def subscribe(self, submit: SubmitFn) -> None:
        ...

    async def unsubscribe(self) -> None:
        ...

    async def disconnect(self) -> None:
        ...


class WebhookPort(Protocol):
    """Outbound delivery to a webhook endpoint."""

    async def post_json(self, url: str, payload: dict) -> DeliveryResult:
        ...

    async def post_multipart(
        self, url: str, payload: dict, attachments: Sequence[Attachment]
    ) -> DeliveryResult:
        ...
