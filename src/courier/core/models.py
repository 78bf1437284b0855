"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to Telethon types. Peers and media are closed variants decided once
in the Telegram mapper, so the core switches on type instead of probing
attributes.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union


@dataclass(frozen=True)
class ChannelPeer:
    channel_id: int


@dataclass(frozen=True)
class ChatPeer:
    chat_id: int


@dataclass(frozen=True)
class UserPeer:
    user_id: int


@dataclass(frozen=True)
class UnknownPeer:
    """Peer shape we could not classify; ``raw`` is its string form, if any."""

    raw: Optional[str] = None


PeerRef = Union[ChannelPeer, ChatPeer, UserPeer, UnknownPeer]


@dataclass(frozen=True)
class PhotoMedia:
    """Photo attachment. Telegram does not report a usable size for photos."""


@dataclass(frozen=True)
class DocumentMedia:
    """Document attachment (video, gif, file) with the hints Telegram reports."""

    size: int = 0
    mime_type: Optional[str] = None
    file_name: Optional[str] = None


MediaRef = Union[PhotoMedia, DocumentMedia]


@dataclass(frozen=True)
class ChatInfo:
    """Chat object available on the NewMessage event path."""

    username: Optional[str] = None
    title: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class EntityInfo:
    """Result of an explicit entity lookup against Telegram."""

    username: Optional[str] = None
    title: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class RawMessage:
    """A Telegram message after mapping, before identity resolution."""

    message_id: int
    text: str
    peer: PeerRef
    date: Optional[int] = None
    media: Optional[MediaRef] = None
    # Source message object, only needed for a later media download.
    handle: Any = None


class AcquisitionSource(str, enum.Enum):
    EVENT = "event"
    RAW_EVENT = "raw_event"
    POLL = "poll"


ChatLookup = Callable[[], Awaitable[Optional[ChatInfo]]]


@dataclass(frozen=True)
class RawUpdate:
    """One unit of work submitted to the pipeline by an acquisition path."""

    message: RawMessage
    source: AcquisitionSource
    chat_lookup: Optional[ChatLookup] = None


@dataclass(frozen=True)
class DedupKey:
    channel_id: str
    message_id: int

    def __str__(self) -> str:
        return f"{self.channel_id}:{self.message_id}"


@dataclass(frozen=True)
class ChannelIdentity:
    username: Optional[str] = None
    title: Optional[str] = None
    channel_id: Optional[str] = None

    @property
    def is_identified(self) -> bool:
        return bool(self.username or self.title or self.channel_id)


@dataclass(frozen=True)
class NormalizedMessage:
    """Canonical message record consumed by the forwarder."""

    id: int
    text: str
    identity: ChannelIdentity
    timestamp: int
    media: Optional[MediaRef] = None
    raw_handle: Any = None

    @property
    def channel_username(self) -> Optional[str]:
        return self.identity.username

    @property
    def channel_title(self) -> Optional[str]:
        return self.identity.title

    @property
    def channel_id(self) -> Optional[str]:
        return self.identity.channel_id

    @property
    def display_name(self) -> str:
        return self.channel_title or self.channel_username or self.channel_id or "Unknown"


@dataclass(frozen=True)
class RouteMapping:
    """Static pairing of a channel selector to a webhook URL."""

    selector: str
    webhook_url: str


@dataclass(frozen=True)
class Attachment:
    data: bytes
    filename: str
    content_type: str


class FailureKind(str, enum.Enum):
    TRANSIENT_LOOKUP = "transient_lookup"
    UNIDENTIFIABLE = "unidentifiable"
    UNROUTED = "unrouted"
    MEDIA_TOO_LARGE = "media_too_large"
    MEDIA_FETCH_FAILED = "media_fetch_failed"
    DELIVERY_FAILED = "delivery_failed"


class ResolutionStatus(str, enum.Enum):
    CHAT = "chat"
    PEER = "peer"
    ENTITY = "entity"
    UNIDENTIFIED = "unidentified"


@dataclass(frozen=True)
class Resolution:
    identity: ChannelIdentity
    status: ResolutionStatus
    failures: tuple[str, ...] = ()


class MediaOutcome(str, enum.Enum):
    NONE = "none"
    FETCHED = "fetched"
    TOO_LARGE = "too_large"
    FETCH_FAILED = "fetch_failed"
    OVER_BODY_CAP = "over_body_cap"


@dataclass(frozen=True)
class MediaFetch:
    outcome: MediaOutcome
    attachment: Optional[Attachment] = None

    @property
    def failure(self) -> Optional[FailureKind]:
        if self.outcome is MediaOutcome.TOO_LARGE or self.outcome is MediaOutcome.OVER_BODY_CAP:
            return FailureKind.MEDIA_TOO_LARGE
        if self.outcome is MediaOutcome.FETCH_FAILED:
            return FailureKind.MEDIA_FETCH_FAILED
        return None


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    status: Optional[int] = None
    reason: str = ""


class PipelineOutcome(str, enum.Enum):
    DUPLICATE = "duplicate"
    UNIDENTIFIED = "unidentified"
    UNROUTED = "unrouted"
    DELIVERED = "delivered"
    DELIVERY_FAILED = "delivery_failed"


class AcquisitionState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"
    POLLING_SUBSCRIBED = "polling_subscribed"
    STOPPED = "stopped"


@dataclass
class PipelineStats:
    """Counters per outcome, logged on shutdown."""

    counts: dict[PipelineOutcome, int] = field(default_factory=dict)

    def record(self, outcome: PipelineOutcome) -> None:
        self.counts[outcome] = self.counts.get(outcome, 0) + 1

    def get(self, outcome: PipelineOutcome) -> int:
        return self.counts.get(outcome, 0)
