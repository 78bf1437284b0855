"""Webhook forwarder.

Given a normalized message, the forwarder finds its route, fetches at most one
attachment and delivers the embed. It never raises: every failure is turned
into a logged outcome so the acquisition paths keep running.
"""

from __future__ import annotations

import json
import logging
from typing import Iterable, Optional

from courier.core.config import ForwardingConfig
from courier.core.embeds import (
    build_payload,
    document_content_type,
    document_filename,
    photo_filename,
)
from courier.core.models import (
    Attachment,
    DeliveryResult,
    DocumentMedia,
    FailureKind,
    MediaFetch,
    MediaOutcome,
    NormalizedMessage,
    PhotoMedia,
    PipelineOutcome,
    RouteMapping,
)
from courier.core.ports import NetworkPort, WebhookPort
from courier.core.routing import find_route, mask_webhook_url

LOGGER = logging.getLogger(__name__)

# Room reserved for multipart boundaries and part headers.
_MULTIPART_OVERHEAD = 4096


class Forwarder:
    """Routes messages to webhooks and builds JSON or multipart payloads."""

    def __init__(
        self,
        mappings: Iterable[RouteMapping],
        network: NetworkPort,
        webhook: WebhookPort,
        config: Optional[ForwardingConfig] = None,
    ) -> None:
        self._mappings = tuple(mappings)
        self._network = network
        self._webhook = webhook
        self._config = config or ForwardingConfig()

    async def forward(self, message: NormalizedMessage) -> PipelineOutcome:
        route = find_route(message, self._mappings)
        if route is None:
            LOGGER.info(
                "Unmapped channel: %s (%s)",
                message.channel_username or message.channel_title or message.channel_id,
                FailureKind.UNROUTED.value,
            )
            return PipelineOutcome.UNROUTED

        source_name = message.display_name
        LOGGER.info("Route found: %s -> %s", source_name, mask_webhook_url(route.webhook_url))

        try:
            result = await self._deliver(route.webhook_url, message)
        except Exception:
            LOGGER.exception(
                "Delivery failed for %s (%s)", source_name, FailureKind.DELIVERY_FAILED.value
            )
            return PipelineOutcome.DELIVERY_FAILED

        if not result.ok:
            LOGGER.error(
                "Delivery failed for %s (%s, status=%s): %s",
                source_name,
                FailureKind.DELIVERY_FAILED.value,
                result.status,
                result.reason,
            )
            return PipelineOutcome.DELIVERY_FAILED
        return PipelineOutcome.DELIVERED

    async def _deliver(self, url: str, message: NormalizedMessage) -> DeliveryResult:
        payload = build_payload(message, self._config)
        fetch = await self.fetch_media(message)

        if fetch.attachment is not None:
            body_size = len(json.dumps(payload)) + len(fetch.attachment.data) + _MULTIPART_OVERHEAD
            if body_size > self._config.max_body_bytes:
                LOGGER.warning(
                    "Attachment %s would exceed the %s byte body cap",
                    fetch.attachment.filename,
                    self._config.max_body_bytes,
                )
                fetch = MediaFetch(MediaOutcome.OVER_BODY_CAP)

        if fetch.failure is not None:
            LOGGER.info("Sending %s without attachment (%s)", message.display_name, fetch.outcome.value)

        if fetch.attachment is not None:
            result = await self._webhook.post_multipart(url, payload, [fetch.attachment])
            if result.ok:
                LOGGER.info("Delivered %s (attachments: 1)", message.display_name)
            return result

        result = await self._webhook.post_json(url, payload)
        if result.ok:
            LOGGER.info("Delivered %s (attachments: 0)", message.display_name)
        return result

    async def fetch_media(self, message: NormalizedMessage) -> MediaFetch:
        """Download the message attachment, honoring the document size cap."""

        media = message.media
        if media is None or message.raw_handle is None:
            return MediaFetch(MediaOutcome.NONE)

        if isinstance(media, DocumentMedia) and media.size > self._config.max_document_bytes:
            LOGGER.info(
                "Document too large (%.2f MiB), skipping attachment",
                media.size / (1024 * 1024),
            )
            return MediaFetch(MediaOutcome.TOO_LARGE)

        try:
            data = await self._network.download_attachment(message.raw_handle)
        except Exception:
            LOGGER.exception("Media download failed for message %s", message.id)
            return MediaFetch(MediaOutcome.FETCH_FAILED)
        if not data:
            return MediaFetch(MediaOutcome.FETCH_FAILED)

        if isinstance(media, PhotoMedia):
            attachment = Attachment(data, photo_filename(message.id), "image/jpeg")
        else:
            attachment = Attachment(
                data, document_filename(media, message.id), document_content_type(media)
            )
        LOGGER.debug("Downloaded %s (%s bytes)", attachment.filename, len(data))
        return MediaFetch(MediaOutcome.FETCHED, attachment)
