"""Webhook delivery adapter.

Posts embeds to Discord-style webhooks with aiohttp, either as a JSON body or
as multipart/form-data with a ``payload_json`` field and one ``files[i]``
field per attachment. Failures are reported as a DeliveryResult, never
retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional, Sequence

import aiohttp

from courier.core.models import Attachment, DeliveryResult
from courier.core.routing import mask_webhook_url

LOGGER = logging.getLogger(__name__)

_ERROR_BODY_CHARS = 200


class WebhookClient:
    """Satisfies the WebhookPort contract with a shared aiohttp session."""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None) -> None:
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def post_json(self, url: str, payload: dict) -> DeliveryResult:
        return await self._post(url, json=payload)

    async def post_multipart(
        self, url: str, payload: dict, attachments: Sequence[Attachment]
    ) -> DeliveryResult:
        form = aiohttp.FormData()
        form.add_field("payload_json", json.dumps(payload), content_type="application/json")
        for index, attachment in enumerate(attachments):
            form.add_field(
                f"files[{index}]",
                attachment.data,
                filename=attachment.filename,
                content_type=attachment.content_type,
            )
        return await self._post(url, data=form)

    async def _post(self, url: str, **kwargs) -> DeliveryResult:
        session = self._get_session()
        try:
            async with session.post(url, **kwargs) as resp:
                if 200 <= resp.status < 300:
                    return DeliveryResult(ok=True, status=resp.status)
                body = await resp.text()
                return DeliveryResult(
                    ok=False, status=resp.status, reason=body[:_ERROR_BODY_CHARS] or resp.reason or ""
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            LOGGER.debug("Webhook request to %s failed", mask_webhook_url(url), exc_info=True)
            return DeliveryResult(ok=False, reason=f"{type(exc).__name__}: {exc}")
