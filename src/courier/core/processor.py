"""Core message processing pipeline.

This module is integration-agnostic. Both acquisition paths submit raw
updates to one queue, and a single consumer runs each step to completion
before starting the next, so the dedup cache never sees two steps at once.

Each step enforces a strict order:
1) Dedup key check (the sole arbiter between the push and poll paths)
2) Identity resolution
3) Drop unidentified messages
4) Build the NormalizedMessage
5) Forward
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from courier.core.dedup import DedupCache, dedup_key_for
from courier.core.forwarder import Forwarder
from courier.core.models import (
    AcquisitionSource,
    FailureKind,
    NormalizedMessage,
    PipelineOutcome,
    PipelineStats,
    RawUpdate,
)
from courier.core.resolver import EntityResolver

LOGGER = logging.getLogger(__name__)

_STOP = object()


def _preview(text: str, limit: int = 30) -> str:
    return text[:limit].replace("\n", " ")


class MessagePipeline:
    """Orchestrates dedup, identity resolution and forwarding."""

    def __init__(
        self,
        cache: DedupCache,
        resolver: EntityResolver,
        forwarder: Forwarder,
    ) -> None:
        self._cache = cache
        self._resolver = resolver
        self._forwarder = forwarder
        self._queue: asyncio.Queue = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None
        self.stats = PipelineStats()

    async def submit(self, update: RawUpdate) -> None:
        """Enqueue an update; called by every acquisition path."""

        self._queue.put_nowait(update)

    def start(self) -> None:
        if self._consumer is None:
            self._consumer = asyncio.create_task(self._consume(), name="courier-pipeline")

    async def close(self) -> None:
        """Let queued work finish, then stop the consumer."""

        if self._consumer is None:
            return
        self._queue.put_nowait(_STOP)
        await self._consumer
        self._consumer = None

    async def _consume(self) -> None:
        while True:
            update = await self._queue.get()
            try:
                if update is _STOP:
                    return
                await self.process(update)
            except Exception:
                LOGGER.exception("Error while processing message")
            finally:
                self._queue.task_done()

    async def process(self, update: RawUpdate) -> PipelineOutcome:
        """Run one pipeline step for a single raw update."""

        outcome = await self._process(update)
        self.stats.record(outcome)
        return outcome

    async def _process(self, update: RawUpdate) -> PipelineOutcome:
        raw = update.message
        key = dedup_key_for(raw)

        if not self._cache.should_process(key):
            if update.source is AcquisitionSource.EVENT:
                LOGGER.debug("Duplicate message ignored: %s", key)
            return PipelineOutcome.DUPLICATE

        if update.source is AcquisitionSource.POLL:
            LOGGER.info("Poll picked up message: key=%s, text=%r", key, _preview(raw.text))
        else:
            LOGGER.info("Event message: key=%s, text=%r", key, _preview(raw.text))

        resolution = await self._resolver.resolve(update)
        identity = resolution.identity
        LOGGER.info(
            "Channel info (%s): username=%s, title=%s, id=%s",
            resolution.status.value,
            identity.username,
            identity.title,
            identity.channel_id,
        )
        if not identity.is_identified:
            LOGGER.info(
                "Could not identify channel for %s, skipping (%s)",
                key,
                FailureKind.UNIDENTIFIABLE.value,
            )
            return PipelineOutcome.UNIDENTIFIED

        message = NormalizedMessage(
            id=raw.message_id,
            text=raw.text or "",
            identity=identity,
            timestamp=raw.date if raw.date is not None else int(time.time()),
            media=raw.media,
            raw_handle=raw.handle,
        )
        return await self._forwarder.forward(message)
