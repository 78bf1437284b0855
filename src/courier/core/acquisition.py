"""Acquisition lifecycle: subscription, poller and pipeline consumer.

States move strictly forward:
disconnected -> connecting -> subscribed -> polling_subscribed -> stopped

Polling only starts once the push subscription is registered. Stopping is
cooperative: the subscription is removed and the poll task cancelled, while
work already queued in the pipeline is allowed to finish.
"""

from __future__ import annotations

import logging
from typing import Optional

from courier.core.models import AcquisitionState
from courier.core.poller import RoundRobinPoller
from courier.core.ports import SubscriptionPort
from courier.core.processor import MessagePipeline

LOGGER = logging.getLogger(__name__)


class MessageAcquisition:
    """Owns both acquisition paths and the pipeline they feed."""

    def __init__(
        self,
        source: SubscriptionPort,
        pipeline: MessagePipeline,
        poller: Optional[RoundRobinPoller] = None,
    ) -> None:
        self._source = source
        self._pipeline = pipeline
        self._poller = poller
        self._state = AcquisitionState.DISCONNECTED

    @property
    def state(self) -> AcquisitionState:
        return self._state

    def _transition(self, state: AcquisitionState) -> None:
        LOGGER.debug("Acquisition state: %s -> %s", self._state.value, state.value)
        self._state = state

    async def start(self) -> None:
        """Connect and start both paths. Connect failures propagate."""

        if self._state is not AcquisitionState.DISCONNECTED:
            raise RuntimeError(f"Cannot start acquisition from state {self._state.value}")

        self._transition(AcquisitionState.CONNECTING)
        await self._source.connect()

        self._pipeline.start()
        await self._source.subscribe(self._pipeline.submit)
        self._transition(AcquisitionState.SUBSCRIBED)
        LOGGER.info("Event handlers registered")

        if self._poller is not None and self._poller.start():
            self._transition(AcquisitionState.POLLING_SUBSCRIBED)

    async def stop(self) -> None:
        if self._state is AcquisitionState.STOPPED:
            return
        if self._state is not AcquisitionState.DISCONNECTED:
            await self._source.unsubscribe()
            if self._poller is not None:
                await self._poller.stop()
            await self._pipeline.close()
            await self._source.disconnect()
        self._transition(AcquisitionState.STOPPED)
        LOGGER.info(
            "Acquisition stopped (%s)",
            ", ".join(f"{outcome.value}={count}" for outcome, count in self._pipeline.stats.counts.items())
            or "no messages",
        )
