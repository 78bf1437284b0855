"""Round-robin polling of configured channels.

The push path is unreliable for some channels on user accounts, so a poller
checks one channel per tick and submits its newest message. Checking a single
channel per tick keeps the request rate fixed no matter how many channels are
configured. Only the newest message is fetched: anything older that arrived
within one cycle relies on the push path.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from courier.core.models import AcquisitionSource, RawUpdate
from courier.core.ports import NetworkPort, SubmitFn

LOGGER = logging.getLogger(__name__)


class RoundRobinPoller:
    """Fetch the latest message of one channel per tick."""

    def __init__(
        self,
        network: NetworkPort,
        channels: Sequence[str],
        submit: SubmitFn,
        interval: float = 2.0,
    ) -> None:
        self._network = network
        self._channels = list(channels)
        self._submit = submit
        self._interval = interval
        self._index = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def next_channel(self) -> Optional[str]:
        if not self._channels:
            return None
        channel = self._channels[self._index]
        self._index = (self._index + 1) % len(self._channels)
        return channel

    async def tick(self) -> bool:
        """Check the next channel. Returns True if a message was submitted."""

        channel = self.next_channel()
        if channel is None:
            return False
        try:
            messages = await self._network.get_recent_messages(channel, limit=1)
        except Exception as exc:
            LOGGER.debug("Polling error for %s: %s", channel, exc)
            return False
        if not messages:
            return False
        await self._submit(RawUpdate(message=messages[0], source=AcquisitionSource.POLL))
        return True

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.tick()

    def start(self) -> bool:
        if not self._channels:
            LOGGER.info("No channels to poll")
            return False
        if self.running:
            return True
        LOGGER.info(
            "Polling started (%s channels, one every %.1fs)", len(self._channels), self._interval
        )
        self._task = asyncio.create_task(self.run(), name="courier-poller")
        return True

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
