from __future__ import annotations

import asyncio
from typing import Optional

import pytest

from courier.core.acquisition import MessageAcquisition
from courier.core.dedup import DedupCache
from courier.core.forwarder import Forwarder
from courier.core.models import (
    AcquisitionSource,
    AcquisitionState,
    ChannelPeer,
    EntityInfo,
    RawUpdate,
    RouteMapping,
)
from courier.core.poller import RoundRobinPoller
from courier.core.ports import SubmitFn
from courier.core.processor import MessagePipeline
from courier.core.resolver import EntityResolver

from fakes import FakeNetwork, FakeWebhook, raw_message


class FakeSource:
    def __init__(self, connect_error: Optional[Exception] = None) -> None:
        self.connect_error = connect_error
        self.submit: Optional[SubmitFn] = None
        self.events: list[str] = []

    async def connect(self) -> None:
        self.events.append("connect")
        if self.connect_error is not None:
            raise self.connect_error

    async def subscribe(self, submit: SubmitFn) -> None:
        self.events.append("subscribe")
        self.submit = submit

    async def unsubscribe(self) -> None:
        self.events.append("unsubscribe")
        self.submit = None

    async def disconnect(self) -> None:
        self.events.append("disconnect")


def _build(network: FakeNetwork, webhook: FakeWebhook, channels: list[str]):
    forwarder = Forwarder([RouteMapping("@news", "https://example.com/hook")], network, webhook)
    pipeline = MessagePipeline(DedupCache(), EntityResolver(network), forwarder)
    poller = RoundRobinPoller(network, channels, pipeline.submit, interval=0.01)
    return pipeline, poller


def test_state_machine_and_dual_path_delivery() -> None:
    network, webhook = FakeNetwork(), FakeWebhook()
    network.entities[ChannelPeer(42)] = EntityInfo(username="news")
    message = raw_message()
    network.recent["@news"] = [message]
    source = FakeSource()

    async def scenario() -> list[AcquisitionState]:
        pipeline, poller = _build(network, webhook, ["@news"])
        acquisition = MessageAcquisition(source, pipeline, poller)
        states = [acquisition.state]
        await acquisition.start()
        states.append(acquisition.state)

        assert source.submit is not None
        await source.submit(RawUpdate(message=message, source=AcquisitionSource.RAW_EVENT))
        await asyncio.sleep(0.05)

        await acquisition.stop()
        states.append(acquisition.state)
        return states

    states = asyncio.run(scenario())
    assert states == [
        AcquisitionState.DISCONNECTED,
        AcquisitionState.POLLING_SUBSCRIBED,
        AcquisitionState.STOPPED,
    ]
    assert source.events == ["connect", "subscribe", "unsubscribe", "disconnect"]
    assert webhook.total_posts == 1


def test_without_poll_channels_stays_subscribed_only() -> None:
    network, webhook = FakeNetwork(), FakeWebhook()
    source = FakeSource()

    async def scenario() -> AcquisitionState:
        pipeline, poller = _build(network, webhook, [])
        acquisition = MessageAcquisition(source, pipeline, poller)
        await acquisition.start()
        state = acquisition.state
        await acquisition.stop()
        return state

    assert asyncio.run(scenario()) is AcquisitionState.SUBSCRIBED


def test_queued_work_finishes_on_stop() -> None:
    network, webhook = FakeNetwork(), FakeWebhook()
    network.entities[ChannelPeer(42)] = EntityInfo(username="news")
    source = FakeSource()

    async def scenario() -> None:
        pipeline, _ = _build(network, webhook, [])
        acquisition = MessageAcquisition(source, pipeline)
        await acquisition.start()
        for message_id in range(1, 4):
            await source.submit(
                RawUpdate(message=raw_message(message_id=message_id), source=AcquisitionSource.EVENT)
            )
        await acquisition.stop()

    asyncio.run(scenario())
    assert webhook.total_posts == 3


def test_connect_failure_propagates() -> None:
    network, webhook = FakeNetwork(), FakeWebhook()
    source = FakeSource(connect_error=ConnectionError("no network"))

    async def scenario() -> None:
        pipeline, poller = _build(network, webhook, ["@news"])
        acquisition = MessageAcquisition(source, pipeline, poller)
        with pytest.raises(ConnectionError):
            await acquisition.start()
        assert acquisition.state is AcquisitionState.CONNECTING
        assert source.events == ["connect"]

    asyncio.run(scenario())


def test_cannot_start_twice() -> None:
    network, webhook = FakeNetwork(), FakeWebhook()

    async def scenario() -> None:
        pipeline, poller = _build(network, webhook, [])
        acquisition = MessageAcquisition(FakeSource(), pipeline, poller)
        await acquisition.start()
        with pytest.raises(RuntimeError):
            await acquisition.start()
        await acquisition.stop()

    asyncio.run(scenario())
