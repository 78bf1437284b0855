from __future__ import annotations

import asyncio

import aiohttp
from aiohttp import test_utils

from courier.adapters.health import build_health_app


def test_health_answers_ok_on_any_path() -> None:
    async def scenario() -> list[tuple[int, str]]:
        server = test_utils.TestServer(build_health_app())
        await server.start_server()
        responses = []
        try:
            async with aiohttp.ClientSession() as session:
                for path in ("/", "/healthz"):
                    async with session.get(str(server.make_url(path))) as resp:
                        responses.append((resp.status, await resp.text()))
        finally:
            await server.close()
        return responses

    assert asyncio.run(scenario()) == [(200, "ok"), (200, "ok")]
