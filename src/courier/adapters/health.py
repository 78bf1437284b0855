"""HTTP health-check listener for container platforms."""

from __future__ import annotations

import logging
from typing import Optional

from aiohttp import web

LOGGER = logging.getLogger(__name__)


async def _ok(_request: web.Request) -> web.Response:
    return web.Response(text="ok")


def build_health_app() -> web.Application:
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", _ok)
    return app


class HealthServer:
    """Answers 200 ok on every path while the courier is running."""

    def __init__(self, port: int, host: str = "0.0.0.0") -> None:
        self._port = port
        self._host = host
        self._runner: Optional[web.AppRunner] = None

    async def start(self) -> None:
        self._runner = web.AppRunner(build_health_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._host, self._port)
        await site.start()
        LOGGER.info("Health server listening on port %s", self._port)

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
