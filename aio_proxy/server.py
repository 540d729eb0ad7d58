"""aiohttp application hosting the proxy endpoint."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from aiohttp import web

from .config import ProxyConfig
from .router import RequestRouter

LOGGER = logging.getLogger(__name__)


def create_app(
    config: ProxyConfig, *, router: Optional[RequestRouter] = None
) -> web.Application:
    """Build the web application with the router mounted for every method."""

    router = router or RequestRouter(config)
    app = web.Application()
    # Every method reaches the router so non-POST requests get the JSON envelope.
    app.router.add_route("*", config.server.path, router.handle)
    return app


class ProxyServer:
    """Runs the proxy application on a TCP socket."""

    def __init__(
        self, config: ProxyConfig, *, router: Optional[RequestRouter] = None
    ) -> None:
        self._config = config
        self._router = router
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    async def start(self) -> None:
        app = create_app(self._config, router=self._router)

        self._runner = web.AppRunner(app)
        await self._runner.setup()
        self._site = web.TCPSite(
            self._runner, self._config.server.host, self._config.server.port
        )
        await self._site.start()
        LOGGER.info(
            "Proxy listening on http://%s:%s%s",
            self._config.server.host,
            self._config.server.port,
            self._config.server.path,
        )

    async def stop(self) -> None:
        with contextlib.suppress(Exception):
            if self._site is not None:
                await self._site.stop()
        if self._runner is not None:
            await self._runner.cleanup()
        self._site = None
        self._runner = None

    async def serve_forever(self) -> None:
        await self.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()
