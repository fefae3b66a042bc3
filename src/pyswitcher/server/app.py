"""aiohttp control API server.

Runs on the same event loop as the rotation scheduler so configuration
writes and scheduler re-evaluations never execute concurrently.
"""

from __future__ import annotations

import logging

from aiohttp import web

from pyswitcher.control import ControlService
from pyswitcher.server.middleware import (
    bearer_auth_middleware,
    error_handling_middleware,
    request_logging_middleware,
)
from pyswitcher.server.routes import CONTROL_KEY, setup_routes

_logger = logging.getLogger(__name__)


def create_app(control: ControlService, *, api_token: str) -> web.Application:
    """Build the control API application.

    Middleware order: request logging -> bearer auth -> error handling.
    """
    app = web.Application(
        middlewares=[
            request_logging_middleware,
            bearer_auth_middleware(api_token),
            error_handling_middleware,
        ]
    )
    app[CONTROL_KEY] = control
    setup_routes(app)
    return app


class ControlServer:
    """Starts and stops the control API without blocking the event loop."""

    def __init__(
        self,
        control: ControlService,
        *,
        api_token: str,
        host: str = "0.0.0.0",
        port: int = 3000,
    ) -> None:
        self._control = control
        self._api_token = api_token
        self.host = host
        self.port = port
        self._runner: web.AppRunner | None = None

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    async def start(self) -> None:
        if self._runner is not None:
            _logger.warning("Control API already running")
            return
        runner = web.AppRunner(create_app(self._control, api_token=self._api_token))
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise
        self._runner = runner
        _logger.info("Control API running on %s", self.url)

    async def stop(self) -> None:
        runner = self._runner
        self._runner = None
        if runner is None:
            return
        await runner.cleanup()
        _logger.info("Control API stopped")
