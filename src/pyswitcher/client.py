"""High-level async client for the video pipeline service."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from pyswitcher._api import camera as _camera_api
from pyswitcher._api import pipeline as _pipeline_api
from pyswitcher._transport import HttpTransport, Transport
from pyswitcher.config import SwitcherConfig
from pyswitcher.exceptions import SwitcherError, SwitcherTransportError
from pyswitcher.models.source import Source

_logger = logging.getLogger(__name__)


class CameraNotifier:
    """Tells the auxiliary camera API which direction just went live.

    Sources without a mapped direction are ignored. Failures are logged and
    never raised: the camera is a side channel, not part of the switch.
    """

    def __init__(self, transport: Transport, direction_map: Mapping[int, str]) -> None:
        self._transport = transport
        self._direction_map = dict(direction_map)

    def direction_for(self, source_id: int) -> str | None:
        return self._direction_map.get(source_id)

    async def notify(self, source_id: int) -> bool:
        direction = self.direction_for(source_id)
        if direction is None:
            return False
        try:
            await _camera_api.post_direction(self._transport, direction)
        except SwitcherTransportError as exc:
            _logger.warning("Camera API notification failed for source %d: %s", source_id, exc)
            return False
        _logger.info("Camera API notified: direction=%s", direction)
        return True


class PipelineClient:
    """Async client for the pipeline service.

    Serves as both the source provider and the source switcher of the
    rotation scheduler.

    Usage::

        async with PipelineClient(config) as client:
            sources = await client.list_sources()
            await client.switch(sources[0].id)
    """

    def __init__(
        self,
        config: SwitcherConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = None
        self._notifier: CameraNotifier | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PipelineClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        self._transport = HttpTransport(
            self._config.base_url,
            self._http_session,
            timeout=self._config.request_timeout,
        )
        if self._config.camera_notifications_enabled:
            camera_transport = HttpTransport(
                self._config.camera_api_host,
                self._http_session,
                timeout=self._config.request_timeout,
                bearer_token=self._config.camera_api_token,
            )
            self._notifier = CameraNotifier(camera_transport, self._config.source_direction_map)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transport = None
        self._notifier = None

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise SwitcherError("Client not initialized. Use 'async with PipelineClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Pipeline operations
    # ------------------------------------------------------------------

    async def check_health(self) -> bool:
        """Return whether the pipeline answers its health endpoint."""
        return await _pipeline_api.check_health(self._require_transport())

    async def list_sources(self) -> list[Source]:
        """Fetch a fresh listing of pipeline sources.

        Raises :class:`SwitcherTransportError` when the pipeline cannot be
        reached or answers with an error.
        """
        sources = await _pipeline_api.fetch_sources(self._require_transport())
        _logger.debug("Fetched %d sources", len(sources))
        return sources

    async def switch(self, source_id: int) -> bool:
        """Make *source_id* live. Returns ``False`` when the pipeline refused or was unreachable."""
        try:
            await _pipeline_api.set_active_source(self._require_transport(), source_id)
        except SwitcherTransportError as exc:
            _logger.error("Failed to switch to source %d: %s", source_id, exc)
            return False
        if self._notifier is not None:
            await self._notifier.notify(source_id)
        return True
