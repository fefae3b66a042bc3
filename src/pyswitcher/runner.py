"""Service wiring: state store, pipeline client, scheduler and control API."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from collections.abc import Sequence

from pyswitcher.client import PipelineClient
from pyswitcher.config import SwitcherConfig
from pyswitcher.control import ControlService
from pyswitcher.exceptions import SwitcherError, SwitcherTransportError
from pyswitcher.models.source import Source
from pyswitcher.rotation.scheduler import RotationScheduler
from pyswitcher.server.app import ControlServer
from pyswitcher.state.persistence import StateFile
from pyswitcher.state.store import StateStore

_logger = logging.getLogger(__name__)


def format_sources_table(sources: Sequence[Source]) -> str:
    """Human-readable listing of pipeline sources for the startup log."""
    rule = "=" * 70
    lines = [rule, "Available Sources:", rule]
    if not sources:
        lines.append("No sources configured.")
    for source in sources:
        status = "enabled" if source.enabled else "disabled"
        health = "healthy" if source.healthy else "unhealthy"
        lines.append(f"  ID {source.id}: {source.name or 'Unnamed'} [{status}]")
        lines.append(f"     Type: {source.type} | Health: {health}")
        if source.uri:
            lines.append(f"     URI: {source.uri}")
        elif source.file_path:
            lines.append(f"     File: {source.file_path}")
    lines.append(rule)
    return "\n".join(lines)


class SwitcherService:
    """Runs the switcher until a stop signal arrives.

    Startup order: load state, reach the pipeline, start the control API,
    start the scheduler. Shutdown stops the scheduler first so the live
    source is left untouched.
    """

    def __init__(self, config: SwitcherConfig) -> None:
        self._config = config
        self.store = StateStore(StateFile(config.state_file))

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Serve until *stop_event* is set (or SIGINT/SIGTERM when not given).

        Raises :class:`SwitcherTransportError` when the pipeline is
        unreachable at startup.
        """
        config = self._config
        if stop_event is None:
            stop_event = asyncio.Event()
            _install_signal_handlers(stop_event)

        self.store.load()

        async with PipelineClient(config) as client:
            _logger.info("Connecting to pipeline service at %s", config.base_url)
            if not await client.check_health():
                raise SwitcherTransportError(
                    f"Cannot connect to pipeline service at {config.base_url}",
                    endpoint="/health",
                )
            _logger.info("Connected to pipeline service")

            try:
                _logger.info("\n%s", format_sources_table(await client.list_sources()))
            except SwitcherError as exc:
                _logger.warning("Could not list sources at startup: %s", exc)

            control = ControlService(self.store, client, client)
            server = ControlServer(
                control,
                api_token=config.api_token,
                host=config.api_host,
                port=config.api_port,
            )
            scheduler = RotationScheduler(
                self.store,
                client,
                client,
                source_type=config.rotation_source_type,
            )

            await server.start()
            try:
                scheduler.start()
                await stop_event.wait()
                _logger.info("Stopping source switcher...")
            finally:
                await scheduler.stop()
                await server.stop()


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop_event.set)
