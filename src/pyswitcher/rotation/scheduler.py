"""Event-driven rotation scheduler.

The scheduler never loops. It re-evaluates when the store announces a
configuration change or when its single wake-up timer fires, decides what
the output should show, and arms at most one timer for the next
re-evaluation.

Re-evaluations never overlap: a trigger that arrives while one is running
marks the scheduler dirty, and exactly one follow-up run starts once the
current run returns. Several triggers in the meantime collapse into that
one run, which sees only the latest state.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Protocol

from pyswitcher._constants import DEFAULT_ROTATION_SOURCE_TYPE, RETRY_DELAY_SECONDS
from pyswitcher.models.source import Source
from pyswitcher.models.state import RotationScheduleItem, SwitcherState
from pyswitcher.rotation.selection import resolve_fixed_source, resolve_rotation_source
from pyswitcher.state.events import ConfigChanged
from pyswitcher.state.policy import next_schedule_index
from pyswitcher.state.store import StateStore

_logger = logging.getLogger(__name__)


class SourceProvider(Protocol):
    """Lists the sources currently known to the pipeline; raises on failure."""

    async def list_sources(self) -> Sequence[Source]:
        ...


class SourceSwitcher(Protocol):
    """Makes a source live; returns whether the switch succeeded."""

    async def switch(self, source_id: int) -> bool:
        ...


class RotationMode(StrEnum):
    """State entered by the most recent re-evaluation."""

    DISABLED_FIXED = "disabled_fixed"
    DISABLED_NO_FIXED = "disabled_no_fixed"
    ENABLED_NO_SCHEDULE = "enabled_no_schedule"
    ENABLED_ACTIVE = "enabled_active"


@dataclass(slots=True)
class _Wakeup:
    handle: asyncio.TimerHandle
    delay: float


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RotationScheduler:
    """Drives the pipeline output from the switcher state.

    Parameters
    ----------
    store : StateStore
        Source of configuration and sink for operational state.
    provider : SourceProvider
        Queried once per re-evaluation; nothing is cached between runs.
    switcher : SourceSwitcher
        Performs the actual switch.
    source_type : str
        Pipeline source type eligible for rotation.
    retry_delay : float
        Seconds before retrying after a skipped or failed rotation step.
    clock : callable
        Returns the current UTC time recorded for successful switches.
    """

    def __init__(
        self,
        store: StateStore,
        provider: SourceProvider,
        switcher: SourceSwitcher,
        *,
        source_type: str = DEFAULT_ROTATION_SOURCE_TYPE,
        retry_delay: float = RETRY_DELAY_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._provider = provider
        self._switcher = switcher
        self._source_type = source_type
        self._retry_delay = retry_delay
        self._clock = clock
        self._wakeup: _Wakeup | None = None
        self._runner: asyncio.Task[None] | None = None
        self._dirty = False
        self._stopped = False
        self._mode: RotationMode | None = None
        self._unsubscribe: Callable[[], None] | None = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def mode(self) -> RotationMode | None:
        """Mode entered by the most recent re-evaluation."""
        return self._mode

    @property
    def next_wakeup_delay(self) -> float | None:
        """Delay the pending timer was armed with, or ``None`` when idle."""
        return self._wakeup.delay if self._wakeup is not None else None

    @property
    def is_busy(self) -> bool:
        """Whether a re-evaluation is running or queued."""
        return self._runner is not None and not self._runner.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Subscribe to configuration changes and run the first re-evaluation.

        Must be called from the event loop the scheduler runs on.
        """
        if self._unsubscribe is not None:
            return
        self._stopped = False
        self._unsubscribe = self._store.subscribe(self._on_config_changed)
        _logger.info("Starting rotation scheduler")
        self.request_reevaluation()

    async def stop(self) -> None:
        """Cancel the pending timer and any running re-evaluation.

        The source that is live stays live.
        """
        self._stopped = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._cancel_wakeup()
        self._dirty = False
        runner = self._runner
        self._runner = None
        if runner is not None and not runner.done():
            runner.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await runner
        _logger.info(
            "Rotation scheduler stopped; source %s remains active",
            self._store.read().current_source_id,
        )

    async def wait_idle(self) -> None:
        """Wait until no re-evaluation is running or queued."""
        while self._runner is not None and not self._runner.done():
            await self._runner

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def request_reevaluation(self) -> None:
        """Ask for a re-evaluation, coalescing with one already queued."""
        if self._stopped:
            return
        self._dirty = True
        if self._runner is None or self._runner.done():
            self._runner = asyncio.get_running_loop().create_task(self._drain(), name="pyswitcher-rotation")

    def _on_config_changed(self, event: ConfigChanged) -> None:
        _logger.debug("Configuration changed fields=%s", sorted(event.changed_fields))
        self.request_reevaluation()

    def _on_wakeup(self) -> None:
        self._wakeup = None
        self.request_reevaluation()

    async def _drain(self) -> None:
        while self._dirty and not self._stopped:
            self._dirty = False
            try:
                await self.reevaluate()
            except Exception:
                _logger.exception("Rotation re-evaluation failed; retrying in %s seconds", self._retry_delay)
                self._arm(self._retry_delay)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    async def reevaluate(self) -> RotationMode:
        """Inspect the current state, act on it, and arm the next wake-up."""
        self._cancel_wakeup()
        state = self._store.read()

        if not state.rotation_enabled:
            if state.current_schedule_index is not None:
                self._store.set_schedule_index(None)
            mode = await self._apply_fixed_source(state)
        elif not state.rotation_schedule:
            mode = RotationMode.ENABLED_NO_SCHEDULE
            if self._mode is not mode:
                _logger.warning("Rotation enabled but no schedule defined. Waiting for schedule...")
        else:
            mode = RotationMode.ENABLED_ACTIVE
            await self._rotate(state)

        if mode is not self._mode:
            _logger.debug("Rotation mode %s -> %s", self._mode, mode)
        self._mode = mode
        return mode

    async def _apply_fixed_source(self, state: SwitcherState) -> RotationMode:
        fixed_id = state.fixed_source_id
        if fixed_id is None:
            return RotationMode.DISABLED_NO_FIXED

        sources = await self._fetch_sources()
        if sources is None:
            self._arm(self._retry_delay)
            return RotationMode.DISABLED_NO_FIXED
        source = resolve_fixed_source(sources, fixed_id)
        if source is None:
            _logger.warning("Fixed source %d not found or not enabled", fixed_id)
            return RotationMode.DISABLED_NO_FIXED

        if self._store.read().current_source_id != fixed_id:
            _logger.info("Rotation is disabled, setting fixed source %d", fixed_id)
            if not await self._switch(source):
                self._arm(self._retry_delay)
        return RotationMode.DISABLED_FIXED

    async def _rotate(self, state: SwitcherState) -> None:
        schedule = state.rotation_schedule
        index = state.current_schedule_index
        if index is None or not 0 <= index < len(schedule):
            index = 0
            self._store.set_schedule_index(index)

        item = schedule[index]
        sources = await self._fetch_sources()
        source = None
        if sources is not None:
            source = resolve_rotation_source(
                sources,
                item.camera_id,
                source_type=self._source_type,
                selected_ids=state.selected_camera_ids,
            )

        switched = False
        if source is None:
            _logger.warning("Source %d not found or not available. Skipping...", item.camera_id)
        else:
            switched = await self._switch(source)

        self._advance(index, schedule)
        if switched:
            _logger.info("Waiting %d seconds until next switch", item.duration_seconds)
            self._arm(item.duration_seconds)
        else:
            self._arm(self._retry_delay)

    def _advance(self, index: int, schedule: Sequence[RotationScheduleItem]) -> None:
        """Step past *index* unless the configuration moved underneath this run.

        A configuration write during a network call has already reconciled
        the index and queued a follow-up re-evaluation, which starts from
        that reconciled position.
        """
        state = self._store.read()
        if (
            not state.rotation_enabled
            or state.rotation_schedule != tuple(schedule)
            or state.current_schedule_index != index
        ):
            _logger.debug("Configuration changed during rotation step; not advancing")
            return
        self._store.set_schedule_index(next_schedule_index(index, len(schedule)))

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    async def _fetch_sources(self) -> Sequence[Source] | None:
        try:
            return await self._provider.list_sources()
        except Exception:
            _logger.warning("Failed to fetch sources", exc_info=True)
            return None

    async def _switch(self, source: Source) -> bool:
        try:
            ok = await self._switcher.switch(source.id)
        except Exception:
            _logger.warning("Switch to source %d failed", source.id, exc_info=True)
            return False
        if not ok:
            _logger.warning("Switch to source %d was rejected", source.id)
            return False
        self._store.set_operational(source.id, self._clock())
        _logger.info("Switched to source %d: %s", source.id, source.display_name)
        return True

    # ------------------------------------------------------------------
    # Wake-up timer
    # ------------------------------------------------------------------

    def _arm(self, delay: float) -> None:
        self._cancel_wakeup()
        if self._stopped:
            return
        handle = asyncio.get_running_loop().call_later(delay, self._on_wakeup)
        self._wakeup = _Wakeup(handle=handle, delay=delay)

    def _cancel_wakeup(self) -> None:
        wakeup = self._wakeup
        self._wakeup = None
        if wakeup is not None:
            wakeup.handle.cancel()
