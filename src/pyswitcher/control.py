"""Control surface: the only writer of configuration fields.

Every configuration call is validated here first. A rejected change raises
:class:`SwitcherValidationError` and leaves the state untouched; an accepted
change reaches the store as a single write and therefore produces exactly
one change notification, however many fields it carries.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from pyswitcher.exceptions import SwitcherError, SwitcherSourceNotFoundError, SwitcherValidationError
from pyswitcher.models.source import Source
from pyswitcher.models.state import ConfigUpdate, RotationScheduleItem, SwitcherState
from pyswitcher.rotation.scheduler import SourceProvider, SourceSwitcher
from pyswitcher.state.store import StateStore

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _parse_update(payload: Mapping[str, Any]) -> ConfigUpdate:
    try:
        return ConfigUpdate.model_validate(dict(payload))
    except ValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        raise SwitcherValidationError(f"Invalid configuration: {exc.error_count()} error(s)", errors=errors) from exc


class ControlService:
    """Configuration and manual-switch entry points for the control API.

    Parameters
    ----------
    store : StateStore
        The state store configuration writes go to.
    provider : SourceProvider or None
        Used to list sources and to check that a fixed source exists.
    switcher : SourceSwitcher or None
        Used for manual switches.
    """

    def __init__(
        self,
        store: StateStore,
        provider: SourceProvider | None = None,
        switcher: SourceSwitcher | None = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._provider = provider
        self._switcher = switcher
        self._clock = clock

    def get_state(self) -> SwitcherState:
        return self._store.read()

    async def update(self, payload: Mapping[str, Any]) -> SwitcherState:
        """Apply a batch of configuration fields (camelCase or snake_case keys).

        Keys that are not configuration fields are ignored.
        """
        update = _parse_update(payload)
        if "fixed_source_id" in update.model_fields_set:
            await self._check_fixed_source(update.fixed_source_id)
        state = self._store.set_config(update)
        _logger.info("Configuration updated: %s", ", ".join(sorted(update.model_fields_set)) or "no fields")
        return state

    async def set_rotation_enabled(self, enabled: bool) -> SwitcherState:
        return await self.update({"rotation_enabled": enabled})

    async def set_fixed_source_id(self, source_id: int | None) -> SwitcherState:
        return await self.update({"fixed_source_id": source_id})

    async def set_selected_camera_ids(self, camera_ids: Iterable[int]) -> SwitcherState:
        return await self.update({"selected_camera_ids": list(camera_ids)})

    async def set_rotation_schedule(
        self,
        schedule: Iterable[RotationScheduleItem | Mapping[str, Any]],
    ) -> SwitcherState:
        items = [item.model_dump() if isinstance(item, RotationScheduleItem) else item for item in schedule]
        return await self.update({"rotation_schedule": items})

    async def list_sources(self) -> list[Source]:
        if self._provider is None:
            raise SwitcherError("No source provider configured")
        return list(await self._provider.list_sources())

    async def switch_source(self, source_id: int) -> Source:
        """Switch the output right now, outside the rotation.

        The switch is recorded as operational state only; the next scheduled
        re-evaluation proceeds as planned.
        """
        if self._switcher is None:
            raise SwitcherError("No source switcher configured")
        sources = await self.list_sources()
        source = next((candidate for candidate in sources if candidate.id == source_id), None)
        if source is None:
            raise SwitcherSourceNotFoundError(source_id)
        if not await self._switcher.switch(source_id):
            raise SwitcherError(f"Failed to switch to source {source_id}")
        self._store.set_operational(source_id, self._clock())
        _logger.info("Manually switched to source %d: %s", source_id, source.display_name)
        return source

    async def _check_fixed_source(self, source_id: int | None) -> None:
        """Reject a fixed source the pipeline does not know.

        When the pipeline cannot be reached the id is accepted; the scheduler
        only switches to it once it resolves to an enabled source.
        """
        if source_id is None or self._provider is None:
            return
        try:
            sources = await self._provider.list_sources()
        except Exception:
            _logger.warning("Could not verify fixed source %d; accepting it", source_id, exc_info=True)
            return
        if all(source.id != source_id for source in sources):
            raise SwitcherValidationError(f"Unknown source id {source_id}")
