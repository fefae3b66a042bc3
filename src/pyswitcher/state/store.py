"""Switcher state store.

This is the only component allowed to mutate the switcher state. It exposes
two kinds of writes:

- :meth:`StateStore.set_config` for configuration fields. Every call is
  persisted and announced with exactly one :class:`ConfigChanged` event.
- :meth:`StateStore.set_operational` and :meth:`StateStore.set_schedule_index`
  for operational fields. These are persisted but never announced, so the
  scheduler recording its own switches cannot re-trigger itself.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from pydantic import ValidationError

from pyswitcher.exceptions import SwitcherPersistenceError
from pyswitcher.models._base import to_utc_millis
from pyswitcher.models.state import ConfigUpdate, SwitcherState
from pyswitcher.state.events import ConfigChanged, ConfigListener
from pyswitcher.state.persistence import StateStorage
from pyswitcher.state.policy import reconcile_schedule_index

_logger = logging.getLogger(__name__)


def _validate_snapshot(data: dict[str, object]) -> SwitcherState:
    """Build a state from a persisted snapshot, dropping fields that fail validation.

    Missing keys keep their defaults and unknown keys are ignored, so older
    and newer state files both load.
    """
    try:
        return SwitcherState.model_validate(data)
    except ValidationError as exc:
        invalid = {str(err["loc"][0]) for err in exc.errors() if err["loc"]}
        _logger.warning("Ignoring invalid persisted fields: %s", ", ".join(sorted(invalid)))
        return SwitcherState.model_validate({key: value for key, value in data.items() if key not in invalid})


class StateStore:
    """In-memory switcher state backed by optional durable storage.

    The in-memory record is authoritative: a failed write is logged and the
    mutation still stands. The next successful write captures whatever is
    current.
    """

    def __init__(self, storage: StateStorage | None = None) -> None:
        self._storage = storage
        self._state = SwitcherState()
        self._listeners: list[ConfigListener] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> SwitcherState:
        """Overlay the persisted snapshot, if any, on the defaults."""
        if self._storage is None:
            return self._state
        try:
            data = self._storage.read()
        except SwitcherPersistenceError:
            _logger.warning("Error loading state, using defaults", exc_info=True)
            return self._state
        if data is None:
            _logger.info("No saved state found, using defaults")
            return self._state

        loaded = _validate_snapshot(data)
        schedule_length = len(loaded.rotation_schedule)
        index = reconcile_schedule_index(
            loaded.current_schedule_index,
            rotation_enabled=loaded.rotation_enabled,
            old_length=schedule_length,
            new_length=schedule_length,
        )
        if index != loaded.current_schedule_index:
            loaded = loaded.model_copy(update={"current_schedule_index": index})
        self._state = loaded
        _logger.info("Loaded state from disk")
        return self._state

    # ------------------------------------------------------------------
    # Reads and subscriptions
    # ------------------------------------------------------------------

    def read(self) -> SwitcherState:
        """Return the current snapshot. Snapshots are immutable."""
        return self._state

    def subscribe(self, listener: ConfigListener) -> Callable[[], None]:
        """Register *listener* for configuration changes; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_config(self, update: ConfigUpdate) -> SwitcherState:
        """Apply the fields set on *update*, persist, and announce the change once."""
        changes = update.changes()
        current = self._state
        schedule = changes.get("rotation_schedule", current.rotation_schedule)
        index = reconcile_schedule_index(
            current.current_schedule_index,
            rotation_enabled=changes.get("rotation_enabled", current.rotation_enabled),
            old_length=len(current.rotation_schedule),
            new_length=len(schedule),
        )
        self._state = current.model_copy(update={**changes, "current_schedule_index": index})
        _logger.debug("Configuration updated fields=%s", sorted(changes))
        self._persist()
        self._emit(ConfigChanged(changed_fields=frozenset(changes), state=self._state))
        return self._state

    def set_operational(self, current_source_id: int, last_switch_time: datetime) -> SwitcherState:
        """Record a successful switch. Never announced."""
        self._state = self._state.model_copy(
            update={
                "current_source_id": current_source_id,
                "last_switch_time": to_utc_millis(last_switch_time),
            }
        )
        self._persist()
        return self._state

    def set_schedule_index(self, index: int | None) -> SwitcherState:
        """Move the rotation position. Never announced.

        Raises :class:`ValueError` when *index* violates the index invariant
        for the current configuration.
        """
        current = self._state
        if index is not None:
            if not current.rotation_enabled:
                raise ValueError("schedule index must be None while rotation is disabled")
            if not 0 <= index < len(current.rotation_schedule):
                raise ValueError(f"schedule index {index} out of range for {len(current.rotation_schedule)} items")
        if index == current.current_schedule_index:
            return current
        self._state = current.model_copy(update={"current_schedule_index": index})
        self._persist()
        return self._state

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _persist(self) -> None:
        if self._storage is None:
            return
        try:
            self._storage.write(self._state.to_json_dict())
        except SwitcherPersistenceError:
            _logger.warning("Error saving state", exc_info=True)

    def _emit(self, event: ConfigChanged) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                _logger.warning("Configuration listener failed", exc_info=True)
