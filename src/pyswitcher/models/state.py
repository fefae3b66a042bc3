"""Switcher state models.

:class:`SwitcherState` is the single persisted record of the service. Its
fields fall into two classes:

* configuration fields, written only through the control surface; a write
  re-triggers the rotation scheduler.
* operational fields, written only by the scheduler after it acted; a write
  never re-triggers anything.

:class:`ConfigUpdate` is a partial update of the configuration fields. Only
the fields explicitly set on it are applied.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field, StrictBool, StrictInt, field_serializer, model_validator

from pyswitcher.models._base import SwitcherBaseModel, UtcMillisTimestamp

CONFIG_FIELDS: frozenset[str] = frozenset(
    {"rotation_enabled", "fixed_source_id", "selected_camera_ids", "rotation_schedule"}
)
OPERATIONAL_FIELDS: frozenset[str] = frozenset({"current_source_id", "last_switch_time", "current_schedule_index"})

_NON_NULLABLE_CONFIG_FIELDS = ("rotation_enabled", "selected_camera_ids", "rotation_schedule")


class RotationScheduleItem(SwitcherBaseModel):
    """One step of the rotation: show ``camera_id`` for ``duration_seconds``."""

    camera_id: StrictInt
    duration_seconds: Annotated[StrictInt, Field(gt=0)]


class SwitcherState(SwitcherBaseModel):
    """Persisted switcher state."""

    rotation_enabled: bool = False
    fixed_source_id: int | None = None
    """Source shown while rotation is disabled."""
    selected_camera_ids: frozenset[int] = frozenset()
    """Cameras allowed in rotation; empty means every eligible camera."""
    rotation_schedule: tuple[RotationScheduleItem, ...] = ()
    current_source_id: int | None = None
    """Last source actually switched to."""
    last_switch_time: UtcMillisTimestamp | None = None
    current_schedule_index: int | None = None
    """Position in ``rotation_schedule`` the scheduler acts on next."""

    @field_serializer("selected_camera_ids")
    def _serialize_camera_ids(self, value: frozenset[int]) -> list[int]:
        return sorted(value)


class ConfigUpdate(SwitcherBaseModel):
    """Partial update of the configuration fields of :class:`SwitcherState`.

    Unknown keys, including operational fields, are ignored so a client can
    send back a full state document.
    """

    rotation_enabled: StrictBool | None = None
    fixed_source_id: StrictInt | None = None
    selected_camera_ids: frozenset[StrictInt] | None = None
    rotation_schedule: tuple[RotationScheduleItem, ...] | None = None

    @model_validator(mode="after")
    def _reject_explicit_nulls(self) -> ConfigUpdate:
        for name in _NON_NULLABLE_CONFIG_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} must not be null")
        return self

    def changes(self) -> dict[str, Any]:
        """The explicitly provided fields and their values."""
        return {name: getattr(self, name) for name in self.model_fields_set}
