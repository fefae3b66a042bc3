"""Typed models for pyswitcher."""

from pyswitcher.models._base import SwitcherBaseModel, UtcMillisTimestamp
from pyswitcher.models.source import Source
from pyswitcher.models.state import (
    CONFIG_FIELDS,
    OPERATIONAL_FIELDS,
    ConfigUpdate,
    RotationScheduleItem,
    SwitcherState,
)

__all__ = [
    "CONFIG_FIELDS",
    "OPERATIONAL_FIELDS",
    "ConfigUpdate",
    "RotationScheduleItem",
    "Source",
    "SwitcherBaseModel",
    "SwitcherState",
    "UtcMillisTimestamp",
]
