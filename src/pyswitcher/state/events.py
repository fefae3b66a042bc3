"""Configuration change notification.

The store announces exactly one kind of event: the configuration changed.
Operational writes are never announced.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from pyswitcher.models.state import SwitcherState


class ConfigChanged(BaseModel):
    """Emitted once per configuration write, however many fields it touched."""

    model_config = ConfigDict(frozen=True)

    changed_fields: frozenset[str] = Field(default_factory=frozenset)
    state: SwitcherState
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


ConfigListener = Callable[[ConfigChanged], None]
