"""State/store layer.

This package owns the single :class:`~pyswitcher.models.SwitcherState`
record: how it is mutated, persisted, and how configuration changes are
announced to the rotation scheduler.
"""

from pyswitcher.state.events import ConfigChanged, ConfigListener
from pyswitcher.state.persistence import StateFile, StateStorage
from pyswitcher.state.store import StateStore

__all__ = ["ConfigChanged", "ConfigListener", "StateFile", "StateStorage", "StateStore"]
