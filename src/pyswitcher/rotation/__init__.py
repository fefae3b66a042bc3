"""Rotation layer: the scheduler state machine and its source selection rules."""

from pyswitcher.rotation.scheduler import RotationMode, RotationScheduler, SourceProvider, SourceSwitcher

__all__ = ["RotationMode", "RotationScheduler", "SourceProvider", "SourceSwitcher"]
