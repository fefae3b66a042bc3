"""Schedule index rules.

Pure functions shared by the store (when configuration changes) and the
scheduler (when it advances through the rotation).
"""

from __future__ import annotations


def reconcile_schedule_index(
    index: int | None,
    *,
    rotation_enabled: bool,
    old_length: int,
    new_length: int,
) -> int | None:
    """Return the schedule index that is valid for the new configuration.

    - ``None`` while rotation is disabled or the schedule is empty.
    - ``0`` when there was no index yet, the schedule length changed, or the
      old index no longer fits.
    - otherwise the old index is kept, even if a same-length edit replaced
      the camera at that position.
    """
    if not rotation_enabled or new_length == 0:
        return None
    if index is None or old_length != new_length:
        return 0
    if not 0 <= index < new_length:
        return 0
    return index


def next_schedule_index(index: int, length: int) -> int:
    """Advance *index* by one, wrapping around a schedule of *length* items."""
    if length <= 0:
        raise ValueError("schedule is empty")
    return (index + 1) % length
