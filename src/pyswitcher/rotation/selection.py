"""Source selection rules for rotation and fixed-source mode."""

from __future__ import annotations

from collections.abc import Collection, Iterable

from pyswitcher.models.source import Source


def eligible_rotation_sources(
    sources: Iterable[Source],
    *,
    source_type: str,
    selected_ids: Collection[int],
) -> list[Source]:
    """Sources that may appear in rotation.

    A source must be enabled and of the rotation type. When *selected_ids*
    is non-empty it must also be one of them.
    """
    eligible = [source for source in sources if source.enabled and source.type == source_type]
    if selected_ids:
        eligible = [source for source in eligible if source.id in selected_ids]
    return eligible


def resolve_rotation_source(
    sources: Iterable[Source],
    camera_id: int,
    *,
    source_type: str,
    selected_ids: Collection[int],
) -> Source | None:
    for source in eligible_rotation_sources(sources, source_type=source_type, selected_ids=selected_ids):
        if source.id == camera_id:
            return source
    return None


def resolve_fixed_source(sources: Iterable[Source], fixed_source_id: int) -> Source | None:
    """The fixed source, if it exists and is enabled. Any source type qualifies."""
    for source in sources:
        if source.id == fixed_source_id:
            return source if source.enabled else None
    return None
