"""Pipeline source model."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Source(BaseModel):
    """A video source known to the pipeline service.

    Fields are mapped from the ``GET /sources`` response of the pipeline,
    which uses snake_case keys (``source_type``, ``is_healthy``).
    Availability and health change over time, so a ``Source`` is only a
    snapshot of a single listing.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    id: int
    """Pipeline source id."""
    name: str | None = None
    """Human-readable name."""
    type: str = Field(
        default="unknown",
        validation_alias=AliasChoices("source_type", "type", "sourceType"),
        serialization_alias="source_type",
    )
    """Pipeline source type (``"srt"`` for cameras, ``"video"`` for files)."""
    enabled: bool = False
    healthy: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_healthy", "healthy", "isHealthy"),
        serialization_alias="is_healthy",
    )
    uri: str | None = None
    """Stream URI (camera sources)."""
    file_path: str | None = Field(default=None, validation_alias=AliasChoices("file_path", "filePath"))
    """Media file path (video sources)."""

    @property
    def display_name(self) -> str:
        return self.name or f"Source {self.id}"

    def to_wire(self) -> dict[str, Any]:
        """Dict in the pipeline's own key layout."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
