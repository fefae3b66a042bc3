"""Base model and timestamp helpers shared by the state models.

Every persisted model inherits from :class:`SwitcherBaseModel` which
provides ``alias_generator=to_camel`` so the snake_case fields map to the
camelCase keys of the state file and the control API, while still
accepting the field names themselves.

Timestamps are UTC with millisecond precision, serialized the way the
state file stores them: ``2026-01-01T12:00:00.000Z``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel


def to_utc_millis(value: datetime) -> datetime:
    """Normalise *value* to an aware UTC datetime truncated to milliseconds.

    Naive datetimes are taken to already be in UTC.
    """
    value = value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def format_utc_millis(value: datetime) -> str:
    return to_utc_millis(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


UtcMillisTimestamp = Annotated[
    datetime,
    AfterValidator(to_utc_millis),
    PlainSerializer(format_utc_millis, return_type=str, when_used="json"),
]
"""Annotated type for UTC timestamps stored with millisecond precision."""


class SwitcherBaseModel(BaseModel):
    """Base for persisted and control-plane models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """JSON-ready dict using the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)
