"""Custom exception hierarchy for pyswitcher."""

from __future__ import annotations

from typing import Any


class SwitcherError(Exception):
    """Base exception for all pyswitcher errors."""


class SwitcherConfigError(SwitcherError):
    """Invalid or missing configuration."""


class SwitcherValidationError(SwitcherError):
    """A configuration change was rejected before reaching the state store.

    ``errors`` carries the structured validation details (as produced by
    pydantic) when available.
    """

    def __init__(self, message: str, *, errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors or []
        super().__init__(message)


class SwitcherSourceNotFoundError(SwitcherError):
    """The requested source id is not known to the pipeline."""

    def __init__(self, source_id: int) -> None:
        self.source_id = source_id
        super().__init__(f"Source {source_id} not found")


class SwitcherTransportError(SwitcherError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class SwitcherPersistenceError(SwitcherError):
    """The state file could not be read or written."""

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)
