"""Durable storage for the switcher state record."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from pyswitcher.exceptions import SwitcherPersistenceError

_logger = logging.getLogger(__name__)


class StateStorage(Protocol):
    """Structural storage interface used by :class:`~pyswitcher.state.StateStore`.

    ``read`` returns ``None`` when nothing has been stored yet. Both methods
    raise :class:`SwitcherPersistenceError` on failure.
    """

    def read(self) -> dict[str, Any] | None:
        ...

    def write(self, data: Mapping[str, Any]) -> None:
        ...


class StateFile:
    """A JSON file rewritten atomically on every write.

    The document is written to a temporary file in the same directory and
    moved over the target with :func:`os.replace`, so readers only ever see
    a complete snapshot.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> dict[str, Any] | None:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise SwitcherPersistenceError(f"Cannot read {self._path}: {exc}", path=str(self._path)) from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SwitcherPersistenceError(f"{self._path} is not valid JSON: {exc}", path=str(self._path)) from exc

        if not isinstance(data, dict):
            raise SwitcherPersistenceError(f"{self._path} does not hold a JSON object", path=str(self._path))
        return data

    def write(self, data: Mapping[str, Any]) -> None:
        payload = json.dumps(dict(data), indent=2)
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", suffix=".tmp", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, self._path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise SwitcherPersistenceError(f"Cannot write {self._path}: {exc}", path=str(self._path)) from exc
        _logger.debug("State written to %s", self._path)
