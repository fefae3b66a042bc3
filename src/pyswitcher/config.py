"""Service configuration for pyswitcher."""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pyswitcher._constants import (
    DEFAULT_API_HOST,
    DEFAULT_API_PORT,
    DEFAULT_CAMERA_API_HOST,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_ROTATION_SOURCE_TYPE,
    DEFAULT_STATE_FILE,
    VALID_DIRECTIONS,
)
from pyswitcher.exceptions import SwitcherConfigError

_logger = logging.getLogger(__name__)


def parse_direction_map(value: str | None) -> dict[int, str]:
    """Parse a ``SOURCE_DIRECTION_MAP`` string such as ``"1:N,2:E,3:W"``.

    Entries with a non-numeric source id or a direction outside
    ``N``/``E``/``W``/``S`` are skipped.
    """
    mapping: dict[int, str] = {}
    if not value:
        return mapping
    for pair in value.split(","):
        source_text, _, direction_text = pair.partition(":")
        direction = direction_text.strip().upper()
        try:
            source_id = int(source_text.strip())
        except ValueError:
            _logger.debug("Ignoring direction map entry %r", pair)
            continue
        if direction not in VALID_DIRECTIONS:
            _logger.debug("Ignoring direction map entry %r", pair)
            continue
        mapping[source_id] = direction
    return mapping


def _env_number(env: Mapping[str, str], key: str, cast: type[int] | type[float]) -> int | float | None:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return None
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise SwitcherConfigError(f"{key} must be a number, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class SwitcherConfig:
    """Service configuration.

    Parameters
    ----------
    base_url : str
        Base URL of the video pipeline service (sources, active source, health).
    api_token : str
        Bearer token required by the control API.
    api_host : str
        Interface the control API binds to.
    api_port : int
        Port the control API listens on.
    camera_api_host : str
        Base URL of the auxiliary camera API notified after each switch.
    camera_api_token : str or None
        Bearer token for the camera API. Notifications are disabled when unset.
    source_direction_map : dict[int, str]
        Source id to compass direction (``N``/``E``/``W``/``S``) sent to the
        camera API.
    state_file : Path
        JSON file holding the persisted switcher state.
    rotation_source_type : str
        Pipeline source type eligible for rotation.
    request_timeout : float
        Timeout in seconds for every outbound HTTP call.
    """

    base_url: str
    api_token: str
    api_host: str = DEFAULT_API_HOST
    api_port: int = DEFAULT_API_PORT
    camera_api_host: str = DEFAULT_CAMERA_API_HOST
    camera_api_token: str | None = None
    source_direction_map: dict[int, str] = dataclasses.field(default_factory=dict)
    state_file: Path = Path(DEFAULT_STATE_FILE)
    rotation_source_type: str = DEFAULT_ROTATION_SOURCE_TYPE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self) -> None:
        if not self.base_url or not self.base_url.strip():
            raise SwitcherConfigError("base_url must be non-empty")
        if not self.api_token or not self.api_token.strip():
            raise SwitcherConfigError("api_token must be non-empty")
        if not 0 < self.api_port < 65536:
            raise SwitcherConfigError(f"api_port out of range: {self.api_port}")
        if self.request_timeout <= 0:
            raise SwitcherConfigError("request_timeout must be positive")
        object.__setattr__(self, "base_url", self.base_url.strip().rstrip("/"))
        object.__setattr__(self, "camera_api_host", self.camera_api_host.strip().rstrip("/"))
        object.__setattr__(self, "state_file", Path(self.state_file))

    @property
    def camera_notifications_enabled(self) -> bool:
        return bool(self.camera_api_token)

    @classmethod
    def from_env(cls, **overrides: Any) -> SwitcherConfig:
        """Create configuration from environment variables.

        Reads ``BASE_URL`` and ``API_TOKEN`` (both required) plus the
        optional variables listed below. Explicit keyword arguments
        override environment values.

        ``API_HOST``, ``API_PORT``, ``CAMERA_API_HOST``, ``CAMERA_API_TOKEN``,
        ``SOURCE_DIRECTION_MAP``, ``STATE_FILE``, ``ROTATION_SOURCE_TYPE``,
        ``REQUEST_TIMEOUT``.

        Raises
        ------
        SwitcherConfigError
            When a required value is missing or a value cannot be parsed.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "BASE_URL": "base_url",
            "API_TOKEN": "api_token",
            "API_HOST": "api_host",
            "CAMERA_API_HOST": "camera_api_host",
            "CAMERA_API_TOKEN": "camera_api_token",
            "STATE_FILE": "state_file",
            "ROTATION_SOURCE_TYPE": "rotation_source_type",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        port = _env_number(env, "API_PORT", int)
        if port is not None:
            config_kwargs["api_port"] = port

        timeout = _env_number(env, "REQUEST_TIMEOUT", float)
        if timeout is not None:
            config_kwargs["request_timeout"] = timeout

        if "source_direction_map" not in overrides:
            config_kwargs["source_direction_map"] = parse_direction_map(env.get("SOURCE_DIRECTION_MAP"))

        config_kwargs.update({key: value for key, value in overrides.items() if value is not None})

        for required, env_key in (("base_url", "BASE_URL"), ("api_token", "API_TOKEN")):
            if not config_kwargs.get(required):
                raise SwitcherConfigError(f"{env_key} environment variable is not set")

        return cls(**config_kwargs)
