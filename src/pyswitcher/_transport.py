"""HTTP transport for the pipeline and camera services."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyswitcher._constants import DEFAULT_REQUEST_TIMEOUT, USER_AGENT
from pyswitcher._redact import redact_for_log
from pyswitcher.exceptions import SwitcherTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        endpoint: str,
        payload: Mapping[str, Any] | None = None,
        *,
        expect_json: bool = True,
    ) -> Any:
        ...


class HttpTransport:
    """JSON-over-HTTP transport bound to one service base URL.

    Every request carries a total timeout. Any network failure, timeout or
    non-2xx status is raised as :class:`SwitcherTransportError`.
    """

    def __init__(
        self,
        base_url: str,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        bearer_token: str | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._bearer_token = bearer_token

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self, with_body: bool) -> dict[str, str]:
        headers = {"accept": "application/json", "user-agent": USER_AGENT}
        if with_body:
            headers["content-type"] = "application/json"
        if self._bearer_token:
            headers["authorization"] = f"Bearer {self._bearer_token}"
        return headers

    async def request_json(
        self,
        method: str,
        endpoint: str,
        payload: Mapping[str, Any] | None = None,
        *,
        expect_json: bool = True,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        With ``expect_json=False`` the body is not parsed and ``None`` is
        returned on success.
        """
        url = f"{self._base_url}{endpoint}"
        headers = self._headers(payload is not None)
        body = json.dumps(dict(payload)) if payload is not None else None

        _logger.debug("%s %s headers=%s payload=%s", method, url, redact_for_log(headers), redact_for_log(payload))

        try:
            async with self._http.request(method, url, data=body, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise SwitcherTransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except SwitcherTransportError:
            raise
        except asyncio.TimeoutError as exc:
            raise SwitcherTransportError(f"Request to {endpoint} timed out", endpoint=endpoint) from exc
        except aiohttp.ClientError as exc:
            raise SwitcherTransportError(f"Request to {endpoint} failed: {exc}", endpoint=endpoint) from exc

        if not expect_json:
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise SwitcherTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=resp.status,
                endpoint=endpoint,
            ) from exc
