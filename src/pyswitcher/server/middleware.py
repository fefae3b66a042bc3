"""Control API middleware: bearer authentication, error mapping, request logging."""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Awaitable, Callable

from aiohttp import web

from pyswitcher._redact import redact_for_log
from pyswitcher.exceptions import (
    SwitcherError,
    SwitcherSourceNotFoundError,
    SwitcherValidationError,
)

_logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

#: Paths reachable without a token.
PUBLIC_PATHS: frozenset[str] = frozenset({"/api/health"})


def json_error(message: str, status: int, **extra: object) -> web.Response:
    return web.json_response({"error": message, **extra}, status=status)


def bearer_auth_middleware(api_token: str) -> Callable[[web.Request, Handler], Awaitable[web.StreamResponse]]:
    """Require ``Authorization: Bearer <api_token>`` outside :data:`PUBLIC_PATHS`."""
    expected = api_token.encode("utf-8")

    @web.middleware
    async def _middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        if request.path in PUBLIC_PATHS:
            return await handler(request)
        header = request.headers.get("Authorization", "")
        token = header.removeprefix("Bearer ").strip()
        if not token or not secrets.compare_digest(token.encode("utf-8"), expected):
            _logger.debug("Rejected unauthenticated %s %s", request.method, request.path)
            return json_error("Unauthorized", 401)
        return await handler(request)

    return _middleware


@web.middleware
async def error_handling_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Turn exceptions into ``{"error": ...}`` JSON responses."""
    try:
        return await handler(request)
    except web.HTTPException as exc:
        if exc.status < 400:
            raise
        message = "Not found" if exc.status == 404 else exc.reason
        return json_error(message, exc.status)
    except SwitcherValidationError as exc:
        return json_error(str(exc), 400, details=exc.errors)
    except SwitcherSourceNotFoundError as exc:
        return json_error(str(exc), 404)
    except SwitcherError as exc:
        _logger.warning("%s %s failed: %s", request.method, request.path, exc)
        return json_error(str(exc), 500)
    except Exception:
        _logger.exception("API error on %s %s", request.method, request.path)
        return json_error("Internal server error", 500)


@web.middleware
async def request_logging_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    started = time.perf_counter()
    response = await handler(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    _logger.debug(
        "%s %s -> %d (%.1f ms) headers=%s",
        request.method,
        request.path,
        response.status,
        elapsed_ms,
        redact_for_log(dict(request.headers)),
    )
    return response
