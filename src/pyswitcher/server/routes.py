"""Control API routes."""

from __future__ import annotations

import json
import logging
from typing import Any

from aiohttp import web

from pyswitcher.control import ControlService
from pyswitcher.exceptions import SwitcherTransportError, SwitcherValidationError
from pyswitcher.server.middleware import json_error

_logger = logging.getLogger(__name__)

CONTROL_KEY = web.AppKey("control", ControlService)


async def _read_json_object(request: web.Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SwitcherValidationError("Invalid request body") from exc
    if not isinstance(body, dict):
        raise SwitcherValidationError("Invalid request body")
    return body


def _require_key(body: dict[str, Any], key: str) -> Any:
    if key not in body:
        raise SwitcherValidationError(f"Missing '{key}' in request body")
    return body[key]


async def handle_health(_request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


async def handle_get_state(request: web.Request) -> web.Response:
    control = request.app[CONTROL_KEY]
    return web.json_response(control.get_state().to_json_dict())


async def handle_put_state(request: web.Request) -> web.Response:
    control = request.app[CONTROL_KEY]
    body = await _read_json_object(request)
    state = await control.update(body)
    return web.json_response(state.to_json_dict())


async def handle_get_sources(request: web.Request) -> web.Response:
    control = request.app[CONTROL_KEY]
    try:
        sources = await control.list_sources()
    except SwitcherTransportError:
        _logger.warning("Failed to fetch sources", exc_info=True)
        return json_error("Failed to fetch sources", 500)
    return web.json_response({"sources": [source.to_wire() for source in sources]})


async def handle_put_active_source(request: web.Request) -> web.Response:
    control = request.app[CONTROL_KEY]
    body = await _read_json_object(request)
    source_id = _require_key(body, "id")
    if not isinstance(source_id, int) or isinstance(source_id, bool):
        raise SwitcherValidationError("'id' must be an integer")
    await control.switch_source(source_id)
    return web.json_response({"success": True, "sourceId": source_id})


async def handle_put_schedule(request: web.Request) -> web.Response:
    control = request.app[CONTROL_KEY]
    body = await _read_json_object(request)
    state = await control.update({"rotationSchedule": _require_key(body, "schedule")})
    schedule = state.to_json_dict()["rotationSchedule"]
    return web.json_response({"success": True, "schedule": schedule})


async def handle_put_cameras(request: web.Request) -> web.Response:
    control = request.app[CONTROL_KEY]
    body = await _read_json_object(request)
    state = await control.update({"selectedCameraIds": _require_key(body, "cameraIds")})
    return web.json_response({"success": True, "cameraIds": sorted(state.selected_camera_ids)})


def setup_routes(app: web.Application) -> None:
    app.router.add_get("/api/health", handle_health)
    app.router.add_get("/api/state", handle_get_state)
    app.router.add_put("/api/state", handle_put_state)
    app.router.add_get("/api/sources", handle_get_sources)
    app.router.add_put("/api/source/active", handle_put_active_source)
    app.router.add_put("/api/rotation/schedule", handle_put_schedule)
    app.router.add_put("/api/rotation/cameras", handle_put_cameras)
