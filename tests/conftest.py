"""Shared fixtures: a fake pipeline service (sources, active source, health, camera API)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

PIPELINE_SOURCES: list[dict[str, Any]] = [
    {"id": 1, "name": "North", "source_type": "srt", "enabled": True, "is_healthy": True, "uri": "srt://n:9000"},
    {"id": 2, "name": "Loop", "source_type": "video", "enabled": True, "is_healthy": True, "file_path": "/m.mp4"},
    {"name": "no id"},
]


@dataclass
class FakePipelineState:
    active_status: int = 200
    camera_status: int = 200
    healthy: bool = True
    activated: list[Any] = field(default_factory=list)
    camera_calls: list[tuple[Any, str | None]] = field(default_factory=list)


def fake_pipeline_app(state: FakePipelineState) -> web.Application:
    async def sources(_request: web.Request) -> web.Response:
        return web.json_response({"sources": PIPELINE_SOURCES})

    async def active(request: web.Request) -> web.Response:
        state.activated.append((await request.json())["id"])
        return web.Response(status=state.active_status, text="ok")

    async def health(_request: web.Request) -> web.Response:
        return web.Response(status=200 if state.healthy else 503)

    async def camera(request: web.Request) -> web.Response:
        state.camera_calls.append((await request.json(), request.headers.get("Authorization")))
        return web.Response(status=state.camera_status)

    app = web.Application()
    app.router.add_get("/sources", sources)
    app.router.add_put("/source/active", active)
    app.router.add_get("/health", health)
    app.router.add_post("/api/camera", camera)
    return app


@pytest.fixture
def pipeline_state() -> FakePipelineState:
    return FakePipelineState()


@pytest_asyncio.fixture
async def pipeline_server(pipeline_state: FakePipelineState) -> AsyncIterator[TestServer]:
    async with TestServer(fake_pipeline_app(pipeline_state)) as server:
        yield server
