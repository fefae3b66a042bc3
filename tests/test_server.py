"""Control API tests against an in-process aiohttp test server."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from pyswitcher.control import ControlService
from pyswitcher.exceptions import SwitcherTransportError
from pyswitcher.models.source import Source
from pyswitcher.server.app import create_app
from pyswitcher.state.store import StateStore

TOKEN = "s3cret"
AUTH = {"Authorization": f"Bearer {TOKEN}"}


class _FakePipeline:
    def __init__(self, sources: Sequence[Source]) -> None:
        self.sources = list(sources)
        self.list_error: Exception | None = None
        self.switched: list[int] = []

    async def list_sources(self) -> list[Source]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.sources)

    async def switch(self, source_id: int) -> bool:
        self.switched.append(source_id)
        return True


@pytest.fixture
def pipeline() -> _FakePipeline:
    return _FakePipeline(
        [
            Source(id=1, name="North", type="srt", enabled=True, healthy=True, uri="srt://north:9000"),
            Source(id=2, name="Loop", type="video", enabled=False, file_path="/media/loop.mp4"),
        ]
    )


@pytest.fixture
def store() -> StateStore:
    return StateStore()


@pytest_asyncio.fixture
async def client(store: StateStore, pipeline: _FakePipeline) -> AsyncIterator[TestClient]:
    app = create_app(ControlService(store, pipeline, pipeline), api_token=TOKEN)
    async with TestClient(TestServer(app)) as test_client:
        yield test_client


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_health_needs_no_token(self, client: TestClient) -> None:
        resp = await client.get("/api/health")
        assert resp.status == 200
        assert await resp.json() == {"status": "ok"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong"}, {"Authorization": TOKEN}])
    async def test_missing_or_wrong_token_is_rejected(self, client: TestClient, headers: dict[str, str]) -> None:
        resp = await client.get("/api/state", headers=headers)
        assert resp.status == 401
        assert await resp.json() == {"error": "Unauthorized"}

    @pytest.mark.asyncio
    async def test_unknown_route_returns_json_404(self, client: TestClient) -> None:
        resp = await client.get("/api/nope", headers=AUTH)
        assert resp.status == 404
        assert await resp.json() == {"error": "Not found"}


class TestStateRoutes:
    @pytest.mark.asyncio
    async def test_get_default_state(self, client: TestClient) -> None:
        resp = await client.get("/api/state", headers=AUTH)
        assert resp.status == 200
        assert await resp.json() == {
            "rotationEnabled": False,
            "fixedSourceId": None,
            "selectedCameraIds": [],
            "rotationSchedule": [],
            "currentSourceId": None,
            "lastSwitchTime": None,
            "currentScheduleIndex": None,
        }

    @pytest.mark.asyncio
    async def test_put_state_applies_batch(self, client: TestClient, store: StateStore) -> None:
        resp = await client.put(
            "/api/state",
            headers=AUTH,
            json={
                "rotationEnabled": True,
                "rotationSchedule": [{"cameraId": 1, "durationSeconds": 60}],
                "currentSourceId": 42,
            },
        )
        assert resp.status == 200
        body = await resp.json()
        assert body["rotationEnabled"] is True
        assert body["currentScheduleIndex"] == 0
        assert body["currentSourceId"] is None
        assert store.read().rotation_enabled is True

    @pytest.mark.asyncio
    async def test_put_state_rejects_invalid_values(self, client: TestClient, store: StateStore) -> None:
        resp = await client.put(
            "/api/state",
            headers=AUTH,
            json={"rotationEnabled": True, "rotationSchedule": [{"cameraId": 1, "durationSeconds": -1}]},
        )
        assert resp.status == 400
        body = await resp.json()
        assert body["error"].startswith("Invalid configuration")
        assert body["details"]
        assert store.read().rotation_enabled is False

    @pytest.mark.asyncio
    async def test_put_state_rejects_malformed_json(self, client: TestClient) -> None:
        resp = await client.put("/api/state", headers=AUTH, data="{not json")
        assert resp.status == 400
        assert (await resp.json())["error"] == "Invalid request body"

    @pytest.mark.asyncio
    async def test_put_state_rejects_non_object(self, client: TestClient) -> None:
        resp = await client.put("/api/state", headers=AUTH, json=[1, 2])
        assert resp.status == 400

    @pytest.mark.asyncio
    async def test_put_unknown_fixed_source(self, client: TestClient) -> None:
        resp = await client.put("/api/state", headers=AUTH, json={"fixedSourceId": 99})
        assert resp.status == 400
        assert (await resp.json())["error"] == "Unknown source id 99"


class TestSourceRoutes:
    @pytest.mark.asyncio
    async def test_list_sources_uses_pipeline_layout(self, client: TestClient) -> None:
        resp = await client.get("/api/sources", headers=AUTH)
        assert resp.status == 200
        assert await resp.json() == {
            "sources": [
                {
                    "id": 1,
                    "name": "North",
                    "source_type": "srt",
                    "enabled": True,
                    "is_healthy": True,
                    "uri": "srt://north:9000",
                },
                {
                    "id": 2,
                    "name": "Loop",
                    "source_type": "video",
                    "enabled": False,
                    "is_healthy": False,
                    "file_path": "/media/loop.mp4",
                },
            ]
        }

    @pytest.mark.asyncio
    async def test_list_sources_pipeline_down(self, client: TestClient, pipeline: _FakePipeline) -> None:
        pipeline.list_error = SwitcherTransportError("connection refused")
        resp = await client.get("/api/sources", headers=AUTH)
        assert resp.status == 500
        assert await resp.json() == {"error": "Failed to fetch sources"}

    @pytest.mark.asyncio
    async def test_manual_switch(self, client: TestClient, pipeline: _FakePipeline, store: StateStore) -> None:
        resp = await client.put("/api/source/active", headers=AUTH, json={"id": 1})
        assert resp.status == 200
        assert await resp.json() == {"success": True, "sourceId": 1}
        assert pipeline.switched == [1]
        assert store.read().current_source_id == 1

    @pytest.mark.asyncio
    async def test_manual_switch_unknown_source(self, client: TestClient) -> None:
        resp = await client.put("/api/source/active", headers=AUTH, json={"id": 7})
        assert resp.status == 404
        assert await resp.json() == {"error": "Source 7 not found"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"id": "1"}, {"id": True}])
    async def test_manual_switch_requires_integer_id(self, client: TestClient, body: dict[str, object]) -> None:
        resp = await client.put("/api/source/active", headers=AUTH, json=body)
        assert resp.status == 400


class TestRotationRoutes:
    @pytest.mark.asyncio
    async def test_put_schedule(self, client: TestClient, store: StateStore) -> None:
        schedule = [{"cameraId": 1, "durationSeconds": 60}, {"cameraId": 2, "durationSeconds": 120}]
        resp = await client.put("/api/rotation/schedule", headers=AUTH, json={"schedule": schedule})
        assert resp.status == 200
        assert await resp.json() == {"success": True, "schedule": schedule}
        assert len(store.read().rotation_schedule) == 2

    @pytest.mark.asyncio
    async def test_put_schedule_requires_schedule_key(self, client: TestClient) -> None:
        resp = await client.put("/api/rotation/schedule", headers=AUTH, json={"items": []})
        assert resp.status == 400
        assert (await resp.json())["error"] == "Missing 'schedule' in request body"

    @pytest.mark.asyncio
    async def test_put_cameras(self, client: TestClient, store: StateStore) -> None:
        resp = await client.put("/api/rotation/cameras", headers=AUTH, json={"cameraIds": [3, 1, 3]})
        assert resp.status == 200
        assert await resp.json() == {"success": True, "cameraIds": [1, 3]}
        assert store.read().selected_camera_ids == frozenset({1, 3})
