"""PipelineClient and CameraNotifier against a fake pipeline served by aiohttp."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from aiohttp.test_utils import TestServer

from pyswitcher.client import CameraNotifier, PipelineClient
from pyswitcher.config import SwitcherConfig
from pyswitcher.exceptions import SwitcherError, SwitcherTransportError

if TYPE_CHECKING:
    from conftest import FakePipelineState


def _config(server: TestServer, **kwargs: Any) -> SwitcherConfig:
    url = str(server.make_url("/"))
    return SwitcherConfig(base_url=url, api_token="tok", camera_api_host=url, **kwargs)


@pytest.mark.asyncio
async def test_list_sources_skips_malformed_entries(pipeline_server: TestServer) -> None:
    async with PipelineClient(_config(pipeline_server)) as client:
        sources = await client.list_sources()

    assert [source.id for source in sources] == [1, 2]
    assert sources[0].type == "srt"
    assert sources[1].file_path == "/m.mp4"


@pytest.mark.asyncio
async def test_health_check(pipeline_server: TestServer, pipeline_state: FakePipelineState) -> None:
    async with PipelineClient(_config(pipeline_server)) as client:
        assert await client.check_health() is True
        pipeline_state.healthy = False
        assert await client.check_health() is False


@pytest.mark.asyncio
async def test_switch_notifies_camera_with_mapped_direction(
    pipeline_server: TestServer, pipeline_state: FakePipelineState
) -> None:
    config = _config(pipeline_server, camera_api_token="cam", source_direction_map={1: "N"})
    async with PipelineClient(config) as client:
        assert await client.switch(1) is True
        assert await client.switch(2) is True

    assert pipeline_state.activated == [1, 2]
    assert pipeline_state.camera_calls == [({"direction": "N"}, "Bearer cam")]


@pytest.mark.asyncio
async def test_no_camera_notification_without_token(pipeline_server: TestServer, pipeline_state: FakePipelineState) -> None:
    async with PipelineClient(_config(pipeline_server, source_direction_map={1: "N"})) as client:
        assert await client.switch(1) is True

    assert pipeline_state.camera_calls == []


@pytest.mark.asyncio
async def test_switch_rejected_by_pipeline(pipeline_server: TestServer, pipeline_state: FakePipelineState) -> None:
    pipeline_state.active_status = 500
    config = _config(pipeline_server, camera_api_token="cam", source_direction_map={1: "N"})
    async with PipelineClient(config) as client:
        assert await client.switch(1) is False

    assert pipeline_state.camera_calls == []


@pytest.mark.asyncio
async def test_camera_failure_does_not_fail_switch(pipeline_server: TestServer, pipeline_state: FakePipelineState) -> None:
    pipeline_state.camera_status = 502
    config = _config(pipeline_server, camera_api_token="cam", source_direction_map={1: "W"})
    async with PipelineClient(config) as client:
        assert await client.switch(1) is True

    assert len(pipeline_state.camera_calls) == 1


@pytest.mark.asyncio
async def test_unreachable_pipeline() -> None:
    config = SwitcherConfig(base_url="http://127.0.0.1:9", api_token="tok", request_timeout=1.0)
    async with PipelineClient(config) as client:
        with pytest.raises(SwitcherTransportError):
            await client.list_sources()
        assert await client.switch(1) is False
        assert await client.check_health() is False


@pytest.mark.asyncio
async def test_client_requires_context_manager() -> None:
    client = PipelineClient(SwitcherConfig(base_url="http://pipeline", api_token="tok"))
    with pytest.raises(SwitcherError, match="not initialized"):
        await client.list_sources()


class _RecordingTransport:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.requests: list[tuple[str, str, Any]] = []

    async def request_json(self, method: str, endpoint: str, payload: Any = None, *, expect_json: bool = True) -> Any:
        self.requests.append((method, endpoint, payload))
        if self.error is not None:
            raise self.error
        return None


@pytest.mark.asyncio
async def test_notifier_ignores_unmapped_sources() -> None:
    transport = _RecordingTransport()
    notifier = CameraNotifier(transport, {3: "E"})

    assert await notifier.notify(1) is False
    assert await notifier.notify(3) is True
    assert transport.requests == [("POST", "/api/camera", {"direction": "E"})]


@pytest.mark.asyncio
async def test_notifier_swallows_transport_errors() -> None:
    notifier = CameraNotifier(_RecordingTransport(SwitcherTransportError("HTTP 500")), {3: "E"})
    assert await notifier.notify(3) is False
