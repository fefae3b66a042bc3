"""Auxiliary camera API endpoint: /api/camera.

The camera API points physical hardware in the direction of the source
that just went live.
"""

from __future__ import annotations

from pyswitcher._transport import Transport

CAMERA_ENDPOINT = "/api/camera"


async def post_direction(transport: Transport, direction: str) -> None:
    await transport.request_json("POST", CAMERA_ENDPOINT, {"direction": direction}, expect_json=False)
