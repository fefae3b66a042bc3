"""Pipeline service endpoints: /sources, /source/active, /health."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from pyswitcher._transport import Transport
from pyswitcher.exceptions import SwitcherTransportError
from pyswitcher.models.source import Source

_logger = logging.getLogger(__name__)

SOURCES_ENDPOINT = "/sources"
ACTIVE_SOURCE_ENDPOINT = "/source/active"
HEALTH_ENDPOINT = "/health"


def parse_sources_response(body: object) -> list[Source]:
    """Parse a ``{"sources": [...]}`` listing, skipping malformed entries."""
    if not isinstance(body, dict):
        raise SwitcherTransportError("Sources response is not an object", endpoint=SOURCES_ENDPOINT)
    raw = body.get("sources") or []
    if not isinstance(raw, list):
        raise SwitcherTransportError("Sources response 'sources' is not a list", endpoint=SOURCES_ENDPOINT)

    sources: list[Source] = []
    for item in raw:
        try:
            sources.append(Source.model_validate(item))
        except ValidationError:
            _logger.debug("Skipping malformed source entry %r", item, exc_info=True)
    return sources


async def fetch_sources(transport: Transport) -> list[Source]:
    """List every source configured in the pipeline."""
    body = await transport.request_json("GET", SOURCES_ENDPOINT)
    return parse_sources_response(body)


async def set_active_source(transport: Transport, source_id: int) -> None:
    """Make *source_id* the live output of the pipeline."""
    await transport.request_json("PUT", ACTIVE_SOURCE_ENDPOINT, {"id": source_id}, expect_json=False)


async def check_health(transport: Transport) -> bool:
    try:
        await transport.request_json("GET", HEALTH_ENDPOINT, expect_json=False)
    except SwitcherTransportError:
        _logger.debug("Pipeline health check failed", exc_info=True)
        return False
    return True
