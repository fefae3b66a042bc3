"""Command-line entry point: ``pyswitcher [BASE_URL]``."""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Sequence

from pyswitcher.config import SwitcherConfig
from pyswitcher.exceptions import SwitcherConfigError, SwitcherError
from pyswitcher.runner import SwitcherService

_logger = logging.getLogger("pyswitcher")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pyswitcher",
        description="Rotate the live pipeline output among camera sources on a schedule.",
    )
    parser.add_argument("base_url", nargs="?", help="Pipeline service base URL (default: $BASE_URL)")
    parser.add_argument("--state-file", help="Path of the persisted state file (default: $STATE_FILE)")
    parser.add_argument("--port", type=int, help="Control API port (default: $API_PORT or 3000)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = SwitcherConfig.from_env(
            base_url=args.base_url,
            state_file=args.state_file,
            api_port=args.port,
        )
    except SwitcherConfigError as exc:
        _logger.error("Configuration error: %s", exc)
        return 1

    try:
        asyncio.run(SwitcherService(config).run())
    except (SwitcherError, OSError) as exc:
        _logger.error("Source switcher failed: %s", exc)
        return 1
    return 0
