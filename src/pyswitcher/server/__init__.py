"""HTTP control API for the switcher."""

from pyswitcher.server.app import ControlServer, create_app

__all__ = ["ControlServer", "create_app"]
