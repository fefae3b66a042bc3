"""pyswitcher - Event-driven camera rotation for a live video pipeline."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyswitcher")
except PackageNotFoundError:
    __version__ = "0+local"

from pyswitcher.client import CameraNotifier, PipelineClient
from pyswitcher.config import SwitcherConfig
from pyswitcher.control import ControlService
from pyswitcher.exceptions import (
    SwitcherConfigError,
    SwitcherError,
    SwitcherPersistenceError,
    SwitcherSourceNotFoundError,
    SwitcherTransportError,
    SwitcherValidationError,
)
from pyswitcher.models import ConfigUpdate, RotationScheduleItem, Source, SwitcherState
from pyswitcher.rotation import RotationMode, RotationScheduler
from pyswitcher.state import ConfigChanged, StateFile, StateStore

__all__ = [
    "__version__",
    "CameraNotifier",
    "ConfigChanged",
    "ConfigUpdate",
    "ControlService",
    "PipelineClient",
    "RotationMode",
    "RotationScheduleItem",
    "RotationScheduler",
    "Source",
    "StateFile",
    "StateStore",
    "SwitcherConfig",
    "SwitcherConfigError",
    "SwitcherError",
    "SwitcherPersistenceError",
    "SwitcherSourceNotFoundError",
    "SwitcherState",
    "SwitcherTransportError",
    "SwitcherValidationError",
]
