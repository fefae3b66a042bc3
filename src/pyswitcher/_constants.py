"""Internal constants shared across the library."""

USER_AGENT = "pyswitcher"

DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 3000
DEFAULT_CAMERA_API_HOST = "http://localhost:3000"
DEFAULT_STATE_FILE = "./data/state.json"
DEFAULT_REQUEST_TIMEOUT: float = 5.0

#: Only sources of this pipeline type take part in rotation.
DEFAULT_ROTATION_SOURCE_TYPE = "srt"

#: Delay before re-evaluating after a skipped or failed rotation step.
RETRY_DELAY_SECONDS: float = 5.0

VALID_DIRECTIONS: frozenset[str] = frozenset({"N", "E", "W", "S"})
