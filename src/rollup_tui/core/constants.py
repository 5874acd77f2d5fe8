"""Core constants"""

from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent.parent.parent

ENV_PATH = PROJECT_ROOT / ".env"
NETWORKS_PATH = PROJECT_ROOT / "config" / "networks.json"
LOG_PATH = PROJECT_ROOT / "rollup-tui.log"

DEFAULT_POLL_INTERVAL = 0.75
DEFAULT_FRAME_INTERVAL = 0.25
DEFAULT_RPC_TIMEOUT = 5.0
DEFAULT_FAILURE_THRESHOLD = 3
DEFAULT_MAX_BACKOFF = 30.0
DEFAULT_WINDOW_SECONDS = 60

# Upper bound of intermediate blocks fetched to catch up after a slow tick
MAX_BACKFILL = 10

NO_DATA_PLACEHOLDER = "no data yet"
EMPTY_CELL = "—"
