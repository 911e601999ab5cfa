import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SESSIONS_DIR = PROJECT_ROOT / "sessions"
SNAPSHOT_PATH = Path(
    os.environ.get("BULLSEYE_SNAPSHOT_PATH") or SESSIONS_DIR / "scoring_state.json"
)

SCHEMA_VERSION = 1

# Session setup
DISTANCES_METERS = (10, 18, 20, 30, 40, 50, 60, 70, 90)
ARROWS_PER_END_CHOICES = (3, 6)
DEFAULT_ARROWS_PER_END = 6
DEFAULT_DISTANCE = 18
MAX_ARROW_NUMBER = 12

# Target face, normalized 0-100 square
TARGET_CENTER = (50.0, 50.0)
TARGET_RADIUS = 50.0
RING_WIDTH = 5.0
ARROW_RADIUS = 0.8
INNER_TEN_RADIUS = 2.5

# Competition timer (seconds)
PREPARATION_SECONDS = 10
WARNING_SECONDS = 30
SHORT_MATCH_SECONDS = 90
STANDARD_MATCH_SECONDS = 180
SHORT_MATCH_CATEGORIES = ("indian",)
TICK_INTERVAL_SEC = float(os.environ.get("BULLSEYE_TICK_INTERVAL_SEC", "1.0"))

# Whistle rendering
PULSE_SPACING_SEC = 0.8
PULSE_LENGTH_SEC = 0.5

# Resume window for an interrupted session
STALE_AFTER_MS = int(os.environ.get("BULLSEYE_STALE_AFTER_MS", str(30 * 60 * 1000)))
