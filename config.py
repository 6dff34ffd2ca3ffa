"""Configuration for the foreground usage tracker."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env
_env_file = Path(__file__).parent / ".env"
load_dotenv(_env_file)

# Data directory
DATA_DIR = Path(__file__).parent / "data"
USAGE_LOG_PATH = Path(os.environ.get("USAGE_LOG_PATH", "") or DATA_DIR / "usage_log.csv")

# Sampling period (seconds). The event query window always equals the period.
TRACK_PERIOD_SEC = float(os.environ.get("TRACK_PERIOD_SEC", "5"))
# Sessions this short or shorter are dropped as noise
MIN_SESSION_SEC = float(os.environ.get("MIN_SESSION_SEC", "1"))
# How often the frontmost window is probed (seconds)
POLL_INTERVAL = float(os.environ.get("POLL_INTERVAL", "1"))

# The tracker's own app id - never accounted for, explains quiet cycles
SELF_APP_ID = os.environ.get("SELF_APP_ID", "apptrack")

# Home-screen / system UI ids that are never opened, closed or reported
_DEFAULT_SYSTEM_PACKAGES = (
    "com.android.systemui,"
    "com.android.launcher,"
    "com.google.android.apps.nexuslauncher,"
    "Dock,"
    "loginwindow,"
    "gnome-shell,"
    "plasmashell"
)
SYSTEM_PACKAGES = frozenset(
    p.strip()
    for p in os.environ.get("SYSTEM_PACKAGES", _DEFAULT_SYSTEM_PACKAGES).split(",")
    if p.strip()
)

# Opt-in idle close: close every open session after this many quiet seconds.
# Unset keeps it disabled - sessions only close on PAUSED, reconcile, fallback or stop.
_idle = os.environ.get("IDLE_CLOSE_AFTER_SEC", "").strip()
IDLE_CLOSE_AFTER_SEC = float(_idle) if _idle else None

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
