"""macOS frontmost-app detection using AppleScript."""

import subprocess
from typing import Optional

_FRONTMOST_SCRIPT = """
tell application "System Events"
    set frontApp to first application process whose frontmost is true
    try
        return bundle identifier of frontApp
    on error
        return name of frontApp
    end try
end tell
"""


def get_frontmost_app_macos() -> Optional[str]:
    """
    Return the bundle identifier (or process name) of the frontmost app.
    Returns None if detection fails.
    """
    try:
        result = subprocess.run(
            ["osascript", "-e", _FRONTMOST_SCRIPT],
            capture_output=True,
            text=True,
            timeout=2,
        )
        if result.returncode != 0:
            return None
        app_id = result.stdout.strip()
        if not app_id or app_id == "missing value":
            return None
        return app_id
    except (subprocess.TimeoutExpired, FileNotFoundError):
        return None
