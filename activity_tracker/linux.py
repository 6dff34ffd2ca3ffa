"""Linux frontmost-app detection using X11."""

import re
import subprocess
from typing import Optional


def get_frontmost_app_x11() -> Optional[str]:
    """
    Return the WM_CLASS class name of the focused window via xprop.
    Returns None if not on X11 or if detection fails.
    """
    try:
        result = subprocess.run(
            ["xprop", "-root", "_NET_ACTIVE_WINDOW"],
            capture_output=True,
            text=True,
            timeout=1,
        )
        if result.returncode != 0:
            return None

        match = re.search(r"0x[0-9a-fA-F]+", result.stdout)
        if not match:
            return None
        window_id = match.group(0)

        props = subprocess.run(
            ["xprop", "-id", window_id, "WM_CLASS"],
            capture_output=True,
            text=True,
            timeout=1,
        )
        if props.returncode != 0:
            return None
        return parse_wm_class(props.stdout)
    except (subprocess.TimeoutExpired, FileNotFoundError):
        return None


def parse_wm_class(xprop_output: str) -> Optional[str]:
    """Pick the class name out of `WM_CLASS(STRING) = "instance", "Class"`."""
    for line in xprop_output.strip().split("\n"):
        if "WM_CLASS" not in line:
            continue
        class_match = re.search(r'"([^"]+)",\s*"([^"]+)"', line)
        if class_match:
            return class_match.group(2)  # class name, not instance
    return None
