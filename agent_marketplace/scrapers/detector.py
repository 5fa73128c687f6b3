"""Browser executable discovery.

Locates a Chromium-family browser (Chrome, Chromium, Brave) installed on the
host by checking well-known install paths for the current OS first and the
PATH second.
"""

import logging
import os
import shutil
import sys

logger = logging.getLogger(__name__)

BROWSER_INSTALL_PATHS: dict[str, list[str]] = {
    "darwin": [
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
        "/Applications/Chromium.app/Contents/MacOS/Chromium",
        "/Applications/Brave Browser.app/Contents/MacOS/Brave Browser",
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
    ],
    "linux": [
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/snap/bin/chromium",
        "/usr/bin/brave-browser",
    ],
    "win32": [
        "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
        "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
        "C:\\Program Files\\Chromium\\Application\\chromium.exe",
        "C:\\Program Files (x86)\\Chromium\\Application\\chromium.exe",
    ],
}

BROWSER_BINARY_NAMES = ["google-chrome", "chromium", "chromium-browser", "brave-browser"]

_is_file = os.path.isfile
_which = shutil.which


def _platform_key(platform: str) -> str:
    if platform.startswith("linux"):
        return "linux"
    return platform


def find_browser_executable(platform: str | None = None) -> str | None:
    """Locate a compatible browser executable.

    Args:
        platform: sys.platform style identifier, defaults to the running OS.

    Returns:
        Absolute path of the first browser found, None if there is none.
    """
    key = _platform_key(platform or sys.platform)

    for candidate in BROWSER_INSTALL_PATHS.get(key, []):
        if _is_file(candidate):
            logger.debug(f"Found browser at install path: {candidate}")
            return candidate

    for name in BROWSER_BINARY_NAMES:
        path = _which(name)
        if path:
            logger.debug(f"Found browser on PATH: {path}")
            return path

    return None
