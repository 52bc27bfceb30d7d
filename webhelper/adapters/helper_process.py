"""
Goal: Locate and start the SpotifyWebHelper binary that ships with the desktop client.
- Windows: %APPDATA%\\Spotify\\SpotifyWebHelper.exe
- macOS:   ~/Library/Application Support/Spotify/SpotifyWebHelper
- Anything else has no known install layout, so location() returns None.
"""

from __future__ import annotations

import os  # APPDATA / HOME lookups
import subprocess  # spawn the helper detached from us
import sys  # platform switch
from pathlib import Path
from typing import Optional

import psutil  # process table scan
from loguru import logger

HELPER_NAMES = ("SpotifyWebHelper.exe", "SpotifyWebHelper")


def helper_location(platform: Optional[str] = None) -> Optional[Path]:
    """Return the expected helper path for the platform, or None if unknown."""
    platform = platform or sys.platform
    if platform == "win32":
        appdata = os.environ.get("APPDATA")
        if not appdata:
            return None
        return Path(appdata) / "Spotify" / "SpotifyWebHelper.exe"
    if platform == "darwin":
        home = os.environ.get("HOME") or str(Path.home())
        return Path(home) / "Library" / "Application Support" / "Spotify" / "SpotifyWebHelper"
    return None


class HelperLauncher:
    """Start the helper binary. The session only ever calls start()."""

    def __init__(self, platform: Optional[str] = None) -> None:
        self.platform = platform or sys.platform

    def location(self) -> Optional[Path]:
        return helper_location(self.platform)

    def start(self) -> bool:
        exe = self.location()
        if exe is None or not exe.exists():
            logger.warning("No SpotifyWebHelper binary found for platform {}", self.platform)
            return False
        try:
            subprocess.Popen(
                [str(exe)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                close_fds=True,
            )
        except OSError:
            logger.exception("Failed to spawn {}", exe)
            return False
        logger.info("Spawned SpotifyWebHelper from {}", exe)
        return True


def helper_process_running(names: tuple[str, ...] = HELPER_NAMES) -> bool:
    """Blocking scan of the process table for the helper executable."""
    wanted = {n.lower() for n in names}
    for proc in psutil.process_iter(["name"]):
        name = (proc.info.get("name") or "").lower()
        if name in wanted:
            return True
    return False
