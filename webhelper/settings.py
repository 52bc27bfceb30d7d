"""
Goal: Centralized configuration for the helper client (ports, paths, toggles).
Everything can be overridden from the environment; WebHelperConfig holds the
values a single WebHelper instance actually runs with.
"""

import os
from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, field_validator, model_validator

# The helper binds somewhere in this band; it never documented which port
PORT_RANGE = (4370, 4390)

HELPER_DOMAIN = "spotilocal.com"
ORIGIN = "https://open.spotify.com"
OAUTH_URL = "https://open.spotify.com/token"


def _validate_port(port_str: Optional[str], default: Optional[int]) -> Optional[int]:
    """Validate port number is in valid range."""
    if not port_str:
        return default
    try:
        port = int(port_str)
        if 1 <= port <= 65535:
            return port
    except ValueError:
        pass
    return default


def _validate_seconds(value: Optional[str], default: float) -> float:
    try:
        seconds = float(value) if value else default
    except ValueError:
        return default
    return seconds if seconds >= 0 else default


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Grab the local appdata folder in a Windows-friendly way
LOCAL_APPDATA = os.getenv("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
APP_DIR = Path(LOCAL_APPDATA) / "WebHelper"
LOG_DIR = Path(os.getenv("WEBHELPER_LOG_DIR") or (APP_DIR / "logs"))

HELPER_PORT = _validate_port(os.getenv("WEBHELPER_PORT"), None)
WARNINGS = _flag("WEBHELPER_WARNINGS", True)
USE_TLS = _flag("WEBHELPER_USE_TLS", True)
MARKET = (os.getenv("WEBHELPER_MARKET") or "").strip().upper() or None
# Give a freshly spawned helper a moment to bind before we look for it
LAUNCH_WAIT = _validate_seconds(os.getenv("WEBHELPER_LAUNCH_WAIT"), 2.0)


class WebHelperConfig(BaseModel):
    """Options for one WebHelper. Passed explicitly; nothing is merged in later."""

    helper_port: Optional[int] = None
    port_range: Tuple[int, int] = PORT_RANGE
    warnings: bool = True
    # Carried for the web search API client; the helper session never reads it
    market: Optional[str] = None
    use_tls: bool = True
    launch_wait: float = 2.0

    @field_validator("helper_port")
    @classmethod
    def _check_port(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 1 <= v <= 65535:
            raise ValueError("helper_port must be between 1 and 65535")
        return v

    @field_validator("market")
    @classmethod
    def _upper_market(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() or None if v else None

    @model_validator(mode="after")
    def _check_range(self) -> "WebHelperConfig":
        start, end = self.port_range
        if not 1 <= start <= end <= 65535:
            raise ValueError("port_range must be an ascending pair within 1..65535")
        return self

    @property
    def scheme(self) -> str:
        return "https" if self.use_tls else "http"

    @classmethod
    def from_env(cls, **overrides) -> "WebHelperConfig":
        values = {
            "helper_port": HELPER_PORT,
            "warnings": WARNINGS,
            "market": MARKET,
            "use_tls": USE_TLS,
            "launch_wait": LAUNCH_WAIT,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
