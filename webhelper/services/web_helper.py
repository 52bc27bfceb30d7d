"""
SpotifyWebHelper session (local helper discovery + token handshake + control)

Goals
- connect(): make sure the helper runs, find its port, get the OAuth token from
  the public page and the CSRF token from the helper itself.
- build_url(): every helper request goes to a fresh random *.spotilocal.com
  subdomain so nothing in between can serve a cached answer.
- Normalize whatever the helper sends into PlaybackStatus before callers see it.
- Never log tokens.

Notes
- Tokens live for the whole process; the helper has no refresh protocol, so a
  stale token only shows up as a failing request.
- The only retry anywhere is connect() starting the helper once and trying again.
- seek() is best effort. The helper frequently ignores the #M:SS offset.
"""

from __future__ import annotations

import math
import secrets
import string
from typing import Any, Dict, Mapping, Optional, Tuple, Type
from urllib.parse import quote

import anyio
import httpx
from anyio import to_thread
from loguru import logger
from pydantic import ValidationError

from webhelper.adapters.helper_process import HelperLauncher
from webhelper.errors import (
    AuthenticationFailed,
    DaemonError,
    DaemonNotOpen,
    DaemonNotRunning,
    InvalidUri,
    NotConnected,
    RequestFailed,
    StatusNormalizationError,
    StatusRequestFailed,
)
from webhelper.models.schemas import (
    EnabledControls,
    HelperInformation,
    PlaybackStatus,
    to_number,
)
from webhelper.services.discovery import PortProbeInspector, ProcessInspector, probe
from webhelper.settings import HELPER_DOMAIN, OAUTH_URL, ORIGIN, WebHelperConfig

CSRF_PATH = "/simplecsrf/token.json"
STATUS_PATH = "/remote/status.json"
PAUSE_PATH = "/remote/pause.json"
PLAY_PATH = "/remote/play.json"

TRACK_URI_PREFIX = "spotify:track"

_BASE36 = string.digits + string.ascii_lowercase


def _random_label(size: int = 9) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(size))


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)


def format_offset(seconds: float) -> str:
    """Seconds -> 'M:SS' (minutes unpadded, seconds zero-padded)."""
    if not math.isfinite(seconds):
        raise ValueError("seek offset must be a finite number")
    if seconds < 0:
        raise ValueError("seek offset must not be negative")
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


class WebHelper:
    def __init__(
        self,
        config: Optional[WebHelperConfig] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        inspector: Optional[ProcessInspector] = None,
        launcher: Optional[HelperLauncher] = None,
    ) -> None:
        self.config = config or WebHelperConfig.from_env()
        self.origin_header: Dict[str, str] = {"Origin": ORIGIN}
        self._client = client
        self._owns_client = client is None
        if inspector is None:
            port = self.config.helper_port
            inspector = PortProbeInspector((port, port) if port is not None else self.config.port_range)
        self.inspector = inspector
        self.launcher = launcher or HelperLauncher()

        self.helper_port: Optional[int] = None
        self.oauth_token: Optional[str] = None
        self.csrf_token: Optional[str] = None
        self.connection_url: Optional[str] = None
        self.connection_established = False

    # ---------- plumbing ----------

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(headers=self.origin_header)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "WebHelper":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _reset(self) -> None:
        self.helper_port = None
        self.oauth_token = None
        self.csrf_token = None
        self.connection_url = None
        self.connection_established = False

    def _require_connection(self) -> None:
        if not self.connection_established:
            raise NotConnected()

    def build_url(self, path: str = "", params: Optional[Mapping[str, Any]] = None) -> str:
        """
        Build a helper URL on a fresh random subdomain.
        csrf/oauth go in only once both tokens are known; params follow in caller order.
        """
        base = f"{self.config.scheme}://{_random_label()}.{HELPER_DOMAIN}:{self.helper_port}{path}"

        query = []
        if self.csrf_token and self.oauth_token:
            query.append(("csrf", self.csrf_token))
            query.append(("oauth", self.oauth_token))
        for key, value in (params or {}).items():
            query.append((str(key), _query_value(value)))

        if not query:
            return base
        encoded = "&".join(f"{quote(k, safe='')}={quote(v, safe='')}" for k, v in query)
        return f"{base}?{encoded}"

    async def _get_json(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        error: Type[RequestFailed] = RequestFailed,
    ) -> Dict[str, Any]:
        url = self.build_url(path, params)
        logger.debug("GET helper {}", path)
        try:
            r = await self._http().get(url, headers=self.origin_header)
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            raise error(f"Request to {path} failed: {e.__class__.__name__}") from e
        if not isinstance(data, dict):
            raise error(f"Unexpected payload from {path}")
        return data

    @staticmethod
    def _check_error(payload: Mapping[str, Any]) -> None:
        if payload.get("error"):
            raise DaemonError(payload=payload.get("error"))

    # ---------- connect ----------

    async def _helper_running(self) -> Optional[bool]:
        try:
            return await self.inspector.is_running()
        except Exception:  # noqa: BLE001
            logger.warning("Liveness check failed; assuming the helper is not running")
            return False

    async def _find_port(self) -> Optional[int]:
        if self.config.helper_port is not None:
            port = self.config.helper_port
            return await probe(port, port)
        start, end = self.config.port_range
        return await probe(start, end)

    async def _fetch_token(
        self, url: str, key: str, headers: Optional[Mapping[str, str]] = None
    ) -> str:
        try:
            r = await self._http().get(url, headers=headers)
        except httpx.HTTPError as e:
            raise AuthenticationFailed(f"Error during authentication: {e.__class__.__name__}") from e
        if r.status_code != 200:
            raise AuthenticationFailed(
                f"Error during authentication: token server answered {r.status_code}"
            )
        try:
            token = r.json()[key]
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationFailed("Error during authentication: no token in response") from e
        if not token:
            raise AuthenticationFailed("Error during authentication: empty token")
        return str(token)

    async def _get_tokens(self) -> Tuple[str, str]:
        oauth = await self._fetch_token(OAUTH_URL, "t")
        csrf = await self._fetch_token(self.build_url(CSRF_PATH), "token", self.origin_header)
        return oauth, csrf

    async def connect(self, auto_start: bool = True) -> str:
        """
        Bootstrap the session and return the local connection URL.
        With auto_start the helper is launched once if it isn't running.
        """
        self._reset()

        running = await self._helper_running()
        if running is False:
            if not auto_start:
                raise DaemonNotRunning()
            logger.info("SpotifyWebHelper not running; trying to start it")
            await to_thread.run_sync(self.launcher.start)
            if self.config.launch_wait > 0:
                await anyio.sleep(self.config.launch_wait)
            return await self.connect(auto_start=False)

        port = await self._find_port()
        if port is None:
            raise DaemonNotOpen()

        self.helper_port = port
        try:
            oauth, csrf = await self._get_tokens()
        except AuthenticationFailed:
            self._reset()
            raise

        self.oauth_token = oauth
        self.csrf_token = csrf
        self.connection_url = f"{self.config.scheme}://127.0.0.1:{port}"
        self.connection_established = True
        logger.info("Connected to SpotifyWebHelper on port {}", port)
        return self.connection_url

    # ---------- status ----------

    async def raw_status(self) -> Dict[str, Any]:
        self._require_connection()
        return await self._get_json(STATUS_PATH, error=StatusRequestFailed)

    async def status(self, raw: Optional[Mapping[str, Any]] = None) -> PlaybackStatus:
        """Normalized status; pass `raw` to reuse a payload you already have."""
        self._require_connection()
        if raw is None:
            raw = await self.raw_status()
        return PlaybackStatus.from_raw(raw)

    # ---------- controls ----------

    async def pause(self, state: bool = True) -> PlaybackStatus:
        self._require_connection()
        response = await self._get_json(PAUSE_PATH, {"pause": state is not False})
        self._check_error(response)
        return await self.status(response)

    async def unpause(self) -> PlaybackStatus:
        return await self.pause(False)

    async def play(self, uri: Optional[str] = None, context: Optional[str] = None) -> PlaybackStatus:
        """
        Play a track URI, optionally inside a playlist/album context.
        Without a URI this resumes playback, same as unpause().
        """
        self._require_connection()
        if not uri:
            return await self.unpause()
        if TRACK_URI_PREFIX not in uri.lower():
            raise InvalidUri(uri)

        response = await self._get_json(PLAY_PATH, {"uri": uri, "context": context or ""})
        self._check_error(response)
        return await self.status(response)

    async def seek(self, offset_seconds: float) -> None:
        """
        Restart the current track at the given offset.

        Unreliable: the helper often ignores the offset and simply plays the
        track from the start. Kept because some clients do honour it.
        """
        if self.config.warnings:
            logger.warning("seek() is rarely supported by the helper. Use it wisely.")
        self._require_connection()
        offset = format_offset(offset_seconds)
        current = (await self.status()).current
        if current is None:
            raise DaemonError("Nothing is loaded; cannot seek.")
        await self.play(f"{current.track.uri}#{offset}")

    # ---------- projections ----------

    async def information(self) -> HelperInformation:
        raw = await self.raw_status()
        try:
            return HelperInformation(
                version=raw.get("version"), client_version=raw.get("client_version")
            )
        except ValidationError as e:
            raise StatusNormalizationError("malformed version information") from e

    async def is_enabled(self) -> EnabledControls:
        raw = await self.raw_status()
        return EnabledControls(
            previous_track=bool(raw.get("prev_enabled")),
            play_pause=bool(raw.get("play_enabled")),
            next_track=bool(raw.get("next_enabled")),
        )

    async def is_playing(self) -> bool:
        return bool((await self.raw_status()).get("playing"))

    async def is_shuffle(self) -> bool:
        return bool((await self.raw_status()).get("shuffle"))

    async def is_repeat(self) -> bool:
        return bool((await self.raw_status()).get("repeat"))

    async def volume(self) -> float:
        return to_number((await self.raw_status()).get("volume"))
