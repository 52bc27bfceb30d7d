"""
Goal: Shared fakes for the helper tests. A scripted daemon behind httpx.MockTransport,
plus stub inspector/launcher so nothing touches real processes or ports.
"""
import copy

import httpx
import pytest

from webhelper.services import web_helper
from webhelper.services.web_helper import WebHelper
from webhelper.settings import ORIGIN, WebHelperConfig

OAUTH_TOKEN = "oauth-token-abc"
CSRF_TOKEN = "csrf-token-xyz"
HELPER_PORT = 4371

TRACK = {
    "track_resource": {
        "name": "Feels",
        "uri": "spotify:track:5bcTCxgc7xVfSaMV3RuVke",
        "location": {"og": "https://open.spotify.com/track/5bcTCxgc7xVfSaMV3RuVke"},
    },
    "artist_resource": {
        "name": "Calvin Harris",
        "uri": "spotify:artist:7CajNmpbOovFoOoasH2HaY",
        "location": {"og": "https://open.spotify.com/artist/7CajNmpbOovFoOoasH2HaY"},
    },
    "album_resource": {
        "name": "Funk Wav Bounces Vol. 1",
        "uri": "spotify:album:2u30gztZTylY4RG7IvfXs8",
        "location": {"og": "https://open.spotify.com/album/2u30gztZTylY4RG7IvfXs8"},
    },
    "length": 223,
    "track_type": "normal",
}


class FakeDaemon:
    """Answers like the helper plus the public token page."""

    def __init__(self):
        self.requests = []
        self.playing = True
        self.track = copy.deepcopy(TRACK)
        self.oauth_token = OAUTH_TOKEN
        self.csrf_token = CSRF_TOKEN
        self.oauth_status = 200
        self.csrf_status = 200
        self.fail_paths = set()
        self.error_paths = set()
        self.garbage = {}

    def status_payload(self):
        payload = {
            "version": 9,
            "client_version": "1.0.69.336.g7edcc575",
            "playing": self.playing,
            "shuffle": True,
            "repeat": False,
            "play_enabled": True,
            "prev_enabled": False,
            "next_enabled": True,
            "playing_position": 51.93,
            "volume": 0.79,
            "online": True,
            "running": True,
        }
        if self.track is not None:
            payload["track"] = copy.deepcopy(self.track)
        return payload

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = request.url
        path = url.path

        if url.host == "open.spotify.com":
            return httpx.Response(self.oauth_status, json={"t": self.oauth_token})

        if path in self.fail_paths:
            raise httpx.ConnectError("helper went away", request=request)

        if request.headers.get("origin") != ORIGIN:
            return httpx.Response(403, json={"error": {"type": "4107", "message": "no origin"}})

        if path == web_helper.CSRF_PATH:
            return httpx.Response(self.csrf_status, json={"token": self.csrf_token})

        params = url.params
        if params.get("csrf") != self.csrf_token or params.get("oauth") != self.oauth_token:
            return httpx.Response(200, json={"error": {"type": "4102", "message": "invalid csrf"}})

        if path in self.garbage:
            return httpx.Response(200, **self.garbage[path])

        if path in self.error_paths:
            return httpx.Response(200, json={"error": {"type": "4303", "message": "boom"}})

        if path == web_helper.STATUS_PATH:
            return httpx.Response(200, json=self.status_payload())
        if path == web_helper.PAUSE_PATH:
            self.playing = params.get("pause") != "true"
            return httpx.Response(200, json=self.status_payload())
        if path == web_helper.PLAY_PATH:
            uri = params.get("uri")
            self.playing = True
            self.track["track_resource"]["uri"] = uri
            return httpx.Response(200, json=self.status_payload())
        return httpx.Response(404, text="not found")

    def helper_requests(self):
        return [r for r in self.requests if r.url.host != "open.spotify.com"]


class StubInspector:
    def __init__(self, *answers):
        self.answers = list(answers) or [True]
        self.calls = 0

    async def is_running(self):
        answer = self.answers[min(self.calls, len(self.answers) - 1)]
        self.calls += 1
        if isinstance(answer, Exception):
            raise answer
        return answer


class StubLauncher:
    def __init__(self):
        self.started = 0

    def start(self):
        self.started += 1
        return True


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def daemon():
    return FakeDaemon()


@pytest.fixture
def probed(monkeypatch):
    """Pretend the port scan finds the helper; records the ranges asked for."""
    calls = []

    async def fake_probe(start_port, end_port, host="127.0.0.1"):
        calls.append((start_port, end_port))
        return HELPER_PORT

    monkeypatch.setattr(web_helper, "probe", fake_probe)
    return calls


@pytest.fixture
def make_helper(daemon, probed):
    def _make(inspector=None, launcher=None, **config):
        config.setdefault("launch_wait", 0)
        return WebHelper(
            WebHelperConfig(**config),
            client=httpx.AsyncClient(transport=httpx.MockTransport(daemon)),
            inspector=inspector or StubInspector(True),
            launcher=launcher or StubLauncher(),
        )

    return _make


@pytest.fixture
def helper(make_helper):
    return make_helper()
