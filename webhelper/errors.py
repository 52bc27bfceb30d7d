"""
Goal: One exception family for everything the helper client can fail on,
so callers can catch WebHelperError and still tell the cases apart.
"""


class WebHelperError(RuntimeError):
    """Base class for helper client failures."""


class NotConnected(WebHelperError):
    def __init__(self, message: str = "Not connected to the WebHelper. Call connect() first.") -> None:
        super().__init__(message)


class DaemonNotRunning(WebHelperError):
    def __init__(self, message: str = "SpotifyWebHelper not running.") -> None:
        super().__init__(message)


class DaemonNotOpen(WebHelperError):
    def __init__(self, message: str = "SpotifyWebHelper not open.") -> None:
        super().__init__(message)


class AuthenticationFailed(WebHelperError):
    """OAuth or CSRF token could not be obtained."""


class RequestFailed(WebHelperError):
    """Transport error or unreadable body from the helper."""


class StatusRequestFailed(RequestFailed):
    pass


class DaemonError(WebHelperError):
    """The helper answered, but the payload carries an error."""

    def __init__(self, message: str = "SpotifyWebHelper returned an error.", payload=None) -> None:
        super().__init__(message)
        self.payload = payload


class StatusNormalizationError(WebHelperError):
    """A track record in the status payload is incomplete."""


class InvalidUri(WebHelperError, ValueError):
    def __init__(self, uri: str) -> None:
        super().__init__(f"Invalid Track URI: {uri!r}")
        self.uri = uri
