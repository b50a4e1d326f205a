from typing import Optional


class SoundcloudError(Exception):
    """Base class for errors raised by this package."""


class ConfigurationError(SoundcloudError, ValueError):
    """A required credential or authorization code is missing."""


class UpstreamError(SoundcloudError, RuntimeError):
    """SoundCloud answered with a status other than 200, or the request never completed.

    ``message`` is the raw response body (or the transport error text) and
    ``code`` the HTTP status; ``code`` is 0 when no response was received.
    """

    def __init__(self, message: str, code: int = 0):
        super().__init__(message)
        self.message = message
        self.code = int(code)

    @property
    def status_code(self) -> int:
        return self.code


class DecodeError(SoundcloudError, ValueError):
    """The response body was not valid JSON."""

    def __init__(self, message: str, *, body: Optional[str] = None):
        super().__init__(message)
        self.body = body
