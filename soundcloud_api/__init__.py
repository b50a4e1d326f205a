"""SoundCloud API client (OAuth authorization code flow).

This package is intentionally thin: it builds URLs, attaches the OAuth
token and decodes JSON. No retries, paging or response caching.
"""

from .auth import build_authorize_url, check_soundcloud_credentials, params_from_url
from .client import SoundcloudClient
from .errors import ConfigurationError, DecodeError, SoundcloudError, UpstreamError

__all__ = [
    "SoundcloudClient",
    "SoundcloudError",
    "ConfigurationError",
    "UpstreamError",
    "DecodeError",
    "build_authorize_url",
    "check_soundcloud_credentials",
    "params_from_url",
]
