import logging
import re
import urllib.parse
from typing import Any, Dict, List, Mapping, Optional, Union

import httpx

from .auth import SOUNDCLOUD_API_BASE_URL, RequestParams, build_authorize_url
from .config import load_config
from .errors import ConfigurationError, DecodeError, UpstreamError

logger = logging.getLogger(__name__)

SOUNDCLOUD_OEMBED_URL = "https://soundcloud.com/oembed"
SOUNDCLOUD_TOKEN_PATH = "oauth2/token"

EMBED_USER_AGENT = (
    "Mozilla/5.0 (Windows; U; Windows NT 5.1; en-US) AppleWebKit/525.13 "
    "(KHTML, like Gecko) Chrome/0.A.B.C Safari/525.13"
)

REQUEST_OPTION_KEYS = frozenset(
    ["method", "fields", "timeout", "follow_redirects", "verify", "user_agent", "headers"]
)

_ABSOLUTE_URL = re.compile(r"^https?://")

# Decoded JSON body; the shape depends on the endpoint.
JsonValue = Union[Dict[str, Any], List[Any], str, int, float, bool, None]


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    return value


def encode_query(params: Optional[Mapping[str, Any]]) -> str:
    """URL-encode query parameters: booleans become 1/0, None values are dropped.

    List values repeat the key (``ids=1&ids=2``) rather than using the
    PHP-style bracket form (``ids[0]=1&ids[1]=2``).
    """

    items = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            items.extend((key, _query_value(v)) for v in value if v is not None)
        else:
            items.append((key, _query_value(value)))
    return urllib.parse.urlencode(items)


def _form_part(value: Any) -> Any:
    # Bytes, file objects and (filename, file[, content_type]) tuples are uploads.
    if isinstance(value, (bytes, bytearray)):
        return (None, bytes(value))
    if isinstance(value, tuple) or hasattr(value, "read"):
        return value
    if isinstance(value, bool):
        return (None, "1" if value else "0")
    return (None, "" if value is None else str(value))


class SoundcloudClient:
    """Thin SoundCloud API client.

    Holds the OAuth client credentials and, once known, the authorization
    code and access token. Authenticated calls exchange the code for a token
    on first use; the token is then reused for the lifetime of the instance
    (no expiry tracking, no refresh).

    ``request_params`` is an optional zero-argument callable returning the
    query parameters of the current inbound request. It is consulted only
    when a token is needed and no code was set explicitly.
    """

    def __init__(
        self,
        config: Mapping[str, Any],
        *,
        request_params: Optional[RequestParams] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        config = config or {}
        if not config.get("client_id") or not config.get("client_secret"):
            raise ConfigurationError("client_id and client_secret must be set in config")

        self._client_id = str(config["client_id"])
        self._client_secret = str(config["client_secret"])
        self._redirect_uri = config.get("callback_url")

        self._request_params = request_params
        self._transport = transport

        self._code: Optional[str] = None
        self._access_token: Optional[str] = None

    @classmethod
    def from_config_file(cls, path: Optional[str] = None, **kwargs: Any) -> "SoundcloudClient":
        """Build a client from the JSON config file plus SOUNDCLOUD_* environment overrides."""

        return cls(load_config(path), **kwargs)

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def redirect_uri(self) -> Optional[str]:
        return self._redirect_uri

    # -----------------
    # URLs
    # -----------------

    def get_authorize_url(self, state: str) -> str:
        return build_authorize_url(self._client_id, self._redirect_uri or "", state)

    @staticmethod
    def build_url(path: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Resolve ``path`` against the API origin and append ``params`` as a query string.

        Absolute http(s) URLs are used verbatim; relative paths lose a single
        leading slash.
        """

        if _ABSOLUTE_URL.match(path):
            url = path
        else:
            if path.startswith("/"):
                path = path[1:]
            url = f"{SOUNDCLOUD_API_BASE_URL}{path}"

        query = encode_query(params)
        if query:
            url = f"{url}?{query}"
        return url

    # -----------------
    # HTTP verbs
    # -----------------

    def get(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        request_options: Optional[Mapping[str, Any]] = None,
        need_access_token: bool = True,
    ) -> JsonValue:
        url = self.build_url(path, params)
        return self.perform_request(url, dict(request_options or {}), need_access_token)

    def post(
        self,
        path: str,
        post_data: Optional[Mapping[str, Any]] = None,
        request_options: Optional[Mapping[str, Any]] = None,
        need_access_token: bool = True,
    ) -> JsonValue:
        url = self.build_url(path)
        options = {"method": "POST", "fields": dict(post_data or {})}
        options.update(request_options or {})
        return self.perform_request(url, options, need_access_token)

    def put(
        self,
        path: str,
        post_data: Mapping[str, Any],
        request_options: Optional[Mapping[str, Any]] = None,
        need_access_token: bool = True,
    ) -> JsonValue:
        url = self.build_url(path)
        options = {"method": "PUT", "fields": dict(post_data or {})}
        options.update(request_options or {})
        return self.perform_request(url, options, need_access_token)

    def delete(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        request_options: Optional[Mapping[str, Any]] = None,
        need_access_token: bool = True,
    ) -> JsonValue:
        url = self.build_url(path, params)
        options = {"method": "DELETE"}
        options.update(request_options or {})
        return self.perform_request(url, options, need_access_token)

    # -----------------
    # Convenience endpoints
    # -----------------

    def get_player_embed(
        self,
        url: str,
        maxheight: int = 180,
        sharing: bool = True,
        liking: bool = True,
        download: bool = False,
        show_comments: bool = True,
        show_playcount: bool = False,
        show_user: bool = False,
    ) -> Optional[str]:
        """Return the widget embed HTML for a SoundCloud track, set or user URL.

        Uses the public oEmbed endpoint; no access token is needed or sent.
        Returns None when the response carries no ``html`` field.
        """

        payload = self.get(
            SOUNDCLOUD_OEMBED_URL,
            {
                "url": url,
                "maxheight": maxheight,
                "sharing": sharing,
                "liking": liking,
                "download": download,
                "show_comments": show_comments,
                "show_playcount": show_playcount,
                "show_user": show_user,
            },
            {"follow_redirects": True, "user_agent": EMBED_USER_AGENT},
            False,
        )
        if not isinstance(payload, dict):
            return None
        return payload.get("html")

    # -----------------
    # Token management
    # -----------------

    def set_code(self, code: str) -> None:
        self._code = code

    set_authorization_code = set_code

    def set_access_token(self, access_token: str) -> None:
        self._access_token = access_token

    def get_access_token(self) -> Optional[str]:
        """Return the access token, exchanging the authorization code for one if needed.

        The code comes from ``set_code`` or, failing that, from the ``code``
        parameter of the current request. If the token response has no
        ``access_token`` the cached value (possibly None) is returned as is.
        """

        if self._access_token:
            return self._access_token

        if not self._code:
            code = (self._request_params() or {}).get("code") if self._request_params else None
            if not code:
                raise ConfigurationError("authorization code must be supplied or present in the request")
            self._code = str(code)

        logger.info("Exchanging SoundCloud authorization code for an access token")
        payload = self.post(
            self.build_url(SOUNDCLOUD_TOKEN_PATH),
            {
                "grant_type": "authorization_code",
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "code": self._code,
                "redirect_uri": self._redirect_uri,
            },
            None,
            False,
        )

        if isinstance(payload, dict) and payload.get("access_token"):
            self._access_token = str(payload["access_token"])
        else:
            logger.warning("SoundCloud token response did not include an access_token")

        return self._access_token

    # -----------------
    # HTTP helpers
    # -----------------

    def perform_request(
        self,
        url: str,
        options: Optional[Mapping[str, Any]] = None,
        need_access_token: bool = True,
    ) -> JsonValue:
        """Send one request and return the decoded JSON body.

        Raises UpstreamError for any status other than 200 (or when no
        response arrives) and DecodeError when the body is not JSON.
        """

        options = dict(options or {})
        unknown = set(options) - REQUEST_OPTION_KEYS
        if unknown:
            raise ValueError(f"Unknown request option(s): {', '.join(sorted(unknown))}")

        has_body = "fields" in options
        method = str(options.get("method") or ("POST" if has_body else "GET")).upper()

        headers = httpx.Headers(options.get("headers") or {})
        if options.get("user_agent"):
            headers["User-Agent"] = str(options["user_agent"])

        files = None
        if has_body:
            fields = options.get("fields") or {}
            if fields:
                # httpx generates the multipart Content-Type (with boundary) itself.
                files = {key: _form_part(value) for key, value in fields.items()}
                headers.pop("Content-Type", None)
            else:
                headers["Content-Type"] = "multipart/form-data"
        else:
            headers["Content-Type"] = "application/json"
        headers["Accept"] = "application/json"

        if need_access_token:
            headers["Authorization"] = f"OAuth {self.get_access_token() or ''}"

        client_kwargs: Dict[str, Any] = {"transport": self._transport}
        for key in ("timeout", "follow_redirects", "verify"):
            if key in options:
                client_kwargs[key] = options[key]

        logger.debug("SoundCloud %s %s", method, url)
        try:
            with httpx.Client(**client_kwargs) as client:
                resp = client.request(method, url, headers=headers, files=files)
        except httpx.RequestError as e:
            raise UpstreamError(str(e) or e.__class__.__name__, 0) from e

        if resp.status_code != 200:
            logger.debug("SoundCloud %s %s failed with HTTP %s", method, url, resp.status_code)
            raise UpstreamError(resp.text or resp.reason_phrase, resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(f"SoundCloud response was not JSON: {e}", body=resp.text) from e
