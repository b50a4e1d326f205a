import logging
import urllib.parse
from typing import Any, Callable, Dict, Mapping

logger = logging.getLogger(__name__)

SOUNDCLOUD_API_BASE_URL = "https://api.soundcloud.com/"
SOUNDCLOUD_CONNECT_URL = f"{SOUNDCLOUD_API_BASE_URL}connect"

DEFAULT_CALLBACK_URL = "http://localhost:8000/soundcloud/callback"

# Zero-argument callable returning the current inbound request's query parameters.
RequestParams = Callable[[], Mapping[str, Any]]


def build_authorize_url(client_id: str, redirect_uri: str, state: str) -> str:
    """Return the SoundCloud /connect URL that starts the authorization-code flow."""

    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "state": state,
    }
    return f"{SOUNDCLOUD_CONNECT_URL}?{urllib.parse.urlencode(params)}"


def check_soundcloud_credentials(config: Dict[str, Any]) -> Dict[str, Any]:
    """Validate SoundCloud OAuth config fields and return a structured status dict."""

    config = config or {}
    client_id = str(config.get("client_id") or "").strip()
    client_secret = str(config.get("client_secret") or "").strip()
    redirect_uri = str(config.get("callback_url") or "").strip()

    status = {
        "ok": False,
        "client_id": client_id,
        "redirect_uri": redirect_uri,
    }

    missing = [name for name, value in (("client_id", client_id), ("client_secret", client_secret)) if not value]
    if missing:
        status["message"] = (
            f"Missing {' and '.join(missing)} in the SoundCloud config.\n"
            "Both values come from your app page at https://soundcloud.com/you/apps"
        )
        return status

    status["ok"] = True
    if not redirect_uri:
        status["message"] = (
            "callback_url is not set. Authenticated calls will fail at the token exchange\n"
            "unless an access token is supplied directly."
        )
        return status

    status["message"] = "SoundCloud credentials look OK."
    return status


def soundcloud_app_setup_instructions(*, redirect_uri: str = DEFAULT_CALLBACK_URL) -> str:
    """Return user-facing setup instructions for registering a SoundCloud app."""

    redirect_uri = str(redirect_uri or "").strip() or DEFAULT_CALLBACK_URL
    return (
        "SoundCloud app setup:\n"
        "1) Go to https://soundcloud.com/you/apps\n"
        "2) Register a new app (or select an existing one)\n"
        f"3) Set the Redirect URI to: {redirect_uri}\n"
        "4) Copy the Client ID and Client Secret into soundcloud.json as client_id / client_secret\n"
        "   (or export SOUNDCLOUD_CLIENT_ID / SOUNDCLOUD_CLIENT_SECRET)\n"
        f"5) Set callback_url to the same value: {redirect_uri}\n\n"
        "Notes:\n"
        "- Redirect URI must match *exactly* what is registered with SoundCloud.\n"
        "- The client secret is only ever sent in the token exchange request.\n"
    )


def extract_code_from_redirect_url(redirect_url: str) -> Dict[str, str]:
    """Pull the OAuth callback parameters out of a SoundCloud redirect URL.

    Returns a dict with whichever of ``code``, ``state`` and ``error`` are
    present; a denied authorization yields only ``error``.
    """

    parsed = urllib.parse.urlparse(str(redirect_url or "").strip())
    qs = urllib.parse.parse_qs(parsed.query)
    out: Dict[str, str] = {}
    if qs.get("code"):
        out["code"] = str(qs["code"][0])
    if qs.get("state"):
        out["state"] = str(qs["state"][0])
    if qs.get("error"):
        out["error"] = str(qs["error"][0])
    return out


def params_from_url(redirect_url: str) -> RequestParams:
    """Return a request-params accessor bound to a fixed callback URL.

    Useful outside a web framework, e.g. when the user pastes the URL the
    browser was redirected to.
    """

    parsed = extract_code_from_redirect_url(redirect_url)

    def _params() -> Mapping[str, Any]:
        return parsed

    return _params
