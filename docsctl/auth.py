"""OAuth2 flow, credential storage, and token refresh."""

import json
import os
import sys
from urllib.parse import parse_qs, urlparse

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from docsctl.util import AuthError, CONFIG_DIR, CREDS_PATH, TOKEN_PATH

SCOPES = [
    "https://www.googleapis.com/auth/documents",
    "https://www.googleapis.com/auth/drive",
]

# Redirect target for the copy-paste flow; nothing listens there.
_MANUAL_REDIRECT_URI = "http://localhost:1"


def get_credentials() -> Credentials:
    """Load or refresh credentials. Returns valid Credentials or raises AuthError."""
    creds = _load_token()

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except RefreshError as e:
            raise AuthError(
                f"Token refresh failed: {e}. Run `docsctl auth` to re-authenticate."
            )
        _save_token(creds)
        return creds

    raise AuthError(
        "Not authenticated. Run `docsctl auth` to authenticate.",
        auth_url=_authorization_url(),
    )


def _new_flow(manual: bool = False) -> InstalledAppFlow:
    """Build the flow from credentials.json.

    The copy-paste flow may finish in a later process than the one that
    printed the URL, so it runs without a PKCE verifier.
    """
    if not CREDS_PATH.exists():
        raise AuthError(
            f"credentials.json not found at {CREDS_PATH}. "
            "Download it from Google Cloud Console and place it there."
        )
    if manual:
        flow = InstalledAppFlow.from_client_secrets_file(
            str(CREDS_PATH), SCOPES, autogenerate_code_verifier=False,
        )
        flow.redirect_uri = _MANUAL_REDIRECT_URI
        return flow
    return InstalledAppFlow.from_client_secrets_file(str(CREDS_PATH), SCOPES)


def _authorization_url() -> str | None:
    """Consent URL for the copy-paste flow, or None without credentials.json."""
    if not CREDS_PATH.exists():
        return None
    flow = _new_flow(manual=True)
    auth_url, _ = flow.authorization_url(prompt="consent")
    return auth_url


def _code_from_response(response: str) -> str:
    """Accept either a bare code or the full redirect URL containing it."""
    code = parse_qs(urlparse(response).query).get("code", [None])[0]
    return code or response


def authenticate(no_browser: bool = False, code: str | None = None) -> Credentials:
    """Run the OAuth2 flow. Called by `docsctl auth`.

    With ``code`` the flow is completed from a code obtained earlier via
    the printed consent URL; ``no_browser`` prints the URL and reads the
    redirect from stdin.
    """
    manual = bool(code) or no_browser
    flow = _new_flow(manual=manual)

    if manual:
        if not code:
            auth_url, _ = flow.authorization_url(prompt="consent")
            print(
                "Visit this URL to authorize docsctl:\n\n"
                f"{auth_url}\n\n"
                "After authorizing, paste the full redirect URL here:",
                file=sys.stderr,
            )
            code = input().strip()
        flow.fetch_token(code=_code_from_response(code))
        creds = flow.credentials
    else:
        creds = flow.run_local_server(port=0)

    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    _save_token(creds)
    return creds


def _load_token() -> Credentials | None:
    """Load token.json, discarding it if it is corrupt."""
    if not TOKEN_PATH.exists():
        return None

    try:
        return Credentials.from_authorized_user_file(str(TOKEN_PATH), SCOPES)
    except (json.JSONDecodeError, ValueError, KeyError):
        print(
            "WARN: stored credentials are corrupt. "
            "Run `docsctl auth` to re-authenticate.",
            file=sys.stderr,
        )
        TOKEN_PATH.unlink(missing_ok=True)
        return None


def _save_token(creds: Credentials) -> None:
    """Save credentials to token.json with restricted permissions."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    TOKEN_PATH.write_text(creds.to_json())
    os.chmod(TOKEN_PATH, 0o600)
