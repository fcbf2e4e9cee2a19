from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

import httpx

from gitinsights.settings import Settings


OAUTH_SCOPE = "read:user repo user:email"


class OAuthConfigurationError(Exception):
    """Raised when the GitHub OAuth app is not configured."""


class OAuthExchangeError(Exception):
    """Raised when GitHub refuses to trade a code for an access token."""


def build_authorize_url(app_settings: Settings) -> str:
    """Return the GitHub page the user is sent to for login."""

    if not app_settings.github_client_id:
        raise OAuthConfigurationError("GITHUB_CLIENT_ID is not set")

    params = {"client_id": app_settings.github_client_id, "scope": OAUTH_SCOPE}
    if app_settings.github_redirect_uri:
        params["redirect_uri"] = app_settings.github_redirect_uri
    return f"{app_settings.github_oauth_url}/authorize?{urlencode(params)}"


def exchange_code_for_token(code: str, app_settings: Settings) -> str:
    """Exchange an OAuth callback code for a GitHub access token.

    Raises:
        OAuthConfigurationError: If client id or secret are missing.
        OAuthExchangeError: If GitHub does not return a token.
    """

    if not app_settings.github_client_id or not app_settings.github_client_secret:
        raise OAuthConfigurationError("GitHub OAuth client is not configured")

    body = {
        "client_id": app_settings.github_client_id,
        "client_secret": app_settings.github_client_secret,
        "code": code,
    }
    if app_settings.github_redirect_uri:
        body["redirect_uri"] = app_settings.github_redirect_uri

    try:
        response = httpx.post(
            f"{app_settings.github_oauth_url}/access_token",
            json=body,
            headers={"Accept": "application/json", "User-Agent": "gitinsights"},
            timeout=app_settings.http_timeout_seconds,
        )
        response.raise_for_status()
        payload: Any = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise OAuthExchangeError("GitHub token exchange failed") from exc

    if not isinstance(payload, Mapping):
        raise OAuthExchangeError("GitHub token response is invalid")

    token = payload.get("access_token")
    if not isinstance(token, str) or not token:
        reason = payload.get("error_description") or payload.get("error")
        raise OAuthExchangeError(
            str(reason) if reason else "Failed to get access token"
        )

    return token
