from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from fastapi.security import HTTPBearer

from gitinsights.models import GitHubCredentials
from gitinsights.settings import Settings


bearer_scheme = HTTPBearer(auto_error=False)


def extract_bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str:
    """Extract and validate a Bearer token from authorization credentials.

    Raises:
        HTTPException: If credentials are missing, malformed, or empty.
    """

    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Authorization Bearer token is required",
        )

    if credentials.scheme.lower() != "bearer" or not credentials.credentials.strip():
        raise HTTPException(
            status_code=401,
            detail="Authorization Bearer token is required",
        )

    return credentials.credentials.strip()


def build_github_credentials(token: str, app_settings: Settings) -> GitHubCredentials:
    """Bind a user's token to the configured GitHub endpoints."""

    return GitHubCredentials(
        token=token,
        api_base_url=app_settings.github_api_base_url,
        graphql_url=app_settings.github_graphql_url,
        timeout=app_settings.http_timeout_seconds,
    )
