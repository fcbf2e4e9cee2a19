from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException

from gitinsights.api.dependencies import get_github_credentials
from gitinsights.api.dependencies import get_settings
from gitinsights.api.schemas.auth import AccessCheckResponse
from gitinsights.api.schemas.auth import LoginUrlResponse
from gitinsights.api.schemas.auth import TokenExchangeRequest
from gitinsights.api.schemas.auth import TokenExchangeResponse
from gitinsights.clients import github_client
from gitinsights.clients.oauth_client import OAuthConfigurationError
from gitinsights.clients.oauth_client import OAuthExchangeError
from gitinsights.clients.oauth_client import build_authorize_url
from gitinsights.clients.oauth_client import exchange_code_for_token
from gitinsights.models import GitHubCredentials
from gitinsights.services.insights_service import GitHubAPIError
from gitinsights.services.insights_service import InvalidGitHubTokenError
from gitinsights.services.insights_service import call_github
from gitinsights.settings import Settings


router = APIRouter(prefix="/auth")


@router.get("/login", response_model=LoginUrlResponse)
def login_url(app_settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Return the GitHub authorize URL that starts the OAuth flow."""

    try:
        return {"url": build_authorize_url(app_settings)}
    except OAuthConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@router.post("/github", response_model=TokenExchangeResponse)
def exchange_code(
    payload: TokenExchangeRequest,
    app_settings: Settings = Depends(get_settings),
) -> dict[str, object]:
    """Trade the OAuth callback code for an access token."""

    try:
        token = exchange_code_for_token(payload.code.strip(), app_settings)
    except OAuthConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except OAuthExchangeError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return {"success": True, "token": token}


@router.get("/check", response_model=AccessCheckResponse)
async def check_access(
    credentials: GitHubCredentials = Depends(get_github_credentials),
) -> dict[str, object]:
    """Report whether the bearer token is accepted, with scopes and rate limit."""

    try:
        async with github_client.create_client(credentials) as client:
            access = await call_github(github_client.fetch_access_info(client))
    except InvalidGitHubTokenError:
        return {"is_authenticated": False, "scopes": [], "rate_limit": None}
    except GitHubAPIError as exc:
        raise HTTPException(
            status_code=502, detail="GitHub API request failed"
        ) from exc

    return {"is_authenticated": True, **access}
