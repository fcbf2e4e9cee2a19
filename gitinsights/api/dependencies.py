from datetime import date

from fastapi import Depends
from fastapi import Request
from fastapi import Security
from fastapi.security import HTTPAuthorizationCredentials

from gitinsights.core.security import bearer_scheme
from gitinsights.core.security import build_github_credentials
from gitinsights.core.security import extract_bearer_token
from gitinsights.models import GitHubCredentials
from gitinsights.settings import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_today() -> date:
    """Reference day for streaks and calendar truncation."""

    return date.today()


def get_github_credentials(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    app_settings: Settings = Depends(get_settings),
) -> GitHubCredentials:
    token = extract_bearer_token(credentials)
    return build_github_credentials(token, app_settings)
