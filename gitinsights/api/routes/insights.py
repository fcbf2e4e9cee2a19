import re
from datetime import date

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Query

from gitinsights.api.dependencies import get_github_credentials
from gitinsights.api.dependencies import get_today
from gitinsights.api.schemas.insights import InsightsResponse
from gitinsights.models import ALL_YEARS
from gitinsights.models import GitHubCredentials
from gitinsights.services.insights_service import GitHubAPIError
from gitinsights.services.insights_service import InvalidGitHubTokenError
from gitinsights.services.insights_service import get_user_insights


router = APIRouter()

YEAR_PATTERN = re.compile(r"^\d{4}$")


@router.get("/")
async def root() -> dict[str, str]:
    """Return a basic service greeting."""

    return {"message": "Hello World"}


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return liveness probe response for health checks."""

    return {"status": "ok"}


@router.get("/sentry-debug")
async def trigger_error() -> None:
    """Trigger a test exception endpoint for Sentry verification."""

    division_by_zero = 1 / 0
    return division_by_zero


@router.get("/insights/me", response_model=InsightsResponse)
async def get_authenticated_user_insights(
    year: str | None = Query(default=None),
    credentials: GitHubCredentials = Depends(get_github_credentials),
    today: date = Depends(get_today),
) -> dict[str, object]:
    """Return the contribution dashboard for the authenticated GitHub user."""

    year_filter = (year or str(today.year)).strip().lower()
    if year_filter != ALL_YEARS and not YEAR_PATTERN.match(year_filter):
        raise HTTPException(
            status_code=400, detail="year must be a 4-digit year or 'all'"
        )

    try:
        return await get_user_insights(
            credentials=credentials, year_filter=year_filter, today=today
        )
    except InvalidGitHubTokenError as exc:
        raise HTTPException(status_code=401, detail="GitHub token is invalid") from exc
    except GitHubAPIError as exc:
        raise HTTPException(
            status_code=502, detail="GitHub API request failed"
        ) from exc
