from collections.abc import Awaitable
from datetime import date
from typing import Any
from typing import TypeVar

import httpx

from gitinsights.clients import github_client
from gitinsights.models import GitHubCredentials
from gitinsights.models import Repository
from gitinsights.services.contributions import available_years
from gitinsights.services.contributions import build_calendar_grid
from gitinsights.services.contributions import build_calendar_payload
from gitinsights.services.contributions import build_contribution_map
from gitinsights.services.contributions import compute_streaks
from gitinsights.services.contributions import monthly_contributions
from gitinsights.services.contributions import normalize_year_filter
from gitinsights.services.metrics import language_evolution
from gitinsights.services.metrics import language_stats
from gitinsights.services.metrics import monthly_code_activity
from gitinsights.services.metrics import repository_overview


T = TypeVar("T")


class InvalidGitHubTokenError(Exception):
    """Raised when GitHub rejects the provided token."""


class GitHubAPIError(Exception):
    """Raised when GitHub requests fail for non-auth reasons."""


async def call_github(request: Awaitable[T]) -> T:
    """Await a GitHub request and translate its failures."""

    try:
        return await request
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code in {401, 403}:
            raise InvalidGitHubTokenError from exc
        raise GitHubAPIError from exc
    except Exception as exc:
        raise GitHubAPIError from exc


def _account_year(user: dict[str, Any]) -> int | None:
    raw_created = user.get("created_at")
    if isinstance(raw_created, str) and raw_created[:4].isdigit():
        return int(raw_created[:4])
    return None


async def load_user_repositories(
    credentials: GitHubCredentials, year_filter: str
) -> tuple[dict[str, Any], list[Repository], list[dict[str, str]]]:
    """Fetch the token owner, their repositories and per-repo details.

    Returns the user, the repositories and the repositories whose details
    could not be loaded.
    """

    async with github_client.create_client(credentials) as client:
        user = await call_github(github_client.fetch_authenticated_user(client))
        username = user["login"]
        repositories = await call_github(
            github_client.fetch_user_repositories(client, username)
        )
        results = await github_client.fetch_repositories_with_details(
            client, username, repositories, year_filter
        )

    failed = [
        {"name": result.repository.name, "error": result.error or ""}
        for result in results
        if not result.details_loaded
    ]
    return user, [result.repository for result in results], failed


async def get_user_insights(
    credentials: GitHubCredentials,
    year_filter: str | int | None,
    today: date,
) -> dict[str, object]:
    """Build the dashboard payload for the GitHub user linked to credentials."""

    selected_year = normalize_year_filter(year_filter)
    user, repositories, failed = await load_user_repositories(
        credentials, selected_year
    )

    contributions = build_contribution_map(repositories, selected_year)
    streaks = compute_streaks(contributions, today)
    grid = build_calendar_grid(selected_year, today)
    chart_year = int(selected_year) if selected_year.isdigit() else today.year

    return {
        "user": {
            "login": user["login"],
            "name": user.get("name"),
            "avatar_url": user.get("avatar_url"),
            "created_at": user.get("created_at"),
        },
        "year": selected_year,
        "available_years": available_years(_account_year(user), today),
        "overview": repository_overview(repositories),
        "streaks": {
            "current_streak": streaks.current_streak,
            "longest_streak": streaks.longest_streak,
            "total_commits": streaks.total_commits,
        },
        "contributions": contributions,
        "calendar": build_calendar_payload(grid, contributions),
        "monthly_contributions": monthly_contributions(contributions),
        "languages": language_stats(repositories),
        "language_evolution": language_evolution(repositories, chart_year),
        "monthly_code_activity": monthly_code_activity(repositories, chart_year),
        "failed_repositories": failed,
    }
