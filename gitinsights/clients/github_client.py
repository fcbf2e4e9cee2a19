import asyncio
import logging
from collections.abc import Mapping
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from datetime import UTC
from typing import Any

import httpx

from gitinsights.models import ALL_YEARS
from gitinsights.models import CommitRecord
from gitinsights.models import GitHubCredentials
from gitinsights.models import Repository
from gitinsights.models import RepositoryFetchResult
from gitinsights.services.contributions import day_key
from gitinsights.services.contributions import normalize_year_filter


logger = logging.getLogger(__name__)

PER_PAGE = 100
MAX_COMMIT_PAGES = 10
MAX_CONCURRENT_REPOSITORIES = 8

CONTRIBUTION_SUMMARY_QUERY = """
query($login: String!) {
  user(login: $login) {
    contributionsCollection {
      totalCommitContributions
      totalIssueContributions
      totalPullRequestContributions
      totalPullRequestReviewContributions
      contributionCalendar {
        totalContributions
      }
    }
  }
}
"""


def create_client(
    credentials: GitHubCredentials,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build an async HTTP client bound to the credentials' REST base URL."""

    return httpx.AsyncClient(
        base_url=credentials.api_base_url,
        headers=credentials.headers,
        timeout=credentials.timeout,
        transport=transport,
    )


async def _get_json(
    client: httpx.AsyncClient, path: str, params: Mapping[str, Any] | None = None
) -> Any:
    response = await client.get(path, params=params)
    response.raise_for_status()
    return response.json()


async def fetch_authenticated_user(client: httpx.AsyncClient) -> dict[str, Any]:
    """Fetch the profile of the token owner from GitHub REST API."""

    payload = await _get_json(client, "/user")
    if not isinstance(payload, Mapping):
        raise ValueError("GitHub user response is invalid")

    raw_login = payload.get("login")
    if not isinstance(raw_login, str) or not raw_login:
        raise ValueError("GitHub user response is missing required fields")

    return dict(payload)


async def fetch_access_info(client: httpx.AsyncClient) -> dict[str, Any]:
    """Report granted OAuth scopes and the core rate limit for the token."""

    user_response, rate_response = await asyncio.gather(
        client.get("/user"), client.get("/rate_limit")
    )
    user_response.raise_for_status()
    rate_response.raise_for_status()

    raw_scopes = user_response.headers.get("x-oauth-scopes", "")
    scopes = [scope.strip() for scope in raw_scopes.split(",") if scope.strip()]

    payload = rate_response.json()
    rate = payload.get("rate") if isinstance(payload, Mapping) else None
    if not isinstance(rate, Mapping):
        raise ValueError("GitHub rate limit response is invalid")

    raw_reset = rate.get("reset")
    reset = (
        datetime.fromtimestamp(raw_reset, tz=UTC).isoformat()
        if isinstance(raw_reset, int)
        else None
    )
    return {
        "scopes": scopes,
        "rate_limit": {
            "remaining": rate.get("remaining", 0),
            "limit": rate.get("limit", 0),
            "reset": reset,
        },
    }


async def fetch_user_repositories(
    client: httpx.AsyncClient, username: str
) -> list[Repository]:
    """List a user's repositories, most recently updated first."""

    payload = await _get_json(
        client,
        f"/users/{username}/repos",
        params={"per_page": PER_PAGE, "sort": "updated"},
    )
    if not isinstance(payload, list):
        raise ValueError("GitHub repositories response is invalid")

    return [Repository.from_api(item) for item in payload if isinstance(item, Mapping)]


async def fetch_repository_languages(
    client: httpx.AsyncClient, owner: str, repo: str
) -> dict[str, int]:
    payload = await _get_json(client, f"/repos/{owner}/{repo}/languages")
    if not isinstance(payload, Mapping):
        return {}
    return {
        language: size
        for language, size in payload.items()
        if isinstance(language, str) and isinstance(size, int)
    }


def _commit_window(year_filter: str | int | None) -> dict[str, str]:
    selected_year = normalize_year_filter(year_filter)
    if selected_year == ALL_YEARS or not selected_year.isdigit():
        return {}
    return {
        "since": f"{selected_year}-01-01T00:00:00Z",
        "until": f"{selected_year}-12-31T23:59:59Z",
    }


def fold_commits_by_day(items: Sequence[Any]) -> tuple[CommitRecord, ...]:
    """Turn raw commit payloads into one record per calendar day."""

    counts: dict[str, int] = {}
    for item in items:
        if not isinstance(item, Mapping):
            continue
        commit = item.get("commit")
        if not isinstance(commit, Mapping):
            continue
        author = commit.get("author")
        if not isinstance(author, Mapping):
            author = commit.get("committer")
        raw_date = author.get("date") if isinstance(author, Mapping) else None
        key = day_key(raw_date)
        if key is None:
            continue
        counts[key] = counts.get(key, 0) + 1

    return tuple(
        CommitRecord(date=f"{key}T00:00:00Z", count=count)
        for key, count in sorted(counts.items())
    )


async def fetch_repository_commits(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    year_filter: str | int | None = ALL_YEARS,
) -> tuple[CommitRecord, ...]:
    params: dict[str, Any] = {"per_page": PER_PAGE, **_commit_window(year_filter)}
    items: list[Any] = []

    for page in range(1, MAX_COMMIT_PAGES + 1):
        response = await client.get(
            f"/repos/{owner}/{repo}/commits", params={**params, "page": page}
        )
        # Empty repositories answer 409 Conflict.
        if response.status_code == 409:
            return ()
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, list):
            break
        items.extend(payload)
        if len(payload) < PER_PAGE:
            break

    return fold_commits_by_day(items)


async def fetch_repository_pull_count(
    client: httpx.AsyncClient, owner: str, repo: str
) -> int:
    payload = await _get_json(
        client,
        f"/repos/{owner}/{repo}/pulls",
        params={"state": "all", "per_page": PER_PAGE},
    )
    return len(payload) if isinstance(payload, list) else 0


async def fetch_repository_details(
    client: httpx.AsyncClient,
    owner: str,
    repository: Repository,
    year_filter: str | int | None = ALL_YEARS,
) -> Repository:
    """Load languages, commits and pull count for one repository."""

    # All three requests settle before a failure is raised.
    results = await asyncio.gather(
        fetch_repository_languages(client, owner, repository.name),
        fetch_repository_commits(client, owner, repository.name, year_filter),
        fetch_repository_pull_count(client, owner, repository.name),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result

    languages, commits, pulls = results
    return replace(repository, languages=languages, commits=commits, pulls=pulls)


async def fetch_repositories_with_details(
    client: httpx.AsyncClient,
    owner: str,
    repositories: Sequence[Repository],
    year_filter: str | int | None = ALL_YEARS,
) -> list[RepositoryFetchResult]:
    """Fetch details for every repository concurrently.

    A failing repository keeps its empty defaults and records the error;
    the rest of the batch is unaffected.
    """

    semaphore = asyncio.Semaphore(MAX_CONCURRENT_REPOSITORIES)

    async def _load(repository: Repository) -> RepositoryFetchResult:
        async with semaphore:
            try:
                detailed = await fetch_repository_details(
                    client, owner, repository, year_filter
                )
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning(
                    "Failed to fetch details for %s/%s: %s",
                    owner,
                    repository.name,
                    exc,
                )
                return RepositoryFetchResult(
                    repository=repository,
                    details_loaded=False,
                    error=str(exc) or exc.__class__.__name__,
                )
        return RepositoryFetchResult(repository=detailed, details_loaded=True)

    return list(await asyncio.gather(*(_load(repo) for repo in repositories)))


async def fetch_contribution_summary(
    client: httpx.AsyncClient, graphql_url: str, username: str
) -> dict[str, int]:
    """Fetch contribution totals for a user from GitHub GraphQL API."""

    response = await client.post(
        graphql_url,
        json={"query": CONTRIBUTION_SUMMARY_QUERY, "variables": {"login": username}},
    )
    response.raise_for_status()

    payload = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("GitHub GraphQL response is invalid")

    if payload.get("errors"):
        raise ValueError("GitHub GraphQL returned errors")

    data = payload.get("data")
    if not isinstance(data, Mapping):
        raise ValueError("GitHub GraphQL data is missing")

    user = data.get("user")
    if not isinstance(user, Mapping):
        raise ValueError("GitHub user not found")

    collection = user.get("contributionsCollection")
    if not isinstance(collection, Mapping):
        raise ValueError("GitHub contributionsCollection is missing")

    calendar = collection.get("contributionCalendar")
    total = calendar.get("totalContributions") if isinstance(calendar, Mapping) else 0

    def _count(key: str) -> int:
        value = collection.get(key)
        return value if isinstance(value, int) else 0

    return {
        "commits": _count("totalCommitContributions"),
        "issues": _count("totalIssueContributions"),
        "pull_requests": _count("totalPullRequestContributions"),
        "reviews": _count("totalPullRequestReviewContributions"),
        "total": total if isinstance(total, int) else 0,
    }
