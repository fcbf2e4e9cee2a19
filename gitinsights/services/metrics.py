from collections.abc import Iterable
from datetime import date

from gitinsights.models import Repository
from gitinsights.services.contributions import MONTH_LABELS
from gitinsights.services.contributions import day_key


def _created_day(repository: Repository) -> date | None:
    key = day_key(repository.created_at)
    return date.fromisoformat(key) if key else None


def aggregate_languages(repositories: Iterable[Repository]) -> dict[str, int]:
    """Sum language bytes across repositories."""

    totals: dict[str, int] = {}
    for repository in repositories:
        for language, size in repository.languages.items():
            if isinstance(size, int) and size > 0:
                totals[language] = totals.get(language, 0) + size
    return totals


def language_stats(repositories: Iterable[Repository]) -> dict[str, dict[str, float]]:
    """Bytes per language with its share of all bytes, largest first."""

    totals = aggregate_languages(repositories)
    total_bytes = sum(totals.values())
    return {
        language: {
            "bytes": size,
            "percentage": size * 100 / total_bytes if total_bytes else 0.0,
        }
        for language, size in sorted(totals.items(), key=lambda item: -item[1])
    }


def top_languages(repositories: Iterable[Repository], limit: int = 5) -> list[str]:
    """Language names ordered by total bytes, largest first."""

    totals = aggregate_languages(repositories)
    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [language for language, _ in ranked[: max(0, limit)]]


def language_evolution(
    repositories: Iterable[Repository], year: int
) -> list[dict[str, object]]:
    """Language bytes per creation month for repositories created in `year`.

    Months without a new repository are left out, as the chart only plots
    points where something changed.
    """

    by_month: dict[int, dict[str, int]] = {}
    for repository in repositories:
        created = _created_day(repository)
        if created is None or created.year != year:
            continue
        month_totals = by_month.setdefault(created.month, {})
        for language, size in repository.languages.items():
            if isinstance(size, int) and size > 0:
                month_totals[language] = month_totals.get(language, 0) + size

    return [
        {"month": MONTH_LABELS[month - 1], "languages": by_month[month]}
        for month in sorted(by_month)
    ]


def monthly_code_activity(
    repositories: Iterable[Repository], year: int
) -> list[dict[str, object]]:
    """Repository size summed by creation month, one point per month."""

    sizes = [0] * 12
    for repository in repositories:
        created = _created_day(repository)
        if created is None or created.year != year:
            continue
        sizes[created.month - 1] += max(0, repository.size)

    return [
        {"month": label, "size": size} for label, size in zip(MONTH_LABELS, sizes)
    ]


def repository_overview(repositories: Iterable[Repository]) -> dict[str, int | float]:
    """Headline counts for the repository insights card."""

    repositories = list(repositories)
    languages = aggregate_languages(repositories)
    total_bytes = sum(languages.values())
    return {
        "repositories": len(repositories),
        "languages": len(languages),
        "total_bytes": total_bytes,
        "average_bytes": total_bytes / len(repositories) if repositories else 0.0,
        "stars": sum(repository.stargazers_count for repository in repositories),
        "pull_requests": sum(repository.pulls for repository in repositories),
        "commits": sum(
            commit.count for repository in repositories for commit in repository.commits
        ),
    }
