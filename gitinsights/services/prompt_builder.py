import json
from collections.abc import Mapping
from collections.abc import Sequence
from datetime import date
from datetime import timedelta
from typing import Any

from gitinsights.models import ALL_YEARS
from gitinsights.models import Repository
from gitinsights.services.contributions import build_contribution_map
from gitinsights.services.contributions import day_key
from gitinsights.services.contributions import monthly_contributions
from gitinsights.services.contributions import weekday_activity
from gitinsights.services.metrics import language_stats
from gitinsights.services.metrics import top_languages


RECENT_ACTIVITY_DAYS = 7

SYSTEM_PROMPT_TEMPLATE = """You are a pro GitHub AI assistant analyzing data for {user_name}. Your responses should be concise, direct, and optimistic.

Role: Expert GitHub Analyst
Style: Brief, Positive, Solution-focused

Available Data:
- User: {user_profile}
- Repos: {repo_stats}
- Activity: {activity_metrics}
- Languages: {language_stats}

Guidelines:
1. Keep responses under 3-4 sentences
2. Focus on user's strengths
3. Provide direct, actionable advice
4. Be encouraging and supportive
5. Highlight positive patterns
6. Use emojis sparingly for emphasis

Remember: Be concise but impactful. Favor practical insights over theoretical analysis."""


def _pushed_day(repository: Repository) -> date | None:
    key = day_key(repository.pushed_at)
    return date.fromisoformat(key) if key else None


def build_system_context(
    user: Mapping[str, Any],
    repositories: Sequence[Repository],
    today: date,
    contribution_summary: Mapping[str, int] | None = None,
) -> dict[str, Any]:
    """Collect the stats the assistant is allowed to talk about."""

    languages = language_stats(repositories)
    contributions = build_contribution_map(repositories, ALL_YEARS)
    recent_cutoff = today - timedelta(days=RECENT_ACTIVITY_DAYS)

    recently_pushed = sorted(
        repositories,
        key=lambda repo: _pushed_day(repo) or date.min,
        reverse=True,
    )
    most_starred = sorted(
        repositories, key=lambda repo: repo.stargazers_count, reverse=True
    )

    return {
        "user": dict(user),
        "stats": {
            "total_repos": len(repositories),
            "total_stars": sum(repo.stargazers_count for repo in repositories),
            "top_language": (top_languages(repositories, 1) or ["Unknown"])[0],
            "recently_active": any(
                (_pushed_day(repo) or date.min) > recent_cutoff
                for repo in repositories
            ),
        },
        "metrics": {
            "activity": {
                "monthly_contributions": monthly_contributions(contributions),
                "weekday_activity": weekday_activity(contributions),
                "contribution_totals": dict(contribution_summary or {}),
            },
            "languages": languages,
            "recent_activity": [
                {
                    "name": repo.name or "Unnamed Repository",
                    "language": repo.language,
                    "stars": repo.stargazers_count,
                    "last_push": repo.pushed_at,
                }
                for repo in recently_pushed[:5]
            ],
            "top_repositories": [
                {
                    "name": repo.name or "Unnamed Repository",
                    "stars": repo.stargazers_count,
                    "description": repo.description,
                }
                for repo in most_starred[:3]
            ],
        },
    }


def generate_system_prompt(context: Mapping[str, Any]) -> str:
    user = context.get("user") or {}
    metrics = context.get("metrics") or {}
    user_name = user.get("name") or user.get("login") or "this developer"

    focused_profile = {
        "name": user_name,
        "bio": user.get("bio"),
        "location": user.get("location"),
        "followers": user.get("followers"),
        "following": user.get("following"),
        "public_repos": user.get("public_repos"),
        "created_at": user.get("created_at"),
    }
    repo_stats = {
        **(context.get("stats") or {}),
        "recent_activity": metrics.get("recent_activity", []),
        "top_repositories": metrics.get("top_repositories", []),
    }

    return SYSTEM_PROMPT_TEMPLATE.format(
        user_name=user_name,
        user_profile=json.dumps(focused_profile, indent=2),
        repo_stats=json.dumps(repo_stats, indent=2),
        activity_metrics=json.dumps(metrics.get("activity", {}), indent=2),
        language_stats=json.dumps(metrics.get("languages", {}), indent=2),
    )
