from collections.abc import Mapping
from collections.abc import Sequence
from datetime import date

from gitinsights.clients import gemini_client
from gitinsights.clients import github_client
from gitinsights.models import ALL_YEARS
from gitinsights.models import GitHubCredentials
from gitinsights.services.insights_service import call_github
from gitinsights.services.insights_service import load_user_repositories
from gitinsights.services.prompt_builder import build_system_context
from gitinsights.services.prompt_builder import generate_system_prompt
from gitinsights.settings import Settings


async def answer_question(
    credentials: GitHubCredentials,
    app_settings: Settings,
    message: str,
    history: Sequence[Mapping[str, str]],
    today: date,
) -> str:
    """Answer a chat message using the user's GitHub data as context."""

    if not app_settings.gemini_api_key:
        raise gemini_client.LLMConfigurationError("GEMINI_API_KEY is not set")

    user, repositories, _ = await load_user_repositories(credentials, ALL_YEARS)
    async with github_client.create_client(credentials) as client:
        summary = await call_github(
            github_client.fetch_contribution_summary(
                client, credentials.graphql_url, user["login"]
            )
        )

    context = build_system_context(user, repositories, today, summary)
    return await gemini_client.generate_reply(
        app_settings,
        generate_system_prompt(context),
        history,
        message,
    )
