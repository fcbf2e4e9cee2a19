from datetime import date

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException

from gitinsights.api.dependencies import get_github_credentials
from gitinsights.api.dependencies import get_settings
from gitinsights.api.dependencies import get_today
from gitinsights.api.schemas.chat import ChatRequest
from gitinsights.api.schemas.chat import ChatResponse
from gitinsights.clients.gemini_client import LLMConfigurationError
from gitinsights.clients.gemini_client import LLMServiceError
from gitinsights.models import GitHubCredentials
from gitinsights.services.chat_service import answer_question
from gitinsights.services.insights_service import GitHubAPIError
from gitinsights.services.insights_service import InvalidGitHubTokenError
from gitinsights.settings import Settings


router = APIRouter()


@router.post("/chat", response_model=ChatResponse)
async def chat(
    payload: ChatRequest,
    credentials: GitHubCredentials = Depends(get_github_credentials),
    app_settings: Settings = Depends(get_settings),
    today: date = Depends(get_today),
) -> dict[str, str]:
    """Answer a question about the authenticated user's GitHub activity."""

    try:
        reply = await answer_question(
            credentials=credentials,
            app_settings=app_settings,
            message=payload.message,
            history=[message.model_dump() for message in payload.history],
            today=today,
        )
    except LLMConfigurationError as exc:
        raise HTTPException(
            status_code=503, detail="AI assistant is not configured"
        ) from exc
    except InvalidGitHubTokenError as exc:
        raise HTTPException(status_code=401, detail="GitHub token is invalid") from exc
    except GitHubAPIError as exc:
        raise HTTPException(
            status_code=502, detail="GitHub API request failed"
        ) from exc
    except LLMServiceError as exc:
        raise HTTPException(
            status_code=502, detail="AI assistant request failed"
        ) from exc

    return {"reply": reply}
