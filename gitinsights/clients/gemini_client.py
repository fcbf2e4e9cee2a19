from collections.abc import Mapping
from collections.abc import Sequence
from typing import Any

import httpx

from gitinsights.settings import Settings


GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 2048,
}

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


class LLMConfigurationError(Exception):
    """Raised when no generative-language API key is configured."""


class LLMServiceError(Exception):
    """Raised when the generative-language API call fails."""


def build_contents(
    history: Sequence[Mapping[str, str]], message: str
) -> list[dict[str, object]]:
    """Convert chat history plus the new message to API `contents`.

    The API names the assistant side `model`.
    """

    contents: list[dict[str, object]] = []
    for item in history:
        text = item.get("content", "")
        if not text:
            continue
        role = "model" if item.get("role") == "assistant" else "user"
        contents.append({"role": role, "parts": [{"text": text}]})
    contents.append({"role": "user", "parts": [{"text": message}]})
    return contents


def extract_reply(payload: Any) -> str:
    if not isinstance(payload, Mapping):
        raise LLMServiceError("Generative API response is invalid")

    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        feedback = payload.get("promptFeedback")
        reason = feedback.get("blockReason") if isinstance(feedback, Mapping) else None
        raise LLMServiceError(f"No reply generated ({reason or 'empty response'})")

    content = candidates[0].get("content") if isinstance(candidates[0], Mapping) else None
    parts = content.get("parts") if isinstance(content, Mapping) else None
    if not isinstance(parts, list):
        raise LLMServiceError("Generative API reply has no content")

    text = "".join(
        part.get("text", "") for part in parts if isinstance(part, Mapping)
    ).strip()
    if not text:
        raise LLMServiceError("Generative API reply is empty")
    return text


async def generate_reply(
    app_settings: Settings,
    system_prompt: str,
    history: Sequence[Mapping[str, str]],
    message: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Ask the hosted model for the next assistant turn."""

    if not app_settings.gemini_api_key:
        raise LLMConfigurationError("GEMINI_API_KEY is not set")

    url = (
        f"{app_settings.gemini_api_base_url}/models/"
        f"{app_settings.gemini_model}:generateContent"
    )
    body = {
        "systemInstruction": {"parts": [{"text": system_prompt}]},
        "contents": build_contents(history, message),
        "generationConfig": GENERATION_CONFIG,
        "safetySettings": SAFETY_SETTINGS,
    }

    try:
        async with httpx.AsyncClient(
            timeout=app_settings.http_timeout_seconds * 2, transport=transport
        ) as client:
            response = await client.post(
                url,
                json=body,
                headers={"x-goog-api-key": app_settings.gemini_api_key},
            )
            response.raise_for_status()
            payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise LLMServiceError("Generative API request failed") from exc

    return extract_reply(payload)
