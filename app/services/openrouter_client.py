"""
OpenRouter chat-completions client.

Text moderation uses a free text model; document categorization sends the
file as a data URL to a vision model.
"""

import time

import httpx

from app.core.config import settings
from app.core.logging_config import get_logger

logger = get_logger(__name__)

OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"
APP_TITLE = "StudyShare Knowledge Platform"

DEFAULT_MAX_TOKENS = 1024
DEFAULT_TEMPERATURE = 0.3


class OpenRouterError(Exception):
    """Raised when OpenRouter is unconfigured, unreachable, or returns nothing usable."""
    pass


def is_configured() -> bool:
    return bool(settings.openrouter_api_key)


def _headers() -> dict[str, str]:
    return {
        "Authorization": f"Bearer {settings.openrouter_api_key}",
        "Content-Type": "application/json",
        "HTTP-Referer": settings.app_url,
        "X-Title": APP_TITLE,
    }


def _post_chat(model: str, content, max_tokens: int, temperature: float) -> str:
    if not is_configured():
        raise OpenRouterError("OPENROUTER_API_KEY not configured")

    payload = {
        "model": model,
        "messages": [{"role": "user", "content": content}],
        "max_tokens": max_tokens,
        "temperature": temperature,
    }

    start_time = time.time()
    logger.info(f"OpenRouter request | model={model} | max_tokens={max_tokens}")
    try:
        with httpx.Client(timeout=settings.openrouter_timeout_seconds) as client:
            resp = client.post(OPENROUTER_API_URL, json=payload, headers=_headers())
    except httpx.HTTPError as e:
        logger.error(f"OpenRouter request failed | model={model} | error={e}")
        raise OpenRouterError(f"OpenRouter request failed: {e}") from e

    duration_ms = (time.time() - start_time) * 1000
    if resp.status_code >= 400:
        logger.error(
            f"OpenRouter API error | status={resp.status_code} | "
            f"duration={duration_ms:.2f}ms | body={resp.text[:500]}"
        )
        raise OpenRouterError(f"OpenRouter API error: {resp.status_code} - {resp.text[:200]}")

    data = resp.json()
    choices = data.get("choices") or []
    if not choices:
        raise OpenRouterError("No response from OpenRouter API")

    usage = data.get("usage") or {}
    logger.info(
        f"OpenRouter completed | model={model} | duration={duration_ms:.2f}ms | "
        f"prompt_tokens={usage.get('prompt_tokens')} | completion_tokens={usage.get('completion_tokens')}"
    )
    return choices[0]["message"]["content"] or ""


def call_openrouter(
    prompt: str,
    model: str | None = None,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    temperature: float = DEFAULT_TEMPERATURE,
) -> str:
    """Send a text prompt and return the first choice's content."""
    return _post_chat(model or settings.openrouter_text_model, prompt, max_tokens, temperature)


def call_openrouter_with_file(
    prompt: str,
    data_b64: str,
    mime_type: str,
    model: str | None = None,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    temperature: float = DEFAULT_TEMPERATURE,
) -> str:
    """Send a prompt plus a base64 file (image or PDF) to the vision model."""
    content = [
        {"type": "text", "text": prompt},
        {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{data_b64}"}},
    ]
    return _post_chat(model or settings.openrouter_vision_model, content, max_tokens, temperature)
