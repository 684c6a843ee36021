from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum

import structlog
import httpx

from veritas.config import Settings
from veritas.llm.prompts import LLMOptions, Prompt
from veritas.utils.text import truncate

logger = structlog.get_logger()


class FailureKind(str, Enum):
    NOT_CONFIGURED = "not_configured"
    HTTP_STATUS = "http_status"
    TRANSPORT = "transport"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class ProviderEnvelope:
    """Successful provider response, body kept as text for the interpreter."""

    body: str
    status_code: int = 200


@dataclass(frozen=True)
class ProviderFailure:
    kind: FailureKind
    message: str = ""
    status_code: int | None = None
    body: str = ""


def build_request_body(prompt: Prompt, model: str) -> dict:
    body: dict = {
        "model": model,
        "messages": prompt.messages,
        "temperature": prompt.temperature,
        "top_p": prompt.top_p,
    }
    if prompt.max_tokens:
        body["max_tokens"] = prompt.max_tokens
    if prompt.response_format:
        body["response_format"] = prompt.response_format
    return body


async def send(
    prompt: Prompt,
    settings: Settings,
    client: httpx.AsyncClient,
    options: LLMOptions | None = None,
) -> ProviderEnvelope | ProviderFailure:
    """POST the prompt to the OpenRouter chat completion API.

    Makes exactly one attempt. Never raises for provider or network errors:
    those come back as a ProviderFailure. Caller cancellation still propagates.
    """
    if not settings.provider_configured:
        logger.warning("llm_not_configured")
        return ProviderFailure(kind=FailureKind.NOT_CONFIGURED, message="API key is not configured")

    options = options or LLMOptions()
    headers = {
        "Authorization": f"Bearer {settings.openrouter_api_key.strip()}",
        "Content-Type": "application/json",
        "HTTP-Referer": options.referer,
        "X-Title": options.title,
    }
    body = build_request_body(prompt, settings.openrouter_model)

    try:
        resp = await client.post(settings.openrouter_url, json=body, headers=headers)
    except httpx.TimeoutException as e:
        logger.warning("llm_request_timeout", error=str(e)[:200])
        return ProviderFailure(kind=FailureKind.TIMEOUT, message=str(e))
    except httpx.HTTPError as e:
        logger.error("llm_request_failed", error=str(e)[:200], error_type=type(e).__name__)
        return ProviderFailure(kind=FailureKind.TRANSPORT, message=f"{type(e).__name__}: {e}")

    if not resp.is_success:
        error_body = truncate(resp.text, settings.max_error_body_chars)
        logger.error("llm_http_error", status=resp.status_code, body=error_body[:200])
        return ProviderFailure(
            kind=FailureKind.HTTP_STATUS,
            message=f"HTTP {resp.status_code}",
            status_code=resp.status_code,
            body=error_body,
        )

    _log_usage(resp.text, settings.openrouter_model)
    return ProviderEnvelope(body=resp.text, status_code=resp.status_code)


def _log_usage(text: str, model: str) -> None:
    try:
        data = json.loads(text)
    except (ValueError, RecursionError, TypeError):
        return
    if not isinstance(data, dict):
        return

    usage = data.get("usage")
    if not isinstance(usage, dict):
        return

    logger.info(
        "llm_usage",
        model=data.get("model", model),
        prompt_tokens=usage.get("prompt_tokens", 0),
        completion_tokens=usage.get("completion_tokens", 0),
        total_tokens=usage.get("total_tokens", 0),
    )
