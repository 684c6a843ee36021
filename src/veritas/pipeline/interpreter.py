"""Turn a provider envelope into an AnalysisResult.

Nothing in here raises: every anomaly in the provider's response becomes an
UNCERTAIN result with the offending text kept in ``raw``.
"""
from __future__ import annotations

import json
import math

import structlog
from pydantic import ValidationError

from veritas.llm.client import FailureKind, ProviderFailure
from veritas.models.schemas import (
    AnalysisResult,
    ClassificationPayload,
    Source,
    Verdict,
)

logger = structlog.get_logger()

ENGINE_ERROR = "Verification engine returned an error."
UNEXPECTED_RESPONSE = "Verification engine returned an unexpected response."
INVALID_RESPONSE = "Verification engine returned an invalid response."
NOT_CONFIGURED = "Verification engine is not configured on the server."
UNREACHABLE = "Unable to reach the verification engine."
TIMED_OUT = "Verification timed out."


class PayloadError(ValueError):
    """The model's text could not be read as a classification payload."""


def degraded(summary: str, reasons: list[str] | None = None, raw: str = "") -> AnalysisResult:
    return AnalysisResult(
        verdict=Verdict.UNCERTAIN,
        confidence=0.0,
        summary=summary,
        reasons=reasons or [],
        raw=raw,
    )


def timed_out(seconds: float | None) -> AnalysisResult:
    if seconds:
        reason = f"No response from the verification engine within {seconds:g} seconds."
    else:
        reason = "The request to the verification engine timed out."
    return degraded(TIMED_OUT, [reason])


def degrade(failure: ProviderFailure, timeout: float | None = None) -> AnalysisResult:
    """Map a model client failure onto an UNCERTAIN result."""
    if failure.kind == FailureKind.NOT_CONFIGURED:
        return degraded(
            NOT_CONFIGURED,
            ["Set OPENROUTER_API_KEY in the environment or the .env file."],
        )

    if failure.kind == FailureKind.HTTP_STATUS:
        return degraded(
            UNREACHABLE,
            [
                f"HTTP {failure.status_code} from model provider.",
                failure.body if failure.body.strip() else "No error body returned.",
            ],
        )

    if failure.kind == FailureKind.TIMEOUT:
        return timed_out(timeout)

    return degraded(UNREACHABLE, [failure.message or "Network error."])


def _lower_keys(value: dict) -> dict:
    return {str(k).lower(): v for k, v in value.items()}


def _load_json(text: str) -> object:
    """Strict json.loads. Fences, surrounding prose and runaway nesting all count as malformed."""
    try:
        return json.loads(text)
    except RecursionError as e:
        raise PayloadError("JSON is nested too deeply") from e
    except (ValueError, TypeError) as e:
        raise PayloadError(str(e)) from e


def parse_payload(text: str) -> ClassificationPayload:
    """Parse the model's text as a ClassificationPayload, matching keys case-insensitively.

    Raises PayloadError on invalid JSON or the wrong shape.
    """
    data = _load_json(text)
    if not isinstance(data, dict):
        raise PayloadError(f"Expected a JSON object, got {type(data).__name__}")

    data = _lower_keys(data)
    sources = data.get("sources")
    if isinstance(sources, list):
        data["sources"] = [_lower_keys(s) if isinstance(s, dict) else s for s in sources]

    try:
        return ClassificationPayload.model_validate(data)
    except (ValidationError, RecursionError) as e:
        raise PayloadError(str(e)) from e


def _clamp(value: float | None) -> float:
    if value is None or math.isnan(value):
        return 0.0
    return min(1.0, max(0.0, value))


def _normalize_verdict(value: str | None) -> Verdict:
    verdict = (value or "").strip().upper()
    try:
        return Verdict(verdict)
    except ValueError:
        return Verdict.UNCERTAIN


def normalize(payload: ClassificationPayload, raw: str) -> AnalysisResult:
    reasons = [r.strip() for r in payload.reasons or [] if r and r.strip()]

    sources = []
    for source in payload.sources or []:
        if source is None:
            continue
        name = (source.name or "").strip()
        url = (source.url or "").strip()
        if name or url:
            sources.append(Source(name=name, url=url))

    return AnalysisResult(
        verdict=_normalize_verdict(payload.verdict),
        confidence=_clamp(payload.confidence),
        summary=(payload.summary or "").strip(),
        reasons=reasons,
        sources=sources,
        raw=raw,
    )


def _error_message(error: object) -> str:
    if isinstance(error, dict):
        message = _lower_keys(error).get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
        try:
            return json.dumps(error)
        except (ValueError, RecursionError):
            return ENGINE_ERROR
    if isinstance(error, str) and error.strip():
        return error.strip()
    return ENGINE_ERROR


def interpret(envelope_text: str) -> AnalysisResult:
    """Read a chat-completion envelope and normalize the model's classification."""
    try:
        envelope = _load_json(envelope_text)
    except PayloadError as e:
        logger.warning("envelope_parse_failed", error=str(e), content=(envelope_text or "")[:300])
        return degraded(INVALID_RESPONSE, [str(e)], raw=envelope_text or "")

    if not isinstance(envelope, dict):
        return degraded(UNEXPECTED_RESPONSE, raw=envelope_text)

    choices = envelope.get("choices")
    if not isinstance(choices, list) or not choices:
        if envelope.get("error") is not None:
            message = _error_message(envelope["error"])
            logger.warning("provider_error", message=message[:300])
            return degraded(message, raw=envelope_text)
        logger.warning("provider_no_choices", content=envelope_text[:300])
        return degraded(UNEXPECTED_RESPONSE, raw=envelope_text)

    choice = choices[0]
    message = choice.get("message") if isinstance(choice, dict) else None
    text = message.get("content") if isinstance(message, dict) else None
    if not isinstance(text, str):
        logger.warning("provider_no_content", content=envelope_text[:300])
        return degraded(UNEXPECTED_RESPONSE, raw=envelope_text)

    try:
        payload = parse_payload(text)
    except PayloadError as e:
        logger.warning("llm_json_parse_failed", error=str(e)[:300], content=text[:300])
        return degraded(INVALID_RESPONSE, [str(e)], raw=text)

    return normalize(payload, text)
