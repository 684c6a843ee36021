from __future__ import annotations

import html
import re
from urllib.parse import urlsplit

import structlog
import httpx

from veritas.config import Settings
from veritas.models.schemas import AnalysisMode, ResolvedContent
from veritas.utils.text import truncate

logger = structlog.get_logger()

NO_CONTENT = "No content provided."
DEFAULT_USER_AGENT = "Veritas/0.1 (Misinformation Detector)"

_SCRIPT_RE = re.compile(r"<script[\s\S]*?</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style[\s\S]*?</style>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


def looks_like_url(value: str) -> bool:
    """Return True if value is an absolute http(s) URL."""
    if not value or not value.strip():
        return False
    candidate = value.strip()
    if _WHITESPACE_RE.search(candidate):
        return False
    try:
        parts = urlsplit(candidate)
    except ValueError:
        return False
    return parts.scheme.lower() in {"http", "https"} and bool(parts.hostname)


def html_to_text(raw_html: str, max_chars: int = 8000) -> str:
    """Reduce an HTML document to a single line of readable text."""
    if not raw_html or not raw_html.strip():
        return ""

    text = _SCRIPT_RE.sub(" ", raw_html)
    text = _STYLE_RE.sub(" ", text)
    text = _TAG_RE.sub(" ", text)
    text = html.unescape(text)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    return truncate(text, max_chars)


def effective_mode(mode: AnalysisMode, value: str) -> AnalysisMode:
    if mode == AnalysisMode.AUTO:
        return AnalysisMode.LINK if looks_like_url(value) else AnalysisMode.TEXT
    return mode


async def fetch_page_text(
    url: str,
    client: httpx.AsyncClient,
    max_chars: int = 8000,
    timeout: float = 15.0,
    user_agent: str = DEFAULT_USER_AGENT,
) -> str | None:
    """Fetch a URL and return plain text content, or None on failure."""
    try:
        resp = await client.get(
            url,
            follow_redirects=True,
            timeout=timeout,
            headers={"User-Agent": user_agent},
        )
        resp.raise_for_status()
        text = html_to_text(resp.text, max_chars=max_chars)
        return text or None

    except Exception as e:
        logger.warning("page_fetch_failed", url=url, error=str(e)[:200])
        return None


async def resolve(
    mode: AnalysisMode,
    value: str,
    client: httpx.AsyncClient,
    settings: Settings,
    user_agent: str = DEFAULT_USER_AGENT,
) -> ResolvedContent:
    """Turn the caller's input into the text the model will see. Never raises for fetch errors."""
    if not value or not value.strip():
        return ResolvedContent(text=NO_CONTENT)

    value = value.strip()
    if effective_mode(mode, value) != AnalysisMode.LINK:
        return ResolvedContent(text=value)

    page_text = await fetch_page_text(
        value,
        client,
        max_chars=settings.max_content_chars,
        timeout=settings.fetch_timeout_seconds,
        user_agent=user_agent,
    )
    if page_text:
        logger.info("page_fetched", url=value, chars=len(page_text))
        return ResolvedContent(
            text=f"Source URL: {value}\n\nExtracted page text:\n{page_text}",
            source_url=value,
            fetched=True,
        )

    return ResolvedContent(text=f"Source URL (failed to fetch): {value}", source_url=value)
