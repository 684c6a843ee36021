from __future__ import annotations

import asyncio

import structlog
import httpx

from veritas.config import Settings
from veritas.llm.client import ProviderFailure, send
from veritas.llm.prompts import LLMOptions, build_prompt
from veritas.models.schemas import AnalysisMode, AnalysisRequest, AnalysisResult
from veritas.pipeline import interpreter
from veritas.pipeline.resolver import DEFAULT_USER_AGENT, resolve

logger = structlog.get_logger()


class EmptyInputError(ValueError):
    """Raised when an analysis is requested without any input."""


class Analyzer:
    """Runs one analysis per call: resolve, prompt, send, interpret.

    Holds only read-only configuration and the shared HTTP client, so a single
    instance serves concurrent requests.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient) -> None:
        self.settings = settings
        self.client = client

        yaml_config = settings.load_yaml_config()
        self.llm_options = LLMOptions(**(yaml_config.get("llm") or {}))
        self.user_agent = (yaml_config.get("resolver") or {}).get("user_agent", DEFAULT_USER_AGENT)

    async def analyze(self, request: AnalysisRequest, timeout: float | None = None) -> AnalysisResult:
        """Analyze the request. Raises EmptyInputError only; every other failure is a degraded result."""
        if not request.input or not request.input.strip():
            raise EmptyInputError("Input is required.")

        try:
            async with asyncio.timeout(timeout):
                result = await self._run(request, timeout)
        except TimeoutError:
            logger.warning("analysis_timed_out", mode=request.mode.value, timeout=timeout)
            return interpreter.timed_out(timeout)

        logger.info(
            "analysis_complete",
            mode=request.mode.value,
            verdict=result.verdict.value,
            confidence=result.confidence,
        )
        return result

    async def _run(self, request: AnalysisRequest, timeout: float | None) -> AnalysisResult:
        # Stage 1: Resolve content (fetches the page for links)
        content = await resolve(
            request.mode,
            request.input,
            self.client,
            self.settings,
            user_agent=self.user_agent,
        )
        logger.info(
            "pipeline_resolved",
            mode=request.mode.value,
            source_url=content.source_url,
            fetched=content.fetched,
        )

        # Stage 2: Build the prompt
        prompt = build_prompt(content.text, self.llm_options)

        # Stage 3: Call the model provider
        reply = await send(prompt, self.settings, self.client, self.llm_options)
        if isinstance(reply, ProviderFailure):
            logger.warning("pipeline_provider_failed", kind=reply.kind.value, status=reply.status_code)
            return interpreter.degrade(reply, timeout)

        # Stage 4: Interpret the envelope
        return interpreter.interpret(reply.body)


async def analyze(
    analyzer: Analyzer,
    mode: AnalysisMode | str,
    value: str,
    timeout: float | None = None,
) -> AnalysisResult:
    """Convenience wrapper for in-process callers holding plain strings."""
    return await analyzer.analyze(AnalysisRequest(mode=mode, input=value), timeout=timeout)
