from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnalysisMode(str, Enum):
    TEXT = "text"
    LINK = "link"
    AUTO = "auto"


class Verdict(str, Enum):
    GOOD = "GOOD"
    BAD = "BAD"
    UNCERTAIN = "UNCERTAIN"


class AnalysisRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: AnalysisMode = AnalysisMode.AUTO
    input: str = ""

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value):
        if value is None:
            return AnalysisMode.AUTO
        if isinstance(value, AnalysisMode):
            return value
        mode = str(value).strip().lower()
        if not mode:
            return AnalysisMode.AUTO
        # Unrecognised modes are analysed as plain text.
        if mode not in {m.value for m in AnalysisMode}:
            return AnalysisMode.TEXT
        return mode

    @field_validator("input", mode="before")
    @classmethod
    def _none_input(cls, value):
        return "" if value is None else value


class ResolvedContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    source_url: str | None = None
    fetched: bool = False


class PayloadSource(BaseModel):
    name: str | None = None
    url: str | None = None


class ClassificationPayload(BaseModel):
    """Shape the model is asked to return. Every field is untrusted."""

    verdict: str | None = None
    confidence: float | None = None
    summary: str | None = None
    reasons: list[str | None] | None = None
    sources: list[PayloadSource | None] | None = None


class Source(BaseModel):
    name: str = ""
    url: str = ""


class AnalysisResult(BaseModel):
    verdict: Verdict = Verdict.UNCERTAIN
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    summary: str = ""
    reasons: list[str] = []
    sources: list[Source] = []
    raw: str = ""


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    provider_configured: bool = False
    model: str = ""
