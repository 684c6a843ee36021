from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request

from veritas.config import get_settings
from veritas.models.schemas import AnalysisRequest, AnalysisResult
from veritas.pipeline.orchestrator import Analyzer, EmptyInputError

logger = structlog.get_logger()

router = APIRouter(prefix="/api")


def get_analyzer(request: Request) -> Analyzer:
    return request.app.state.analyzer


def _presented_key(x_veritas_key: str | None, authorization: str | None) -> str:
    if x_veritas_key:
        return x_veritas_key.strip()
    if authorization:
        value = authorization.strip()
        if value.lower().startswith("bearer "):
            value = value[len("bearer "):]
        return value.strip()
    return ""


@router.post("/analyze", response_model=AnalysisResult)
async def analyze(
    payload: AnalysisRequest,
    analyzer: Analyzer = Depends(get_analyzer),
    x_veritas_key: str | None = Header(None),
    authorization: str | None = Header(None),
):
    settings = get_settings()

    # Verify client key if configured
    client_key = settings.client_api_key.strip()
    if client_key:
        key = _presented_key(x_veritas_key, authorization)
        if key != client_key:
            logger.warning("analyze_unauthorized")
            raise HTTPException(
                status_code=401,
                detail="Unauthorized. Provide a valid X-Veritas-Key or Authorization: Bearer key.",
            )

    try:
        return await analyzer.analyze(payload, timeout=settings.request_timeout_seconds)
    except EmptyInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
