from __future__ import annotations

from fastapi import APIRouter

from veritas.config import get_settings
from veritas.models.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health():
    settings = get_settings()
    return HealthResponse(
        provider_configured=settings.provider_configured,
        model=settings.openrouter_model,
    )
