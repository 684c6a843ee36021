from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI

from veritas.config import get_settings
from veritas.pipeline.orchestrator import Analyzer
from veritas.utils.logging import setup_logging
from veritas.api.analyze import router as analyze_router
from veritas.api.health import router as health_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    settings = get_settings()
    async with httpx.AsyncClient(timeout=settings.request_timeout_seconds) as client:
        app.state.analyzer = Analyzer(settings, client)
        yield


app = FastAPI(title="Veritas", version="0.1.0", lifespan=lifespan)

app.include_router(analyze_router)
app.include_router(health_router)


def run() -> None:
    """Entry point for the `veritas` console script."""
    uvicorn.run("veritas.main:app", host="0.0.0.0", port=8000)
