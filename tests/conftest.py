from __future__ import annotations

import json
import os

import pytest
import httpx
from httpx import AsyncClient, ASGITransport

# Override settings before importing app
os.environ["OPENROUTER_API_KEY"] = "test-key"
os.environ["OPENROUTER_MODEL"] = "test/model"
os.environ["CLIENT_API_KEY"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from veritas.main import app
from veritas.api.analyze import get_analyzer
from veritas.config import Settings
from veritas.pipeline.orchestrator import Analyzer

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"


def make_envelope(content: str | None, **extra) -> dict:
    """Build an OpenRouter chat completion envelope around the model's text."""
    envelope = {
        "id": "gen-123",
        "model": "test/model",
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }
        ],
        "usage": {"prompt_tokens": 420, "completion_tokens": 80, "total_tokens": 500},
    }
    envelope.update(extra)
    return envelope


def make_payload(**overrides) -> str:
    payload = {
        "verdict": "GOOD",
        "confidence": 0.9,
        "summary": "Accurate report.",
        "reasons": ["Matches official statements"],
        "sources": [{"name": "Reuters", "url": "https://www.reuters.com/"}],
    }
    payload.update(overrides)
    return json.dumps(payload)


@pytest.fixture
def settings():
    return Settings(openrouter_api_key="test-key", openrouter_model="test/model")


@pytest.fixture
def unconfigured_settings():
    return Settings(openrouter_api_key="", openrouter_model="test/model")


@pytest.fixture
async def http_client():
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture
def analyzer(settings, http_client):
    return Analyzer(settings, http_client)


@pytest.fixture
async def client(analyzer):
    app.dependency_overrides[get_analyzer] = lambda: analyzer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
