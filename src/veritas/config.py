from __future__ import annotations

from pathlib import Path
from functools import lru_cache

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict


ROOT_DIR = Path(__file__).resolve().parent.parent.parent

# In Docker, the package is installed to site-packages but config lives at /app/config.
# Fall back to the source-tree-relative path for local development.
_docker_config = Path("/app/config")
CONFIG_DIR = _docker_config if _docker_config.exists() else ROOT_DIR / "config"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # OpenRouter
    openrouter_api_key: str = ""
    openrouter_model: str = "openai/gpt-oss-120b:free"
    openrouter_url: str = "https://openrouter.ai/api/v1/chat/completions"

    # Access control for /api/analyze (empty = open)
    client_api_key: str = ""

    # Limits
    max_content_chars: int = 8000
    max_error_body_chars: int = 500
    request_timeout_seconds: float = 30.0
    fetch_timeout_seconds: float = 15.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @property
    def provider_configured(self) -> bool:
        return bool(self.openrouter_api_key.strip())

    def load_yaml_config(self) -> dict:
        settings_path = CONFIG_DIR / "settings.yaml"
        if settings_path.exists():
            with open(settings_path) as f:
                return yaml.safe_load(f) or {}
        return {}


@lru_cache
def get_settings() -> Settings:
    return Settings()
