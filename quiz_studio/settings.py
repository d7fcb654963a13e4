"""Environment-driven settings for the quiz service."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from quiz_studio.constants.generation_constants import (
    COMPLETION_API_URL,
    DEFAULT_MODEL,
    GENERATION_TIMEOUT_SECONDS,
)
from quiz_studio.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT


class Settings(BaseSettings):
    """Values read from the environment or a local ``.env`` file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    GROQ_API_KEY: str | None = None
    COMPLETION_API_URL: str = COMPLETION_API_URL
    DEFAULT_MODEL: str = DEFAULT_MODEL
    GENERATION_TIMEOUT_SECONDS: float = GENERATION_TIMEOUT_SECONDS
    API_HOST: str = DEFAULT_HOST
    API_PORT: int = DEFAULT_PORT
    LOG_LEVEL: str = "INFO"

    @property
    def generation_configured(self) -> bool:
        return bool(self.GROQ_API_KEY)


def load_settings() -> Settings:
    return Settings()
