"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Meligy configuration. All values come from environment variables."""

    # Google AI Studio (Gemini)
    gemini_api_key: str = Field(default="")
    gemini_api_base: str = Field(default="https://generativelanguage.googleapis.com/v1beta")
    gemini_text_model: str = Field(default="gemini-2.0-flash")
    gemini_image_model: str = Field(default="gemini-2.0-flash-exp")

    # Outbound HTTP
    http_timeout: float = Field(default=20.0)

    # Conversation
    context_window_size: int = Field(default=6)

    # Search
    search_max_results: int = Field(default=5)

    # Free tier
    daily_message_limit: int = Field(default=25)

    # Database (key-value state)
    database_path: Path = Field(default=Path("data/meligy.db"))

    # Web API
    web_host: str = Field(default="0.0.0.0")
    web_port: int = Field(default=8080)

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def model_url(self, model: str) -> str:
        """Build the generateContent URL for a Gemini model."""
        return f"{self.gemini_api_base.rstrip('/')}/models/{model}:generateContent"


settings = Settings()
