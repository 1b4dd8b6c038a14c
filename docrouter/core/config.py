from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "Document Router"
    debug: bool = False
    api_prefix: str = "/api"

    # LLM oracle (provider: google | anthropic)
    llm_provider: str = "google"
    llm_model: str = ""  # auto-defaults per provider if empty
    google_ai_api_key: str = ""
    anthropic_api_key: str = ""
    oracle_timeout_seconds: float = 60.0
    oracle_temperature: float = 0.0

    # Shared history
    history_capacity: int = 50
    excerpt_chars: int = 500

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
