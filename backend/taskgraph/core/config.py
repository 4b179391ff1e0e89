"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "TaskGraph Planner"
    log_level: str = "INFO"
    embedding_enabled: bool = True
    embedding_api_key: str | None = None
    embedding_base_url: str = "https://api.deepseek.com/v1"
    embedding_model: str = "deepseek-embed"
    embedding_timeout_seconds: float = 10.0
    similarity_threshold: float = 0.7
    related_min_results: int = 3
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "taskgraph"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
