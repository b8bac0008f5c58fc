from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env",), env_prefix="", case_sensitive=False)

    REDIS_URL: str = Field(default="redis://localhost:6379/0")

    LOG_LEVEL: str = Field(default="INFO")

    # Transaction log retention (newest N by timestamp are kept)
    MAX_TRANSACTIONS_TO_STORE: int = Field(default=1000, ge=1)

    # When disabled the store is memory-only for the process lifetime
    PERSISTENCE_ENABLED: bool = Field(default=True)
    STORAGE_NAMESPACE: str = Field(default="analytics")
    PERSIST_RETRY_MAX: int = Field(default=3, ge=1)

    RANKING_DEFAULT_COUNT: int = Field(default=5, ge=1)


settings = Settings()
