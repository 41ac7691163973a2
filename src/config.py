"""Application configuration loaded from environment variables and .env file."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Values are loaded from environment variables first,
    then from a .env file in the project root as fallback.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DATABASE_URL: str = "sqlite:///./dev.db"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Ledger oracle settings
    LEDGER_PROVIDER: str = "mock"
    SOLANA_RPC_URL: Optional[str] = None
    SOLANA_COMMITMENT: str = "confirmed"
    LEDGER_TIMEOUT_SECONDS: float = 10.0

    # Reconciliation settings
    OWNERSHIP_CACHE_TTL_SECONDS: float = 60.0
    SWEEP_BATCH_SIZE: int = 50
    SWEEP_BATCH_DELAY_SECONDS: float = 1.0
    SWEEP_INTERVAL_SECONDS: float = 0.0  # 0 = periodic sweep disabled


settings = Settings()
