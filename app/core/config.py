# app/core/config.py

from typing import Any, Optional
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
import os

# Project root (two levels above app/core).
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class Settings(BaseSettings):
    """
    All application settings, loaded from environment variables and the
    project-root .env file.
    """

    # --- Pydantic Settings ---
    model_config = SettingsConfigDict(
        env_file=os.path.join(BASE_DIR, '.env'),
        env_file_encoding='utf-8',
        extra='ignore',                      # ignore .env keys the model does not declare
        case_sensitive=True
    )

    # --- Application ---
    APP_NAME: str = "Parts Tracker API"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Project, product and parts inventory tracking API"
    APP_ENV: str = Field("development", description="Application environment (e.g., development, production, testing)")
    DEBUG_MODE: bool = Field(False, description="Echo SQL and enable verbose error messages")
    LOG_LEVEL: str = Field("INFO", description="Root logging level")

    # --- Database ---
    DATABASE_URL: SecretStr = Field(..., description="Async SQLAlchemy database URL (postgresql+asyncpg://...)")

    # --- Background jobs (ARQ) ---
    REDIS_URL: Optional[str] = Field(None, description="Redis DSN for the ARQ job queue; jobs run inline when unset")

    # --- Inventory ---
    SYSTEM_ACTOR_NAME: str = Field("System", description="actor_name recorded on activities when the caller sends none")
    STRICT_TEMPLATE_LOCKING: bool = Field(
        False,
        description="Lock every balance row involved in apply-template before checking availability"
    )
    BALANCES_MAINTAINED_BY_DB_TRIGGER: bool = Field(
        False,
        description="Skip the application-level balance recompute; the inv.activities trigger maintains balances"
    )
    DEFAULT_PAGE_SIZE: int = Field(50, description="Default page size for the activity log")

    def model_post_init(self, __context: Any) -> None:  # noqa: ANN001
        self.LOG_LEVEL = self.LOG_LEVEL.upper()

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.get_secret_value().startswith("sqlite")


settings = Settings()
