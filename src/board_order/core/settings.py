"""Application settings and configuration.

This module defines all configuration options for the board-order service.
Settings are loaded from environment variables with sensible defaults.
"""

from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from board_order.core.position import PositionConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Board Order", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./board_order.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Position algebra tuning (spacing of fresh layouts and split health)
    position_default_gap: Decimal = Field(default=Decimal(65535), alias="POSITION_DEFAULT_GAP")
    position_min_gap: Decimal = Field(default=Decimal("0.0001"), alias="POSITION_MIN_GAP")
    position_scale: int = Field(default=10, ge=0, le=20, alias="POSITION_SCALE")
    position_jitter_ratio: Decimal = Field(
        default=Decimal("0.1"),
        ge=0,
        le=Decimal("0.5"),
        alias="POSITION_JITTER_RATIO",
    )

    # Move protocol: extra attempts after a uniqueness conflict
    move_max_retries: int = Field(default=3, ge=0, alias="MOVE_MAX_RETRIES")
    auto_rebalance: bool = Field(default=True, alias="AUTO_REBALANCE")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def position_config(self) -> PositionConfig:
        """Return the position tuning shared by the algebra and the rebalancer."""
        return PositionConfig(
            default_gap=self.position_default_gap,
            min_gap=self.position_min_gap,
            scale=self.position_scale,
            jitter_ratio=self.position_jitter_ratio,
        )


settings = Settings()
