"""Application configuration using Pydantic Settings.

Reads configuration from environment variables with sensible defaults.
Secrets (database and SMTP passwords) should only be provided via environment.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Application
    # =========================================================================
    environment: Literal["prod", "staging", "dev"] = Field(
        default="dev",
        description="Environment name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode (echoes SQL)",
    )

    # =========================================================================
    # Database
    # =========================================================================
    db_user: str = Field(default="ferm", description="Database user")
    db_password: str = Field(default="", description="Database password")
    db_name: str = Field(default="fermdb", description="Database name")
    db_host: str = Field(default="localhost", description="Database host")
    db_port: int = Field(default=5432, description="Database port")
    db_pool_size: int = Field(
        default=5,
        description="Database connection pool size",
    )
    db_pool_max_overflow: int = Field(
        default=10,
        description="Max overflow connections beyond pool size",
    )
    db_url_override: str = Field(
        default="",
        description="Full SQLAlchemy URL, takes precedence over db_* parts",
    )
    db_connect_retries: int = Field(
        default=5,
        ge=1,
        description="Attempts to reach the database at startup",
    )
    db_connect_retry_delay_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Fixed delay between database connect attempts",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """Async SQLAlchemy URL for the plot and inventory tables."""
        if self.db_url_override:
            return self.db_url_override
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # =========================================================================
    # Message broker (Kafka)
    # =========================================================================
    broker_enabled: bool = Field(
        default=False,
        description="Enable the Kafka command/notification pipeline",
    )
    broker_bootstrap_servers: str = Field(
        default="",
        description="Comma-separated list of Kafka bootstrap servers",
    )
    broker_client_id: str = Field(
        default="ferm-backend",
        description="Kafka client id",
    )
    plant_topic: str = Field(
        default="garden.plant",
        description="Topic carrying planting commands",
    )
    maturity_topic: str = Field(
        default="garden.maturity",
        description="Topic carrying maturity notifications",
    )
    plant_consumer_group: str = Field(
        default="ferm-plant-consumers",
        description="Consumer group for the planting command consumer",
    )
    maturity_consumer_group: str = Field(
        default="ferm-maturity-consumers",
        description="Consumer group for the maturity notification consumer",
    )
    broker_connect_retries: int = Field(
        default=5,
        ge=1,
        description="Attempts per broker connect call",
    )
    broker_connect_retry_delay_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Fixed delay between broker connect attempts",
    )
    broker_health_recheck_seconds: float = Field(
        default=30.0,
        ge=0.0,
        description="Cooldown before an unhealthy broker is tried again",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def broker_servers(self) -> list[str]:
        """Bootstrap servers as a list, empty entries dropped."""
        return [
            server.strip()
            for server in self.broker_bootstrap_servers.split(",")
            if server.strip()
        ]

    # =========================================================================
    # Garden
    # =========================================================================
    garden_slots: int = Field(
        default=6,
        ge=1,
        description="Number of plots created for every user",
    )
    growth_minutes: int = Field(
        default=10,
        ge=0,
        description="Minutes a crop needs between planting and maturity",
    )
    maturity_check_interval_seconds: float = Field(
        default=60.0,
        gt=0.0,
        description="Interval between maturity scans",
    )
    scanner_enabled: bool = Field(
        default=True,
        description="Run the maturity scanner in this process",
    )

    # =========================================================================
    # Email
    # =========================================================================
    email_enabled: bool = Field(
        default=False,
        description="Enable maturity email delivery",
    )
    smtp_host: str = Field(default="localhost", description="SMTP host")
    smtp_port: int = Field(default=587, description="SMTP port")
    smtp_user: str = Field(default="", description="SMTP user")
    smtp_password: str = Field(default="", description="SMTP password")
    smtp_use_tls: bool | None = Field(
        default=None,
        description="Implicit TLS; defaults to True when smtp_port is 465",
    )
    email_from: str = Field(
        default="ferm@localhost",
        description="Sender address for notifications",
    )
    email_timeout_seconds: float = Field(
        default=10.0,
        description="SMTP timeout in seconds",
    )

    # =========================================================================
    # Logging
    # =========================================================================
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_json: bool = Field(
        default=True,
        description="Output logs as JSON",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Singleton instance for convenience
settings = get_settings()
