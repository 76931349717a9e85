from typing import Final

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_DATABASE_URL, DEFAULT_PORT
from .domain.constants import BARN_CAPACITY


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env files."""

    # Server configuration
    debug: bool = Field(default=True, description="Enable debug mode")
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535, description="Server port")

    # Database configuration
    database_url: str = Field(
        default=DEFAULT_DATABASE_URL, description="Database connection URL"
    )
    db_name: str = Field(default="farm", description="Database name for SQLite")

    # Application configuration
    app_name: str = Field(default="Farm", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")

    # Allocation configuration
    barn_capacity: int = Field(
        default=BARN_CAPACITY,
        ge=1,
        description="Maximum number of animals a single barn can hold",
    )

    # Logging configuration
    log_to_file: bool = Field(
        default=False, description="Force logging to file even in debug mode"
    )

    # Pydantic Settings configuration
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug

    @computed_field  # type: ignore[prop-decorator]
    @property
    def effective_database_url(self) -> str:
        """Get the effective database URL, handling SQLite with db_name."""
        if self.database_url == DEFAULT_DATABASE_URL and self.db_name != "farm":
            return f"sqlite:///./{self.db_name}.db"
        return self.database_url


# Global settings instance
settings: Final = Settings()
