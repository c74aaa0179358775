"""Application configuration using pydantic-settings."""
from functools import lru_cache
from urllib.parse import urlparse

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # Development mode - bypasses auth for local development
    dev_mode: bool = Field(default=False, validation_alias="DEV_MODE")

    # CORS - comma-separated list of allowed origins (stored as string, parsed via property)
    cors_origins_str: str = Field(
        default="http://localhost:5173",
        validation_alias="CORS_ORIGINS",
    )

    # Public site URL - used to build story permalinks
    site_url: str = Field(default="http://localhost:8000", validation_alias="SITE_URL")

    # Story listing pagination
    stories_per_page_default: int = Field(
        default=10, ge=1, validation_alias="STORIES_PER_PAGE_DEFAULT",
    )
    stories_per_page_max: int = Field(
        default=100, ge=1, validation_alias="STORIES_PER_PAGE_MAX",
    )

    # Per-call timeout at the content-store boundary
    query_timeout_seconds: float = Field(
        default=10.0, gt=0, validation_alias="QUERY_TIMEOUT_SECONDS",
    )

    # Publisher logos are stored by id; the URL is derived from this template
    publisher_logo_url_template: str = Field(
        default="http://localhost:8000/media/{id}",
        validation_alias="PUBLISHER_LOGO_URL_TEMPLATE",
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @model_validator(mode="after")
    def validate_dev_mode_security(self) -> "Settings":
        """
        Prevent DEV_MODE from being enabled with a production database.

        DEV_MODE completely bypasses authentication, so we must ensure it's only
        used with local development databases to prevent accidental production exposure.
        """
        if not self.dev_mode:
            return self

        parsed = urlparse(self.database_url)
        # SQLite URLs have no host and are always local
        if parsed.scheme.startswith("sqlite"):
            return self

        hostname = parsed.hostname or ""
        local_hosts = {"localhost", "127.0.0.1", "0.0.0.0", "::1"}
        if hostname.lower() not in local_hosts:
            raise ValueError(
                f"DEV_MODE cannot be enabled with a non-local database. "
                f"Database host '{hostname}' appears to be a production database. "
                f"DEV_MODE bypasses all authentication and must only be used locally.",
            )

        return self

    @model_validator(mode="after")
    def validate_per_page_bounds(self) -> "Settings":
        """The default page size must fit under the configured ceiling."""
        if self.stories_per_page_default > self.stories_per_page_max:
            raise ValueError(
                "STORIES_PER_PAGE_DEFAULT cannot exceed STORIES_PER_PAGE_MAX "
                f"({self.stories_per_page_default} > {self.stories_per_page_max})",
            )
        return self

    @property
    def cors_origins(self) -> list[str]:
        """Parse comma-separated CORS origins string into a list."""
        if not self.cors_origins_str:
            return []
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
