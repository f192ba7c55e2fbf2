"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tokscrape.errors import ConfigurationError

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)


class ScraperSettings(BaseSettings):
    """Browser and page-fetch settings."""

    model_config = SettingsConfigDict(
        env_prefix="SCRAPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    headless: bool = Field(default=True, description="Run browser in headless mode")
    debug: bool = Field(default=False, description="Capture a screenshot of every page")
    navigation_timeout_ms: int = Field(default=60000, description="Page navigation timeout in ms")
    settle_delay_ms: int = Field(default=5000, description="Max wait for dynamic content after load")
    post_scroll_delay_ms: int = Field(default=2000, description="Wait after the lazy-load scroll")
    scroll_by_px: int = Field(default=500, description="Vertical scroll used to trigger lazy content")
    viewport_width: int = 1280
    viewport_height: int = 800
    user_agent: str = DEFAULT_USER_AGENT
    serverless: bool = Field(default=False, description="Launch Chromium with sandbox-less flags")
    screenshot_dir: str = "screenshots"
    concurrency: int = Field(default=1, ge=1, description="URLs processed at once in a batch")
    item_timeout: Optional[float] = Field(
        default=None,
        description="Per-URL deadline in seconds (None = only the navigation timeout applies)",
    )


class DatabaseSettings(BaseSettings):
    """Database settings."""

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = Field(default="sqlite:///data/tiktok.db", description="SQLAlchemy database URL")
    echo: bool = False


class StorageSettings(BaseSettings):
    """Audit JSON storage: local results directory and/or a Supabase Storage bucket."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    save_local: bool = True
    results_dir: str = "results"
    use_remote: bool = Field(default=False, description="Upload JSON to the object-storage bucket")
    supabase_url: str = ""
    supabase_key: str = ""
    bucket: str = "tiktok-data"
    save_summary: bool = Field(default=False, description="Write a summary JSON after each batch")
    save_screenshots: bool = Field(default=False, description="Upload debug screenshots")

    @field_validator("supabase_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ApiSettings(BaseSettings):
    """HTTP surface settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: str = Field(default="", description="Shared secret for scrape endpoints (empty = open)")
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO")

    scraper: ScraperSettings = Field(default_factory=ScraperSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)

    def validate_backend(self) -> None:
        """Raise ConfigurationError if the persistence backend cannot be used.

        Called before any scrape starts so a missing credential aborts the run
        instead of failing every item.
        """
        if not self.database.url:
            raise ConfigurationError("DB_URL must be set")
        if self.storage.use_remote and not (self.storage.supabase_url and self.storage.supabase_key):
            raise ConfigurationError(
                "STORAGE_SUPABASE_URL and STORAGE_SUPABASE_KEY must be set when STORAGE_USE_REMOTE is on"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reload_settings() -> Settings:
    """Reload settings (clear cache and return new instance).

    Call this when .env file is updated to pick up new values.
    """
    get_settings.cache_clear()
    return get_settings()
