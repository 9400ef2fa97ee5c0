"""Application settings loaded from environment variables and ``.env``."""

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseModel):
    """Database connection settings."""

    url: str = "sqlite+aiosqlite:///./reachsync.db"
    echo: bool = False
    # Create missing tables on startup (dev/tests). Production runs alembic instead.
    auto_create_tables: bool = True
    pool_pre_ping: bool = True
    # Pool options only apply to server databases (PostgreSQL)
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800


# Hey future me - the provider is the external analytics API (Viberate-style).
# access_key is a static key sent as "Access-Key" header. Empty key means every
# endpoint degrades to "missing_credentials" instead of crashing the sync.
class ProviderSettings(BaseModel):
    """External analytics provider settings."""

    base_url: str = "https://data.viberate.com/api/v1"
    access_key: str = ""
    timeout: float = Field(default=12.0, gt=0)
    max_concurrency: int = Field(default=8, ge=1, le=64)
    history_days: int = Field(default=30, ge=1)
    tracks_limit: int = Field(default=50, ge=1)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def is_configured(self) -> bool:
        """Check if an access key is set."""
        return bool(self.access_key.strip())


class ObservabilitySettings(BaseModel):
    """Logging settings."""

    log_level: str = "INFO"
    json_logs: bool = False


class Settings(BaseSettings):
    """Root settings object.

    Nested sections are read from env vars with ``__`` as delimiter, e.g.
    ``PROVIDER__ACCESS_KEY`` or ``DATABASE__URL``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "reachsync"
    app_env: str = "development"
    api_prefix: str = "/api"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    provider: ProviderSettings = Field(default_factory=ProviderSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    def _get_sqlite_db_path(self) -> Path | None:
        """Return the SQLite file path, or None for memory/non-SQLite URLs."""
        url = self.database.url
        if not url.startswith("sqlite"):
            return None
        _, _, path = url.partition(":///")
        if not path or path == ":memory:":
            return None
        return Path(path)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
