"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support; invalid values fail at load time.
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.shared.enums import ActionType


class Settings(BaseSettings):
    """Application settings loaded from environment and .env."""

    # App
    app_name: str = "tasktrack"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database: any async SQLAlchemy URL (postgresql+asyncpg://... in production)
    database_url: str = "sqlite+aiosqlite:///./tasktrack.db"
    database_echo: bool = False
    # Create missing tables on startup (schemas are otherwise managed externally)
    database_create_tables: bool = True
    # Optional pool overrides (None = defaults in database.py; ignored for SQLite)
    db_pool_size: int | None = None
    db_max_overflow: int | None = None

    # Progress signal channel (in-process)
    progress_queue_maxsize: int = 1000
    progress_workers: int = 2

    # Activity audit
    audit_enabled: bool = True
    # Method name -> ActionType value, merged over the built-in table.
    # e.g. AUDIT_ACTION_OVERRIDES='{"toggle_subtask_completion": "complete"}'
    audit_action_overrides: dict[str, str] = {}

    # Request / middleware
    request_id_header: str = "X-Request-ID"
    trust_forwarded_for: bool = True

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: Literal["console", "otlp", "none"] = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("progress_queue_maxsize", "progress_workers")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("audit_action_overrides")
    @classmethod
    def _known_action_types(cls, value: dict[str, str]) -> dict[str, str]:
        unknown = sorted(v for v in value.values() if v not in ActionType.values())
        if unknown:
            raise ValueError(
                f"Unknown action type(s) in AUDIT_ACTION_OVERRIDES: {', '.join(unknown)}"
            )
        return value

    @model_validator(mode="after")
    def validate_required(self) -> "Settings":
        """DATABASE_URL must be set; sample rate must be a ratio; OTLP needs an endpoint."""
        if not self.database_url:
            raise ValueError("DATABASE_URL is required. Set in environment or .env file.")
        if not 0.0 <= self.telemetry_sample_rate <= 1.0:
            raise ValueError("TELEMETRY_SAMPLE_RATE must be between 0.0 and 1.0")
        otlp = self.telemetry_enabled and self.telemetry_exporter == "otlp"
        if otlp and not self.telemetry_otlp_endpoint:
            raise ValueError("TELEMETRY_OTLP_ENDPOINT is required when TELEMETRY_EXPORTER=otlp")
        return self

    @property
    def is_sqlite(self) -> bool:
        """True when the configured database is SQLite (no pool tuning, no row locks)."""
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (load once per process)."""
    return Settings()
