"""Application configuration and settings."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_BASE_DIR = Path(__file__).resolve().parents[1]
_ENV_FILE = _BASE_DIR / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE, env_file_encoding="utf-8", extra="ignore"
    )

    # Storage
    database_url: str = Field(
        default="sqlite:///tripflow.db",
        description="SQLAlchemy URL for the durable workflow step log",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for the trip cache",
    )
    trip_ttl_seconds: int = Field(
        default=60 * 60 * 24 * 7, description="Expiry of cached itineraries (7 days)"
    )

    # CORS
    ui_origin: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origin for UI",
    )

    # LLM (any OpenAI-compatible chat completions endpoint)
    llm_api_key: str = Field(
        default="dummy-llm-api-key-for-tests",
        description="API key for the chat completions endpoint",
    )
    llm_base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="Base URL of the OpenAI-compatible endpoint",
    )
    llm_model: str = Field(
        default="llama-3.3-70b-versatile", description="Model used for every LLM call"
    )
    llm_timeout_s: float = Field(default=60.0, description="LLM request timeout")

    # Browser Use skills (stay/activity providers and batch geocoder)
    browser_use_api_key: str = Field(
        default="", description="Browser Use API key; empty disables providers"
    )
    browser_use_base_url: str = Field(
        default="https://api.browser-use.com/api/v2/skills",
        description="Base URL for skill execution",
    )
    airbnb_skill_id: str = Field(default="442a08cb-f012-4266-a927-67437632fd1c")
    booking_skill_id: str = Field(default="3311e66a-9dc6-403d-93d6-f20e78701bec")
    headout_skill_id: str = Field(default="ab1257b7-f66e-4a29-b2a3-eba52f5b3719")
    klook_skill_id: str = Field(default="ebf4715e-4bf3-4263-8bf2-af82aeef3829")
    geocoder_skill_id: str = Field(default="da022610-68fd-443f-a856-a109dc7b8243")
    provider_timeout_s: float = Field(
        default=90.0, description="Timeout for a single provider skill call"
    )

    # Pipeline tuning
    max_activities_per_segment: int = Field(
        default=20, description="Activities handed to the curator per segment"
    )
    min_activities_per_segment: int = Field(
        default=5, description="Activities force-included with city-centre coords"
    )
    llm_geocode_max_items: int = Field(
        default=10, description="Largest residual set sent to the LLM geocoder"
    )
    budget_nights_divisor: int = Field(
        default=7, description="Total budget divided by this gives the nightly ceiling"
    )
    default_trip_days: int = Field(
        default=7, description="Trip length used by the fallback skeleton"
    )

    # Durable step retry
    step_max_attempts: int = Field(
        default=3, description="Attempts per workflow step before failing the run"
    )
    step_retry_base_ms: int = Field(
        default=1000, description="Base backoff between step attempts"
    )
    retry_jitter_min_ms: int = Field(
        default=200, description="Minimum retry jitter in milliseconds"
    )
    retry_jitter_max_ms: int = Field(
        default=500, description="Maximum retry jitter in milliseconds"
    )

    log_level: str = Field(default="INFO", description="Root log level")

    @field_validator("database_url", mode="after")
    @classmethod
    def _normalize_sqlite_url(cls, value: str) -> str:
        """Ensure sqlite URLs always point to the repo root."""
        sqlite_prefixes = ("sqlite:///", "sqlite+pysqlite:///")
        for prefix in sqlite_prefixes:
            if value.startswith(prefix):
                path = value[len(prefix) :]
                if path and not path.startswith("/") and path != ":memory:":
                    abs_path = (_BASE_DIR / path).resolve()
                    return f"{prefix}{abs_path.as_posix()}"
        return value


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get application settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


class MissingLLMKeyError(RuntimeError):
    """Raised when an LLM API key is not configured."""


def get_llm_api_key(settings: Settings | None = None) -> str:
    """Return a validated LLM API key or raise a helpful error."""
    settings = settings or get_settings()
    api_key = (settings.llm_api_key or "").strip()
    if not api_key or api_key.startswith("dummy-"):
        raise MissingLLMKeyError(
            "LLM API key is not configured. "
            "Set LLM_API_KEY in your environment (.env) before planning trips."
        )
    return api_key


def get_browser_use_api_key(settings: Settings | None = None) -> str | None:
    """Return the Browser Use API key, or None when providers are disabled."""
    settings = settings or get_settings()
    api_key = (settings.browser_use_api_key or "").strip()
    return api_key or None
