"""
Application configuration using Pydantic Settings.
All config is loaded from environment variables / .env file.
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    # ── App ──────────────────────────────────────────────
    APP_NAME: str = "student-hub-gpa"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"  # comma-separated

    # ── Supabase ─────────────────────────────────────────
    SUPABASE_URL: str
    SUPABASE_KEY: str  # anon/public key
    SUPABASE_SERVICE_KEY: str = ""  # service_role key (for admin ops)

    # ── Security ─────────────────────────────────────────
    JWT_SECRET_KEY: str  # JWT signing key
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_MINUTES: int = 1440  # 24 hours

    # ── GPA API (used by the form-session client) ────────
    GPA_API_BASE_URL: str = "http://localhost:5000/api/gpa"
    GPA_API_TIMEOUT: int = 15  # HTTP timeout in seconds
    RETAKE_CHECK_DEBOUNCE_MS: int = 500

    # ── Academic stats ───────────────────────────────────
    ACADEMIC_STATS_TTL_MINUTES: int = 60  # recompute stats older than this
    STATS_REFRESH_ENABLED: bool = False  # nightly recompute for every student
    STATS_REFRESH_TIME: str = "03:00"  # HH:MM, Asia/Dhaka

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance (singleton)."""
    return Settings()
