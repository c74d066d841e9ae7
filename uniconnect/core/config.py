from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    All config comes from the environment or a .env file.
    Change values in .env and they apply everywhere.
    """

    # ── Database ──────────────────────────────────────────
    # aiosqlite locally, asyncpg in production
    DATABASE_URL: str = "sqlite+aiosqlite:///./uniconnect.db"

    # ── Admin ─────────────────────────────────────────────
    # Shared secret expected in the x-admin-key header.
    ADMIN_SECRET_KEY: str | None = None

    # ── Email (Brevo / Sendinblue) ────────────────────────
    SENDINBLUE_API_KEY: str | None = None
    EMAIL_FROM: str = "noreply@uniconnect.app"
    EMAIL_FROM_NAME: str = "UniConnect"
    SITE_NAME: str = "UniConnect"

    # ── CORS ──────────────────────────────────────────────
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    # ── App ───────────────────────────────────────────────
    APP_ENV: str = "production"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def origins_list(self) -> list[str]:
        """Splits comma-separated ALLOWED_ORIGINS into a list."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.strip().lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
