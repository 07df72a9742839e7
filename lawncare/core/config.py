"""Environment-driven configuration for the lawn care site.

Every setting the application reads lives on ``AppSettings``. Values come from
the process environment first, then ``.env`` / ``.env.local``. The aliases let
an existing front-end ``.env.local`` (``NEXT_PUBLIC_*`` names) be reused as-is.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent.parent


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Lawn Care Pro"
    APP_ENV: str = "dev"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    TZ: str = "America/Chicago"

    DATA_DIR: Path = Field(default_factory=lambda: PACKAGE_DIR.parent / "data")
    TEMPLATES_DIR: Path | None = None
    STATIC_DIR: Path | None = None

    DB_URL: str = Field(default="", validation_alias=AliasChoices("DB_URL", "DATABASE_URL"))

    # ---- hosted auth + storage
    SUPABASE_URL: str = Field(
        default="", validation_alias=AliasChoices("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL")
    )
    SUPABASE_ANON_KEY: str = Field(
        default="", validation_alias=AliasChoices("SUPABASE_ANON_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY")
    )
    # When set, access tokens are verified locally instead of asking the provider.
    SUPABASE_JWT_SECRET: str = ""
    STORAGE_BUCKET: str = "images"
    HTTP_TIMEOUT_SECONDS: float = 6.0

    # ---- gate policy
    SKIP_AUTH_FOR_LOCALHOST: bool = Field(
        default=False,
        validation_alias=AliasChoices("SKIP_AUTH_FOR_LOCALHOST", "NEXT_PUBLIC_SKIP_AUTH_FOR_LOCALHOST"),
    )
    LOOPBACK_HOSTS: str = "localhost,127.0.0.1,::1"
    MAX_LOGIN_REDIRECTS: int = 3

    # ---- cookies
    # Signs the redirect guard cookie. MUST be long & random in production.
    APP_SECRET: str = "dev-insecure-secret-change-me"
    SESSION_COOKIE_SECURE: bool = False
    SESSION_MAX_AGE: int = 60 * 60 * 24 * 7

    ALLOWED_ORIGINS: str = ""

    def _resolve_path(self, base: Path | None, fallback: Path) -> Path:
        return base if base is not None else fallback

    @property
    def templates_dir(self) -> Path:
        return self._resolve_path(self.TEMPLATES_DIR, PACKAGE_DIR / "templates")

    @property
    def static_dir(self) -> Path:
        return self._resolve_path(self.STATIC_DIR, PACKAGE_DIR / "static")

    @property
    def database_url(self) -> str:
        return self.DB_URL or f"sqlite:///{self.DATA_DIR / 'site.db'}"

    @property
    def loopback_hosts(self) -> list[str]:
        return [host.lower() for host in _split_csv(self.LOOPBACK_HOSTS)]

    @property
    def allowed_origins(self) -> list[str]:
        return _split_csv(self.ALLOWED_ORIGINS)

    @property
    def identity_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_ANON_KEY)


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    return settings


settings = get_settings()
