from __future__ import annotations

from pathlib import Path

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8-sig",
        case_sensitive=False,
        extra="ignore",
    )

    SUPABASE_URL: AnyUrl
    SUPABASE_ANON_KEY: str
    APP_ENV: str = "local"
    FRONTEND_CORS_ORIGINS: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"],
    )
    RECIPES_TABLE: str = "recipes"
    LOCAL_STORE_DIR: Path = Path(".cuisineo/browsers")
    SEED_FILE: Path = _PACKAGE_DIR / "data" / "recettes.json"
    BROWSER_COOKIE_NAME: str = "cuisineo_browser"
    BROWSER_COOKIE_MAX_AGE: int = 60 * 60 * 24 * 365


settings = Settings()
