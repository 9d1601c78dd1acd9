"""
Configuration settings for Invoicer
"""
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Resolve .env paths relative to this file so settings load regardless of cwd.
_PACKAGE_DIR = Path(__file__).resolve().parent      # backend/invoicer/
_BACKEND_DIR = _PACKAGE_DIR.parent                   # backend/
_PROJECT_ROOT = _BACKEND_DIR.parent
_ENV_CANDIDATES = [
    _BACKEND_DIR / ".env",
    _PROJECT_ROOT / ".env",
]
_ENV_FILE = [str(p) for p in _ENV_CANDIDATES if p.is_file()]

# Load .env into os.environ so the os.getenv defaults below see it too.
for _p in _ENV_CANDIDATES:
    if _p.is_file():
        load_dotenv(_p, override=False)
        break


class Settings(BaseSettings):
    """Application settings"""

    # App
    APP_NAME: str = "Invoicer"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Database (Supabase Postgres in production, SQLite locally)
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./invoicer.db")
    AUTO_CREATE_TABLES: bool = os.getenv("AUTO_CREATE_TABLES", "True").lower() == "true"

    # Supabase (storage for logos; JWT secret for tokens issued by Supabase Auth)
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_SERVICE_ROLE_KEY: str = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
    SUPABASE_JWT_SECRET: str = os.getenv("SUPABASE_JWT_SECRET", "").strip()
    LOGO_BUCKET: str = os.getenv("LOGO_BUCKET", "branding-assets")

    # Security
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me-in-production")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "720"))

    # Currency. One currency per deployment; INR with lakh grouping by default.
    CURRENCY_CODE: str = os.getenv("CURRENCY_CODE", "INR")
    CURRENCY_SYMBOL: str = os.getenv("CURRENCY_SYMBOL", "₹")
    CURRENCY_GROUPING: str = os.getenv("CURRENCY_GROUPING", "indian")  # indian | western

    # PDF fonts. Without a TTF the base PDF fonts are used and text outside
    # cp1252 (e.g. Devanagari names) is drawn as "?".
    PDF_FONT_PATH: str = os.getenv("PDF_FONT_PATH", "")
    PDF_FONT_BOLD_PATH: str = os.getenv("PDF_FONT_BOLD_PATH", "")

    # CORS - comma-separated
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173"

    @property
    def cors_origins_list(self) -> List[str]:
        """Get CORS origins as a list (deduped, order preserved)."""
        origins = [o.strip() for o in (self.CORS_ORIGINS or "").split(",") if o.strip()]
        return list(dict.fromkeys(origins))

    @property
    def storage_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_SERVICE_ROLE_KEY)

    class Config:
        env_file = _ENV_FILE if _ENV_FILE else [".env", "../.env"]
        case_sensitive = True
        extra = "ignore"


settings = Settings()
