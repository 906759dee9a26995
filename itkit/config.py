import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Values from .env never override variables already set in the process.
load_dotenv()


_BOOL_WORDS = {
    "1": True, "true": True, "yes": True, "on": True,
    "0": False, "false": False, "no": False, "off": False,
}


def _env_flag(name: str) -> Optional[bool]:
    """True/False for a recognised word in env var `name`, None when unset or unrecognised."""
    return _BOOL_WORDS.get(os.environ.get(name, "").strip().lower())


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    Every field reads its environment variable once, at import. Tests build
    `Config(...)` with explicit overrides instead of patching the environment.
    """

    # -----------------
    # Core
    # -----------------
    APP_ENV: str = os.environ.get("APP_ENV", "development")
    APP_VERSION: str = os.environ.get("APP_VERSION", "1.0.0")

    # Preferred: set ITKIT_DATABASE_URL (or DATABASE_URL) to use Postgres.
    # Fallback: ITKIT_DB_PATH for SQLite.
    DB_DSN: str = (
        os.environ.get("ITKIT_DATABASE_URL")
        or os.environ.get("DATABASE_URL", "")
        or os.environ.get("ITKIT_DB_PATH", "./itkit.sqlite")
    )

    # API server
    API_HOST: str = os.environ.get("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.environ.get("PORT", os.environ.get("API_PORT", "5000")))

    # -----------------
    # Auth (JWT)
    # -----------------
    # The default only suits local development; production sets JWT_SECRET.
    AUTH_JWT_SECRET: str = os.environ.get("JWT_SECRET", "dev_change_me")
    AUTH_TOKEN_EXPIRE_MINUTES: int = int(os.environ.get("AUTH_TOKEN_EXPIRE_MINUTES", str(7 * 24 * 60)))

    # Bootstrap first admin user if users table is empty.
    # Clear either value to skip bootstrapping.
    AUTH_BOOTSTRAP_ADMIN_EMAIL: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_EMAIL", "admin@itkit.local")
    AUTH_BOOTSTRAP_ADMIN_PASSWORD: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_PASSWORD", "admin123")
    AUTH_BOOTSTRAP_ADMIN_NAME: str = os.environ.get("AUTH_BOOTSTRAP_ADMIN_NAME", "ITKit Admin")

    # -----------------
    # CORS
    # -----------------
    # The frontend (default :5173) calls the API (default :5000) cross-origin in development.
    FRONTEND_URL: str = os.environ.get("FRONTEND_URL", "http://localhost:5173")
    CORS_ALLOW_ORIGINS: str = os.environ.get("CORS_ALLOW_ORIGINS", FRONTEND_URL)

    # -----------------
    # Frontend (server-rendered web UI)
    # -----------------
    API_BASE_URL: str = os.environ.get("API_BASE_URL", "http://localhost:5000/api")
    API_TIMEOUT_SECONDS: float = float(os.environ.get("API_TIMEOUT_SECONDS", "15"))
    WEB_HOST: str = os.environ.get("WEB_HOST", "0.0.0.0")
    WEB_PORT: int = int(os.environ.get("WEB_PORT", "5173"))
    SUPPORT_EMAIL: str = os.environ.get("SUPPORT_EMAIL", "itsupport@example.com")

    # The web UI keeps the API token in an httpOnly cookie.
    WEB_COOKIE_NAME: str = os.environ.get("WEB_COOKIE_NAME", "itkit_token")
    WEB_COOKIE_SAMESITE: str = os.environ.get("WEB_COOKIE_SAMESITE", "lax")  # lax|strict|none
    # If WEB_COOKIE_SECURE is unset, we default to secure cookies when FRONTEND_URL is https.
    WEB_COOKIE_SECURE: bool = (
        FRONTEND_URL.lower().startswith("https://")
        if _env_flag("WEB_COOKIE_SECURE") is None
        else bool(_env_flag("WEB_COOKIE_SECURE"))
    )


def load_config(**overrides) -> Config:
    return Config(**overrides)
