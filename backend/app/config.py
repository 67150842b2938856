"""Application configuration management"""

import json
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, List
from urllib.parse import quote_plus

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

# Base directory: backend/
_BASE_DIR = Path(__file__).resolve().parent.parent


@dataclass(frozen=True)
class TokenConfig:
    """Signing material and lifetimes for session credentials."""

    access_secret: str
    refresh_secret: str
    algorithm: str
    access_ttl: timedelta
    refresh_ttl: timedelta


@dataclass(frozen=True)
class LockoutPolicy:
    """Sliding-window login lockout thresholds."""

    window: timedelta
    max_failures: int


@dataclass(frozen=True)
class CookiePolicy:
    """Transport settings for the session cookies."""

    secure: bool
    access_path: str
    refresh_path: str
    access_max_age: int
    refresh_max_age: int


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Application
    APP_NAME: str = "Catalog Admin Identity Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 4

    # Database (PostgreSQL)
    DATABASE_URL: str = ""
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "catalog_db"
    POSTGRES_USER: str = "catalog"
    POSTGRES_PASSWORD: str = "catalog"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # Session credentials
    ACCESS_TOKEN_SECRET: str = "dev-access-secret-change-in-production-use-openssl-rand-hex-32"
    REFRESH_TOKEN_SECRET: str = "dev-refresh-secret-change-in-production-use-openssl-rand-hex-32"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Cookies
    COOKIE_SECURE: bool = True
    ACCESS_COOKIE_PATH: str = "/api"
    REFRESH_COOKIE_PATH: str = "/api/v1/auth"

    # Login lockout (per email)
    LOGIN_LOCKOUT_WINDOW_MINUTES: int = 15
    LOGIN_MAX_FAILED_ATTEMPTS: int = 5

    # Request limiting (per client IP)
    AUTH_RATE_LIMIT_REQUESTS: int = 20
    AUTH_RATE_LIMIT_WINDOW_SECONDS: int = 900

    # Password hashing
    BCRYPT_ROUNDS: int = 12

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # CORS
    CORS_ORIGINS: Annotated[List[str], NoDecode] = ["http://localhost:3000"]

    # Database initialization discipline
    DB_INIT_MODE: str = "migrate"  # migrate | create_all | off
    DB_REQUIRE_HEAD: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        frozen = True

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, value: Any) -> Any:
        """
        Accept JSON array or comma-separated origins from env.

        Examples:
            CORS_ORIGINS=["http://localhost:3000","http://example.com"]
            CORS_ORIGINS=http://localhost:3000,http://example.com
        """
        if not isinstance(value, str):
            return value

        raw = value.strip()
        if not raw:
            return []

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None

        if isinstance(parsed, str):
            return [parsed]
        if isinstance(parsed, list):
            return [str(origin).strip() for origin in parsed if str(origin).strip()]

        return [origin.strip() for origin in raw.split(",") if origin.strip()]

    def get_log_file(self) -> str:
        p = self.LOG_FILE
        if not p or p.startswith(".."):
            return str(_BASE_DIR.parent / "logs" / "app.log")
        return p

    def get_database_url(self) -> str:
        """
        Resolve database URL.

        Priority:
          1) Explicit DATABASE_URL
          2) Construct from POSTGRES_* parts with safe URL encoding
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL

        user = quote_plus(self.POSTGRES_USER)
        password = quote_plus(self.POSTGRES_PASSWORD)
        return (
            f"postgresql+psycopg2://{user}:{password}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    def token_config(self) -> TokenConfig:
        return TokenConfig(
            access_secret=self.ACCESS_TOKEN_SECRET,
            refresh_secret=self.REFRESH_TOKEN_SECRET,
            algorithm=self.ALGORITHM,
            access_ttl=timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=self.REFRESH_TOKEN_EXPIRE_DAYS),
        )

    def lockout_policy(self) -> LockoutPolicy:
        return LockoutPolicy(
            window=timedelta(minutes=self.LOGIN_LOCKOUT_WINDOW_MINUTES),
            max_failures=self.LOGIN_MAX_FAILED_ATTEMPTS,
        )

    def cookie_policy(self) -> CookiePolicy:
        return CookiePolicy(
            secure=self.COOKIE_SECURE,
            access_path=self.ACCESS_COOKIE_PATH,
            refresh_path=self.REFRESH_COOKIE_PATH,
            access_max_age=self.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            refresh_max_age=self.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        )

    def validate_security_settings(self) -> None:
        """
        Validate runtime security defaults in production.

        Raises:
            ValueError: If insecure defaults are detected.
        """
        if self.ENVIRONMENT.lower() != "production":
            return

        insecure_secret_markers = {
            "",
            "dev-access-secret-change-in-production-use-openssl-rand-hex-32",
            "dev-refresh-secret-change-in-production-use-openssl-rand-hex-32",
            "change-me",
        }

        for name in ("ACCESS_TOKEN_SECRET", "REFRESH_TOKEN_SECRET"):
            secret = getattr(self, name)
            if secret in insecure_secret_markers or len(secret) < 32:
                raise ValueError(
                    f"Insecure {name} for production. Use a strong key (e.g. `openssl rand -hex 32`)."
                )

        if self.ACCESS_TOKEN_SECRET == self.REFRESH_TOKEN_SECRET:
            raise ValueError(
                "ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ so one cannot forge the other."
            )

        if not self.COOKIE_SECURE:
            raise ValueError("COOKIE_SECURE must be enabled in production.")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
