"""
Configuration helpers for the household services backend.

Exposes a frozen Settings object that reads environment variables (database,
Redis, JWT, verification code lifetimes, SMTP, logging) so that
routers/services do not fetch os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    redis_url: str
    redis_socket_timeout: float
    jwt_secret: str
    jwt_algorithm: str
    jwt_ttl_seconds: int
    jwt_refresh_ttl_seconds: int
    verification_code_ttl_seconds: int
    verification_send_limit_seconds: int
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    smtp_from: str
    log_level: str
    cors_origins: tuple[str, ...]


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _float(value: str, default: float = 0.0) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def _csv(value: str | None) -> tuple[str, ...]:
        return tuple(item.strip() for item in (value or "").split(",") if item.strip())

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./household.db"),
        redis_url=(os.getenv("REDIS_URL") or "").strip(),
        redis_socket_timeout=_float(os.getenv("REDIS_SOCKET_TIMEOUT", "2.0"), 2.0),
        jwt_secret=os.getenv("JWT_SECRET", "household-dev-secret-change-me-in-production"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        jwt_ttl_seconds=_int(os.getenv("JWT_TTL_SECONDS", "3600"), 3600),
        jwt_refresh_ttl_seconds=_int(os.getenv("JWT_REFRESH_TTL_SECONDS", "1209600"), 1209600),
        verification_code_ttl_seconds=_int(os.getenv("VERIFICATION_CODE_TTL_SECONDS", "300"), 300),
        verification_send_limit_seconds=_int(os.getenv("VERIFICATION_SEND_LIMIT_SECONDS", "60"), 60),
        smtp_host=os.getenv("SMTP_HOST", ""),
        smtp_port=_int(os.getenv("SMTP_PORT", "465"), 465),
        smtp_user=os.getenv("SMTP_USER", ""),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        smtp_from=os.getenv("SMTP_FROM", os.getenv("SMTP_USER", "")),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        cors_origins=_csv(os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")),
    )
