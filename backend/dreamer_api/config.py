"""Application configuration."""
from collections import Counter
from functools import lru_cache
import math

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Dreamer AI"
    debug: bool = False
    log_level: str = "INFO"
    frontend_url: str = "http://localhost:3000"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Database
    database_url: str = "sqlite:///./data/dreamer.db"

    # Auth
    jwt_secret: str
    jwt_refresh_secret: str | None = None
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "dreamer-ai"
    jwt_audience: str = "dreamer-ai-api"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 30
    mfa_token_expire_minutes: int = 5
    bcrypt_rounds: int = 10
    email_verification_expire_hours: int = 24
    password_reset_expire_hours: int = 1

    # Account lockout after repeated failed logins
    max_failed_logins: int = 5
    lockout_minutes: int = 30

    # Email
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from_email: str = "noreply@dreamerai.io"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator("jwt_secret")
    @classmethod
    def validate_jwt_secret(cls, value: str) -> str:
        """Fail closed if JWT_SECRET is weak or placeholder quality."""
        return _check_secret_strength(value, "JWT_SECRET")

    @field_validator("jwt_refresh_secret")
    @classmethod
    def validate_jwt_refresh_secret(cls, value: str | None) -> str | None:
        """An unset refresh secret is allowed; a set one must be strong."""
        if not value:
            return None
        return _check_secret_strength(value, "JWT_REFRESH_SECRET")

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, value: int) -> int:
        if not 4 <= value <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return value

    @property
    def refresh_secret(self) -> str:
        """Secret for refresh tokens, falling back to the access secret."""
        return self.jwt_refresh_secret or self.jwt_secret


def _check_secret_strength(value: str, name: str) -> str:
    if not value:
        raise ValueError(f"{name} must be set.")

    if len(value) < 32:
        raise ValueError(f"{name} must be at least 32 characters.")

    weak_values = {"changeme", "changeme-in-production", "secret", "password", "test"}
    lowered = value.lower()
    if lowered in weak_values or "changeme" in lowered or "your-secret-key" in lowered:
        raise ValueError(f"{name} must not be a placeholder value.")

    counts = Counter(value)
    entropy_per_char = -sum((count / len(value)) * math.log2(count / len(value)) for count in counts.values())
    estimated_entropy_bits = entropy_per_char * len(value)
    if estimated_entropy_bits < 100:
        raise ValueError(f"{name} entropy is too low; use a cryptographically random value.")

    return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
