"""
ChallengeKit - Application configuration.

Centralized configuration using Pydantic Settings for environment variable management.

Environment Variables:
    All settings can be overridden via environment variables with CHALLENGEKIT_ prefix.

    Challenge Settings:
        CHALLENGEKIT_SECRET_KEY=...              - Token encryption key (required in production)
        CHALLENGEKIT_PREVIOUS_SECRET_KEYS=a,b    - Retired keys still accepted when redeeming
        CHALLENGEKIT_VERIFICATION_DELAY_DAYS=7   - Email verification link lifetime
        CHALLENGEKIT_RESET_DELAY_DAYS=1          - Password reset link lifetime

    Email Settings:
        CHALLENGEKIT_RESEND_API_KEY=...          - Resend HTTP API key (preferred)
        CHALLENGEKIT_SMTP_HOST=...               - SMTP fallback host
"""
from datetime import timedelta
from typing import List, Optional

from pydantic_settings import BaseSettings


class ChallengeSettings(BaseSettings):
    """
    Challenge token configuration settings.

    For production deployment:
        1. Generate a secret key: openssl rand -hex 32
        2. Set CHALLENGEKIT_SECRET_KEY to the generated key
        3. When rotating, move the old key to CHALLENGEKIT_PREVIOUS_SECRET_KEYS
           until the longest-lived outstanding link has expired
    """
    secret_key: str = "development-secret-key-change-in-production"
    previous_secret_keys: str = ""
    verification_delay_days: int = 7
    reset_delay_days: int = 1

    # Shown in the verification email
    registered_website: str = "ChallengeKit"
    contact_email: str = "support@example.com"

    @property
    def previous_keys(self) -> List[str]:
        return [k.strip() for k in self.previous_secret_keys.split(",") if k.strip()]

    @property
    def verification_delay(self) -> timedelta:
        return timedelta(days=self.verification_delay_days)

    @property
    def reset_delay(self) -> timedelta:
        return timedelta(days=self.reset_delay_days)

    class Config:
        env_prefix = "CHALLENGEKIT_"
        env_file = ".env"
        extra = "ignore"


class EmailSettings(BaseSettings):
    """
    Outbound email configuration.

    Resend is used when an API key is set, SMTP otherwise. With neither
    configured, sends are skipped with a warning.
    """
    resend_api_key: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    from_email: str = "noreply@example.com"
    from_name: str = "ChallengeKit"
    timeout_seconds: float = 10.0

    # Directory with template overrides (optional)
    templates_path: Optional[str] = None

    class Config:
        env_prefix = "CHALLENGEKIT_"
        env_file = ".env"
        extra = "ignore"


class Settings(BaseSettings):
    """Combined application settings."""
    challenge: ChallengeSettings = ChallengeSettings()
    email: EmailSettings = EmailSettings()

    # Public URL used to build links in outbound emails
    base_url: str = "http://localhost:8000"

    # Database
    database_url: str = "sqlite:///./data/challengekit.db"

    # Database connection pool (PostgreSQL only)
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800

    # Database retry settings
    db_retry_max_attempts: int = 3
    db_retry_base_delay: float = 0.1

    class Config:
        env_prefix = "CHALLENGEKIT_"
        env_file = ".env"
        extra = "ignore"


# Global settings instance
settings = Settings()
