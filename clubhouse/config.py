"""Configuration settings for Clubhouse."""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

DEFAULT_PASSCODE = "secret123"


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./clubhouse.db")
    SEED_DEMO_DATA: bool = os.getenv("SEED_DEMO_DATA", "false").lower() == "true"

    # Sessions
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "club_session")
    SESSION_EXPIRE_DAYS: int = int(os.getenv("SESSION_EXPIRE_DAYS", "30"))
    COOKIE_SECURE: bool = os.getenv("COOKIE_SECURE", "false").lower() == "true"

    # Credentials
    BCRYPT_ROUNDS: int = max(10, int(os.getenv("BCRYPT_ROUNDS", "10")))
    ALLOW_ADMIN_SIGNUP: bool = os.getenv("ALLOW_ADMIN_SIGNUP", "false").lower() == "true"

    # Membership
    MEMBERSHIP_PASSCODE: str = os.getenv("MEMBERSHIP_PASSCODE", DEFAULT_PASSCODE)

    # Rate limits
    LOGIN_RATE_LIMIT: str = os.getenv("LOGIN_RATE_LIMIT", "10/minute")
    PASSCODE_RATE_LIMIT: str = os.getenv("PASSCODE_RATE_LIMIT", "5/minute")

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        warnings = []
        if self.APP_ENV == "production" and self.MEMBERSHIP_PASSCODE == DEFAULT_PASSCODE:
            warnings.append("MEMBERSHIP_PASSCODE is the built-in default - set a real passcode in production")
        if self.APP_ENV == "production" and not self.COOKIE_SECURE:
            warnings.append("COOKIE_SECURE is off - session cookies will be sent over plain HTTP")
        if self.ALLOW_ADMIN_SIGNUP:
            warnings.append("ALLOW_ADMIN_SIGNUP is on - anyone submitting the signup form can become an admin")
        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
