"""
Configuration module for loading environment variables
"""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration"""

    # Hosted auth service
    AUTH_URL: str = os.getenv("AUTH_URL", "http://127.0.0.1:9999/auth/v1")
    AUTH_ANON_KEY: Optional[str] = os.getenv("AUTH_ANON_KEY")
    AUTH_JWT_SECRET: Optional[str] = os.getenv("AUTH_JWT_SECRET")
    AUTH_JWT_AUDIENCE: str = os.getenv("AUTH_JWT_AUDIENCE", "authenticated")
    AUTH_HTTP_TIMEOUT: float = float(os.getenv("AUTH_HTTP_TIMEOUT", "10"))

    # Redirect target embedded in confirmation emails
    SITE_URL: str = os.getenv("SITE_URL", "http://127.0.0.1:21003/")

    # Key for pseudonyms stored on anonymous complaints
    ANONYMITY_SALT: str = os.getenv("ANONYMITY_SALT", "dev-anonymity-salt")

    # Session cookie
    SESSION_COOKIE_SECURE: bool = (
        os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"
    )

    @classmethod
    def validate_auth_config(cls) -> bool:
        """Check if hosted auth configuration is complete"""
        return all([cls.AUTH_URL, cls.AUTH_ANON_KEY, cls.AUTH_JWT_SECRET])


config = Config()
