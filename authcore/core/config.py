# authcore/core/config.py
import os
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
DOTENV = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), ".env")


class Settings(BaseSettings):
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    # None keeps tokens valid until the signing key changes
    ACCESS_TOKEN_EXPIRE_MINUTES: Optional[int] = None
    AUTH_COOKIE_SECURE: bool = False

    DATABASE_URL: str = "sqlite:///./authcore.db"
    DATABASE_TIMEOUT_SECONDS: int = 10

    PASSWORD_MIN_LENGTH: int = 8
    # None means a pending code stays valid until it is consumed or replaced
    OTP_TTL_MINUTES: Optional[int] = None

    SMTP_SERVER: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT_SECONDS: int = 10
    MAIL_FROM: Optional[str] = None

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    ALLOWED_HOSTS: List[str] = ["localhost", "127.0.0.1"]
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file=DOTENV,
        env_ignore_empty=True,
        extra="ignore"
    )


settings = Settings()
