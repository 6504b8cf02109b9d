"""Configuration settings for the media extractor API."""
import os
from typing import Literal


EnvironmentType = Literal["development", "staging", "production"]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:128.0) Gecko/20100101 Firefox/128.0"
)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Settings:
    """Application settings."""

    # Environment
    ENVIRONMENT: EnvironmentType = "development"
    LOG_LEVEL: str = "INFO"

    # Transport
    REQUEST_TIMEOUT: int = 10
    EXTRACTION_TIMEOUT: int = 60
    USER_AGENT: str = DEFAULT_USER_AGENT

    # Services
    PEERTUBE_PAGE_SIZE: int = 50
    BILIBILI_PAGE_SIZE: int = 30

    def __init__(self):
        # Environment
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env in ("development", "staging", "production"):
            self.ENVIRONMENT = env  # type: ignore
        else:
            self.ENVIRONMENT = "development"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        # Transport
        self.REQUEST_TIMEOUT = _int_env("REQUEST_TIMEOUT", 10)
        self.EXTRACTION_TIMEOUT = _int_env("EXTRACTION_TIMEOUT", 60)
        self.USER_AGENT = os.getenv("USER_AGENT") or DEFAULT_USER_AGENT

        # Services
        self.PEERTUBE_PAGE_SIZE = _int_env("PEERTUBE_PAGE_SIZE", 50)
        self.BILIBILI_PAGE_SIZE = _int_env("BILIBILI_PAGE_SIZE", 30)


settings = Settings()
