from __future__ import annotations

import sys

from loguru import logger
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime knobs, overridable through ``PAGECONTEXT_*`` variables."""

    log_level: str = "INFO"

    cookie_days: int = 1
    cookie_path: str = "/"
    cookie_domain: str = ""
    cookie_secure: bool = False
    cookie_http_only: bool = True

    model_config = SettingsConfigDict(env_prefix="PAGECONTEXT_")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        # Raises ValueError for names loguru does not know.
        logger.level(level)
        return level


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Send loguru output to stderr at the configured level."""

    logger.remove()
    logger.add(sys.stderr, level=(level or settings.log_level).upper())
