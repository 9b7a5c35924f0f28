"""Catalog configuration via pydantic-settings (.env + env vars)."""

import sys
from pathlib import Path

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict


class CatalogConfig(BaseSettings):
    """Configuration with layered resolution:
    .env file < environment variables < constructor kwargs.

    Environment variables use the CATALOG_ prefix (CATALOG_LOG_LEVEL, ...).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CATALOG_",
        extra="ignore",
    )

    # -- Logging --
    log_level: str = "INFO"
    log_dir: Path | None = None
    verbose: bool = False

    # -- Output --
    output_format: str = "json"

    def setup_logging(self) -> None:
        """Configure loguru: stderr always, a rotating file when log_dir is set."""
        logger.remove()  # Remove default stderr handler

        log_format = (
            "{time:YYYY-MM-DDTHH:mm:ssZ} | {level:<8} | "
            "{extra[stage]:<12} | {message}"
        )

        def _default_extra(record):
            record["extra"].setdefault("stage", "")
            return True

        level = "DEBUG" if self.verbose else self.log_level.upper()
        logger.add(
            sys.stderr,
            format=log_format,
            level=level,
            filter=_default_extra,
        )

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            logger.add(
                str(self.log_dir / "catalog.log"),
                format=log_format,
                level="DEBUG",
                rotation="10 MB",
                retention="30 days",
                filter=_default_extra,
            )
