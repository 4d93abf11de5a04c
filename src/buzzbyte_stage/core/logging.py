"""Logging configuration shared by the API process and the sweep CLI."""

from __future__ import annotations

from logging.config import dictConfig

from buzzbyte_stage.core.settings import settings


def configure_logging(level: str | None = None) -> None:
    """Install a single console handler on the root logger."""
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {
                "handlers": ["console"],
                "level": (level or settings.log_level).upper(),
            },
        }
    )
