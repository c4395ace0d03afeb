import logging
from logging.config import dictConfig
from typing import Optional

from .config import Settings, get_settings

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
TELEMETRY_LOGGER = "study_pacer.telemetry"


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Install the root stream handler at the configured level."""
    settings = settings or get_settings()
    level = settings.log_level.upper()

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": DEFAULT_LOG_FORMAT,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
            "loggers": {
                TELEMETRY_LOGGER: {
                    "level": "INFO" if settings.telemetry_logging else "WARNING",
                },
            },
        }
    )

    if settings.debug_sql:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
