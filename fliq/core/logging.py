import logging.config

from fliq.core.config import settings


def configure_logging(level: str | None = None) -> None:
    """Console logging for the API process and the Celery worker."""
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "default"},
        },
        "loggers": {
            "fliq": {"handlers": ["console"], "level": (level or settings.LOG_LEVEL).upper(), "propagate": False},
        },
    })
