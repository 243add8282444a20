"""
Logging setup. Called once from lifelog.main before the app is built.

Stdout only: Railway / Render (and gunicorn's errorlog "-") capture it.
"""
import logging
import logging.config

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": _FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "lifelog": {"handlers": ["console"], "level": level.upper(), "propagate": False},
            # The OpenAI SDK logs every request at INFO through httpx.
            "httpx": {"level": "WARNING"},
        },
    })
    return logging.getLogger("lifelog")
