"""Logging configuration for command-line runs.

Library modules only create module-level loggers; handlers are installed
once by the entry point through configure_logging().
"""

import logging
import logging.config
import os

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
    '"logger": "%(name)s", "message": "%(message)s"}'
)


def configure_logging(level: str | int = logging.INFO) -> None:
    """Configure root logging for the ea-methods CLI.

    Uses a plain text format by default. Set LOG_FORMAT=json for single-line
    JSON records (useful when output is shipped to a log collector).

    Args:
        level: Root log level name or number
    """
    fmt = JSON_FORMAT if os.environ.get("LOG_FORMAT", "text").lower() == "json" else TEXT_FORMAT

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": fmt, "datefmt": "%Y-%m-%dT%H:%M:%S"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stderr",
                },
            },
            "root": {"level": level, "handlers": ["console"]},
            # pyogrio/fiona are chatty at INFO when reading files
            "loggers": {
                "pyogrio": {"level": "WARNING"},
                "fiona": {"level": "WARNING"},
            },
        }
    )
