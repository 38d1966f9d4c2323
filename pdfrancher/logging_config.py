"""Logging configuration for command line use."""

from __future__ import annotations

import logging.config


def configure_logging(level: str = "INFO") -> None:
    """Send pdfrancher log records to stderr at *level*."""

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {"format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s"},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "console",
                    "stream": "ext://sys.stderr",
                },
            },
            "loggers": {
                "pdfrancher": {
                    "level": level.upper(),
                    "handlers": ["default"],
                    "propagate": False,
                },
            },
        }
    )
