"""Shared utility functions for the FinControl ledger API."""

import logging
from datetime import UTC, datetime

import colorlog


def get_logger(name: str) -> logging.Logger:
    """Get a logger with a colorized format for the project."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def get_color(color: str) -> str:
    """Return the ANSI escape code for a colorlog color name, or an empty string."""
    from colorlog.escape_codes import escape_codes

    return escape_codes.get(color, "")


def utcnow() -> datetime:
    """Get the current UTC time as an aware datetime."""
    return datetime.now(UTC)


def truncate(text: str, limit: int) -> str:
    """Shorten text for log lines."""
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text
