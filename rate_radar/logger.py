"""Logging helpers for rate_radar
"""
import logging
import os

# Libraries that log one line per HTTP request or poll
_NOISY_LOGGERS = ("httpx", "httpcore", "telegram")


def setup_logging(level_name: str | None = None) -> None:
    name = (level_name or os.environ.get("LOG_LEVEL") or "INFO").upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root.addHandler(handler)
    root.setLevel(level)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    if level == logging.INFO and name != "INFO":
        logging.getLogger(__name__).warning("Unknown LOG_LEVEL %r, using INFO", name)


__all__ = ["setup_logging"]
