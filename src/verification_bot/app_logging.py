"""Logging configuration helpers."""

import logging

LOGGER_NAME = "verification_bot"
LOG_FORMAT = "%(asctime)s %(levelname)s: %(name)s: %(message)s"


def resolve_level(level: int | str) -> int:
    """Map a level name such as ``"debug"`` to its numeric value."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(level: int | str = logging.INFO) -> None:
    """Attach one stream handler to the bot logger and set its level.

    Repeated calls only adjust the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_level(level))
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
