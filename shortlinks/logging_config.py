"""Logger setup for the shortlinks service."""

import logging

__all__ = ["LOGGER_NAME", "setup_logging"]

LOGGER_NAME = "shortlinks"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach a stream handler to the ``shortlinks`` logger tree once."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger
