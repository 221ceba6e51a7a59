"""Logging configuration for the provisionctl package."""
import logging
import sys

from .config import Config


def setup_logging(debug_mode: bool = False) -> None:
    """Configure root logging based on debug mode.

    Safe to call more than once: the second dispatch of a command line
    re-runs the global callback, so the level is reset on every call
    instead of relying on ``basicConfig`` alone.
    """
    log_level = logging.DEBUG if debug_mode else getattr(logging, Config.LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=log_level,
        format=Config.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )
    logging.getLogger().setLevel(log_level)
    # Disable debug logging for noisy libraries
    if not debug_mode:
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('kubernetes').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
