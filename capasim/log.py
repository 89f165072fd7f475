import logging

from rich.logging import RichHandler

from .config import LOG_LEVEL


def get_logger(component_name: str) -> logging.Logger:
    """
    Create a logger for a specific component with Rich-formatted output.

    Args:
        component_name: Name of the component (e.g., 'engine', 'events')

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(f"capasim.{component_name}")

    # Avoid adding handlers multiple times
    if not logger.handlers:
        handler = RichHandler(show_path=False, log_time_format="%H:%M:%S")
        handler.setFormatter(logging.Formatter(f"[{component_name.upper()}] %(message)s"))
        logger.addHandler(handler)
        logger.setLevel(LOG_LEVEL)
        logger.propagate = False

    return logger


def set_level(level: int) -> None:
    """Apply *level* to every CapaSim logger created so far."""
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith("capasim.") and isinstance(logger, logging.Logger):
            logger.setLevel(level)
