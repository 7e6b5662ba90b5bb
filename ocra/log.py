import logging

from rich.logging import RichHandler


def setup_logging(level: str | int = "INFO") -> logging.Logger:
    """Send everything under the `ocra` logger through rich."""
    logger = logging.getLogger("ocra")
    logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(rich_tracebacks=True, show_path=False))
    logger.propagate = False
    return logger
