"""Logging setup for the CLI."""

import logging


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # asyncssh logs every channel open/close at INFO
    if level.upper() == "DEBUG":
        logging.getLogger("asyncssh").setLevel(logging.INFO)
    else:
        logging.getLogger("asyncssh").setLevel(logging.WARNING)
