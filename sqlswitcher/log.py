"""
Logging setup for the command line tool.
"""

import logging

LOG_FORMAT = "%(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int = logging.WARNING) -> logging.Logger:
    """
    Attach a stream handler to the sqlswitcher logger.

    Calling it again only updates the level.
    """
    logger = logging.getLogger("sqlswitcher")
    logger.setLevel(level)
    if not any(getattr(h, "_sqlswitcher", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._sqlswitcher = True
        logger.addHandler(handler)
    return logger
