"""Logging configuration for wikiweave.

Modules log through their own loggers:

    import logging
    log = logging.getLogger(__name__)

    log.debug("Embed target missing, inserting nothing")
    log.warning("Embed cycle detected, falling back to a link")

The log level is read from the WIKIWEAVE_LOG_LEVEL environment variable
(DEBUG, INFO, WARNING, ERROR). The default is WARNING so that library use
stays quiet; the CLI raises it to INFO with --verbose.
"""

import logging
import os
import sys

from .config import LOG_LEVEL_ENV


def configure_logging(level: str | None = None) -> None:
    """Configure logging for the wikiweave package.

    Call this once at application startup (the CLI does). Subsequent calls
    only adjust the level.

    Args:
        level: Explicit level name. Falls back to WIKIWEAVE_LOG_LEVEL, then WARNING.
    """
    root_logger = logging.getLogger("wikiweave")

    level_name = (level or os.environ.get(LOG_LEVEL_ENV, "WARNING")).upper()
    resolved = getattr(logging, level_name, logging.WARNING)

    if root_logger.handlers:
        root_logger.setLevel(resolved)
        for handler in root_logger.handlers:
            handler.setLevel(resolved)
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt="[%(levelname)s] %(name)s: %(message)s"))

    root_logger.setLevel(resolved)
    root_logger.addHandler(handler)

    # Avoid duplicate messages through the root logger
    root_logger.propagate = False
