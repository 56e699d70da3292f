"""
Logging configuration for the pets provider.

``setup_logging`` attaches handlers to the ``pets_provider`` package
logger, so an embedding application keeps control of its own root
logger.  Level and log file default to ``Settings.log_level`` and
``Settings.log_file``.  Library code never calls it; entry points such
as the command line tool do.
"""

import logging
from pathlib import Path
from typing import Optional

from .config import Settings, settings as default_settings

PACKAGE_LOGGER = "pets_provider"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: Optional[str] = None,
    logfile: Optional[str] = None,
    cfg: Optional[Settings] = None,
) -> bool:
    """Configure the package logger once.

    Parameters
    ----------
    level : Optional[str]
        Logging level name, case insensitive; unknown names fall back
        to ``INFO``.  Defaults to ``cfg.log_level``.
    logfile : Optional[str]
        File to log to in addition to the console.  Defaults to
        ``cfg.log_file``; an empty value means no file handler.
    cfg : Optional[Settings]
        Settings to take the defaults from; the module-level settings
        when omitted.

    Returns
    -------
    bool
        ``True`` if handlers were attached, ``False`` if the package
        logger was already configured.
    """
    cfg = cfg or default_settings
    logger = logging.getLogger(PACKAGE_LOGGER)
    if logger.handlers:
        return False

    level = level or cfg.log_level
    logfile = logfile if logfile is not None else cfg.log_file
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging configured at %s for database %s", level.upper(), cfg.database_url)
    return True
