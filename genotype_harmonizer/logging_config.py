"""
Logging configuration for the genotype harmonizer CLI.

Provides:
- Console handler (rich): warnings by default, INFO with --verbose
- File handler (optional): every DEBUG record, rotated at a size limit

Library modules only call ``logging.getLogger(__name__)``. Handlers are
attached to the ``genotype_harmonizer`` package logger and nothing else, so
an application embedding the package keeps control of the root logger.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "genotype_harmonizer"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Module-level state
_configured = False
_log_file: Optional[Path] = None


def setup_logging(
    log_file: Optional[Path] = None,
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
    max_bytes: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3
) -> Optional[Path]:
    """
    Attach console and (optionally) rotating file handlers to the package logger.

    Calling it again after a successful setup does nothing until
    ``reset_logging()`` runs.

    Args:
        log_file: Where to write DEBUG logs; parent directories are created.
            None disables file logging.
        console_level: Minimum level shown on stderr.
        file_level: Minimum level written to ``log_file``.
        max_bytes: Size at which the log file is rotated.
        backup_count: Rotated files kept.

    Returns:
        The log file path, or None without file logging.
    """
    global _configured, _log_file

    if _configured:
        return _log_file

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    console_handler.setLevel(console_level)
    logger.addHandler(console_handler)

    if log_file is not None:
        _log_file = Path(log_file)
        _log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            _log_file,
            maxBytes=max_bytes,
            backupCount=backup_count
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    _configured = True
    return _log_file


def reset_logging() -> None:
    """Close the package handlers and hand records back to the root logger."""
    global _configured, _log_file
    _configured = False
    _log_file = None

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
