"""Logging setup for Versionist.

Modules get a namespaced stdlib logger:

    from versionist.logging import get_logger
    logger = get_logger(__name__)

Nothing is printed until :func:`configure_logging` installs a handler,
which the CLI does based on ``--verbose``/``--quiet``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "versionist"

_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the ``versionist`` namespace.

    Args:
        name: Usually ``__name__``. Names outside the package are nested
            under ``versionist`` so one handler covers them.

    Returns:
        The stdlib logger.
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    console: Console | None = None,
) -> logging.Logger:
    """Install console (and optional file) handlers on the package logger.

    Calling it again replaces the previous handlers.

    Args:
        verbose: Log DEBUG and above (the increment trail).
        quiet: Log ERROR and above only. Ignored when ``verbose`` is set.
        log_file: Also append records to this file.
        console: Rich console to write to (defaults to stderr).

    Returns:
        The configured package logger.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    # File output always records the full trail
    logger.setLevel(logging.DEBUG if log_file is not None else level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    rich_handler.setLevel(level)
    logger.addHandler(rich_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger
