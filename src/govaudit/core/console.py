"""Console output and logging configuration.

Reports go to stdout through ``console``; log records go to stderr through a
Rich handler so piping a report never mixes in diagnostics.

    - console / stderr_console: shared Rich consoles
    - setup_logging(): attach the Rich handler to the ``govaudit`` logger
    - get_console() / get_logger(): late-bound accessors
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "govaudit"

console = Console()
stderr_console = Console(stderr=True)


def resolve_level(level: str | int, verbose: bool = False) -> int:
    """Numeric log level; ``verbose`` always wins, unknown names fall back to INFO."""
    if verbose:
        return logging.DEBUG
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: str | int = logging.INFO, verbose: bool = False) -> logging.Logger:
    """Route ``govaudit.*`` records to stderr and return the package logger.

    Safe to call repeatedly: the previous Rich handler is replaced, and
    handlers owned by other libraries or the root logger are left alone.
    """
    numeric_level = resolve_level(level, verbose)

    handler = RichHandler(
        console=stderr_console,
        markup=False,
        rich_tracebacks=verbose,
        show_path=verbose,
        show_time=verbose,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger = logging.getLogger(LOGGER_NAME)
    for existing in list(logger.handlers):
        if isinstance(existing, RichHandler):
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(numeric_level)
    logger.propagate = False
    return logger


def get_console(stderr: bool = False) -> Console:
    # Looked up at call time so tests can swap the module-level consoles.
    return stderr_console if stderr else console


def get_logger(name: str | None = None) -> logging.Logger:
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if not name.startswith(f"{LOGGER_NAME}."):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)
