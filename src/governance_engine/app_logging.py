"""
Logging utilities for the governance engine.

All engine loggers are children of the ``governance_engine`` logger. Nothing
is emitted until ``setup_logging`` attaches a handler, which is a Rich console
handler by default and a plain stream handler otherwise.
"""

import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


# Custom theme for log levels
_LOG_THEME = Theme({
    "logging.level.debug": "dim cyan",
    "logging.level.info": "green",
    "logging.level.warning": "yellow",
    "logging.level.error": "bold red",
    "logging.level.critical": "bold white on red",
    "log.time": "dim",
    "log.message": "default",
    "log.path": "dim",
})

# Logs go to stderr so JSON output on stdout stays clean
_console = Console(theme=_LOG_THEME, stderr=True)

ROOT_LOGGER_NAME = 'governance_engine'

_loggers: dict[str, logging.Logger] = {}

_logging_configured = False


def setup_logging(
    level: str = 'INFO',
    log_format: Optional[str] = None,
    rich_console: bool = True,
    show_path: bool = False,
    show_time: bool = True,
) -> None:
    """
    Configure the ``governance_engine`` logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format string for the plain stream handler. Ignored when
            ``rich_console`` is set.
        rich_console: Use a Rich handler on stderr (default: True)
        show_path: Show the source path in Rich output (default: False)
        show_time: Show timestamps in Rich output (default: True)
    """
    global _logging_configured

    if log_format is None:
        log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    level_value = getattr(logging, level.upper(), None)
    if not isinstance(level_value, int):
        raise ValueError(f"Unknown log level: {level}")

    if rich_console:
        handler: logging.Handler = RichHandler(
            console=_console,
            level=level_value,
            show_time=show_time,
            show_path=show_path,
            rich_tracebacks=True,
            markup=False,
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(log_format))
    handler.setLevel(level_value)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level_value)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.propagate = False

    _logging_configured = True


def is_configured() -> bool:
    return _logging_configured


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for an engine component.

    Args:
        name: Component name (e.g. 'evaluation', 'services'). Prefixed with
              'governance_engine.' automatically.

    Returns:
        A standard logging.Logger.
    """
    full_name = f"{ROOT_LOGGER_NAME}.{name}" if name else ROOT_LOGGER_NAME

    if full_name not in _loggers:
        _loggers[full_name] = logging.getLogger(full_name)

    return _loggers[full_name]


# Root logger stays silent until setup_logging is called
_root_logger = logging.getLogger(ROOT_LOGGER_NAME)
_root_logger.addHandler(logging.NullHandler())
