"""
Logging
Structured logging for the ledgercloak package.

Two helpers:
- configure_logging(): attach a handler to the stdlib "ledgercloak" logger
  and pick the renderer. Called once by the host application at startup.
- get_logger(name): acquire a bound logger. Library modules only ever call
  this and never attach handlers themselves.

Until configure_logging() runs, events route through stdlib logging into a
NullHandler and go nowhere. Log events must never carry key material,
plaintext, or raw amounts.
"""

import logging
import sys

import structlog

from ledgercloak.config import get_settings

_PKG_LOGGER_NAME = "ledgercloak"
_CONFIGURED = False

# Applied on every package logger; rendering happens in the handler's formatter
_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
]

logging.getLogger(_PKG_LOGGER_NAME).addHandler(logging.NullHandler())


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if level is None:
        level = get_settings().log_level
    level = level.strip().upper()
    if level.isdigit():
        return int(level)
    numeric = getattr(logging, level, None)
    if isinstance(numeric, int):
        return numeric
    return logging.INFO


def _formatter(json: bool) -> structlog.stdlib.ProcessorFormatter:
    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


def configure_logging(level: int | str | None = None, json: bool | None = None, stream=None) -> None:
    """
    Configure package logging exactly once.

    Only the stdlib "ledgercloak" logger is touched; structlog's global
    configuration is left to the host application.

    Args:
        level: Level as int or name. Defaults to the LEDGERCLOAK_LOG_LEVEL setting.
        json: Render JSON lines. Defaults to the LEDGERCLOAK_LOG_JSON setting.
        stream: Output stream for the handler (defaults to stderr).
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    if json is None:
        json = get_settings().log_json

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(_formatter(json))
    logger.addHandler(handler)
    logger.setLevel(_parse_level(level))
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str = _PKG_LOGGER_NAME):
    """Get a structlog logger bound to a stdlib logger under the package root."""
    if name != _PKG_LOGGER_NAME and not name.startswith(_PKG_LOGGER_NAME + "."):
        name = f"{_PKG_LOGGER_NAME}.{name}"
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
    )
