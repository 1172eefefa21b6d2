"""Logging setup for errsimplifier; credentials never reach a handler."""

from __future__ import annotations

import logging
import re
from pathlib import Path

_LOGGER_NAME = "errsimplifier"
CONSOLE_FORMAT = "[errsimplifier] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
REDACTED = "***"

_SECRET_PATTERNS = (
    re.compile(r"(Bearer\s+)\S+"),
    re.compile(r"(tg_api_)\w+"),
)


class RedactingFilter(logging.Filter):
    """Masks API keys and bearer tokens in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = message
        for pattern in _SECRET_PATTERNS:
            redacted = pattern.sub(rf"\g<1>{REDACTED}", redacted)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send warnings (or everything, with ``verbose``) to stderr.

    A ``log_file`` always receives DEBUG records, so a quiet console run
    still leaves a full trace of compiler invocations and API attempts.
    """
    console_level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_file is not None else console_level)
    logger.propagate = False

    # watch mode reconfigures per run
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [
        _handler(logging.StreamHandler(), console_level, CONSOLE_FORMAT)
    ]
    if log_file is not None:
        handlers.append(
            _handler(logging.FileHandler(log_file, encoding="utf-8"), logging.DEBUG, FILE_FORMAT)
        )
    for handler in handlers:
        logger.addHandler(handler)
    return logger


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(RedactingFilter())
    return handler


__all__ = ["RedactingFilter", "configure_logging", "get_logger"]
