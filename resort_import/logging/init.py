from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Application logging.

All output lines carry a label: DEBUG / INFO / WARN / ERROR / SUMMARY.
One stream handler is attached to the package logger "resort_import"; module
loggers (logging.getLogger(__name__)) reach it through propagation. With
--debug, DEBUG lines also show the emitting module.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "setup_logging",
    "get_logger",
    "log_summary",
    "reset_logging",
]

LOGGER_NAME = "resort_import"
SUMMARY_LEVEL = 25  # INFO と WARNING の間

_LABELS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    SUMMARY_LEVEL: "SUMMARY",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}

_handler: logging.Handler | None = None


class LabeledFormatter(logging.Formatter):
    """Render records as "LABEL message"."""

    def __init__(self, show_origin: bool = False) -> None:
        super().__init__()
        self.show_origin = show_origin

    def format(self, record: logging.LogRecord) -> str:
        label = _LABELS.get(record.levelno, record.levelname)
        text = record.getMessage()
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        if self.show_origin and record.levelno == logging.DEBUG:
            origin = record.name.removeprefix(f"{LOGGER_NAME}.")
            return f"{label} [{origin}] {text}"
        return f"{label} {text}"


def _apply_level(logger: logging.Logger, handler: logging.Handler, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)
    handler.setLevel(level)
    handler.setFormatter(LabeledFormatter(show_origin=debug))


def setup_logging(debug: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Attach the labeled handler to the package logger.

    Safe to call repeatedly: later calls reuse the existing handler and can
    only switch debug output on.

    Args:
        debug: Log DEBUG lines (with module origin)
        stream: Output stream, stdout by default

    Returns:
        The "resort_import" logger
    """
    global _handler
    logger = logging.getLogger(LOGGER_NAME)
    if _handler is None:
        logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
        for stale in list(logger.handlers):
            logger.removeHandler(stale)
        _handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
        logger.addHandler(_handler)
        logger.propagate = False  # root への二重出力を防ぐ
        _apply_level(logger, _handler, debug)
    elif debug:
        _apply_level(logger, _handler, True)
    return logger


def get_logger() -> logging.Logger:
    return setup_logging()


def log_summary(message: str) -> None:
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Detach the handler so the next setup_logging() starts fresh (tests)."""
    global _handler
    if _handler is not None:
        logging.getLogger(LOGGER_NAME).removeHandler(_handler)
        _handler = None
