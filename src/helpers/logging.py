"""Logger module."""

import logging
import sys

from typing import TextIO

import colorlog

loggers: dict[str, logging.Logger] = {}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

LOG_STREAMS = ("stdout", "stderr")


class StdStreamHandler(logging.StreamHandler):
    """Stream handler bound to ``sys.stdout`` or ``sys.stderr`` by name.

    The stream is looked up on every write, so replacements of the standard
    streams (rich's live progress redirect, pytest capture) receive the
    records.
    """

    def __init__(self, stream_name: str) -> None:
        self.stream_name = stream_name
        super().__init__()

    @property
    def stream(self) -> TextIO:  # type: ignore[override]
        return getattr(sys, self.stream_name)

    @stream.setter
    def stream(self, value: TextIO) -> None:
        # StreamHandler.__init__ assigns the default stream
        pass


def _set_level(logger: logging.Logger, level: int) -> None:
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def get_logger(
    name: str,
    log_handler: str = "stdout",
    log_level: str | None = None,
    log_color: bool = False,
) -> logging.Logger:
    """Get logger.

    Loggers are cached by name; the first call decides the handler and
    formatting of a given logger. A ``log_level`` passed to a later call is
    applied to the cached logger, omitting it keeps the current level.

    Args:
        name: The name of the logger.
        log_handler: The log handler type ('stdout' or 'stderr').
        log_level: The logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR',
            'CRITICAL'), INFO for a new logger when omitted.
        log_color: Whether to use colored output.

    Returns:
        logging.Logger: Configured logger instance.

    Raises:
        ValueError: If invalid handler or log level is provided.
    """
    if log_level is not None and log_level not in LOG_LEVELS:
        err_msg = f"Invalid log level: {log_level}"
        raise ValueError(err_msg)

    if name in loggers:
        logger = loggers[name]
        if log_level is not None:
            _set_level(logger, LOG_LEVELS[log_level])
        return logger

    if log_handler not in LOG_STREAMS:
        err_msg = f"Invalid handler: {log_handler}"
        raise ValueError(err_msg)

    handler = StdStreamHandler(log_handler)
    if log_color:
        logger = colorlog.getLogger(name)
        formatter: logging.Formatter = colorlog.ColoredFormatter(
            f"%(log_color)s {LOG_FORMAT}",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )
    else:
        logger = logging.getLogger(name)
        formatter = logging.Formatter(LOG_FORMAT)

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    _set_level(logger, LOG_LEVELS[log_level or "INFO"])

    loggers[name] = logger
    return logger
