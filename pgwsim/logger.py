"""Process-wide logger set up from configuration values."""

from __future__ import annotations

import logging
import sys

TRACE = 5
OFF = logging.CRITICAL + 10

logging.addLevelName(TRACE, "TRACE")

_LEVELS = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
    "OFF": OFF,
}

_FORMAT = "[%(asctime)s.%(msecs)03d] [%(levelname)s] [thread %(thread)d] %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_NULL_LOGGER_NAME = "pgwsim.null"

_active: logging.Logger | None = None


def parse_level(level: str) -> int:
    """Map a configuration level name to a logging level."""
    try:
        return _LEVELS[level]
    except KeyError:
        raise ValueError(f"Unknown log level: {level}") from None


def init_logger(
    log_file: str,
    logger_name: str,
    log_level: str = "OFF",
    console_output: bool = True,
) -> logging.Logger:
    """Configure the process logger with console and/or file output."""
    global _active

    level = parse_level(log_level)
    handlers: list[logging.Handler] = []
    if console_output:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
        except OSError as exc:
            for handler in handlers:
                handler.close()
            raise RuntimeError(f"Logger initialization failed: {exc}") from exc
    if not handlers:
        raise RuntimeError("No log sinks configured")

    formatter = logging.Formatter(_FORMAT, _DATE_FORMAT)
    logger = logging.getLogger(logger_name)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    _active = logger
    return logger


def get_logger() -> logging.Logger:
    """Return the configured logger, or a silent one if none was set up."""
    if _active is not None:
        return _active
    logger = logging.getLogger(_NULL_LOGGER_NAME)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.setLevel(OFF)
    logger.propagate = False
    return logger