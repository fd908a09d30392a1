"""Process-wide structured logging with text and JSON output."""

import json
import logging
import os
import sys
from datetime import datetime
from enum import Enum

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_LOGGER = logging.getLogger("cloudshell")


class Level(str, Enum):
    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class Format(str, Enum):
    JSON = "json"
    TEXT = "text"


VALID_LEVEL_STRINGS = tuple(level.value for level in Level)
VALID_FORMAT_STRINGS = tuple(fmt.value for fmt in Format)

LEVEL_MAP = {
    Level.TRACE: TRACE,
    Level.DEBUG: logging.DEBUG,
    Level.INFO: logging.INFO,
    Level.WARN: logging.WARNING,
    Level.ERROR: logging.ERROR,
}

_LEVEL_NAMES = {
    TRACE: "trace",
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "fatal",
}


def _level_name(record):
    return _LEVEL_NAMES.get(record.levelno, record.levelname.lower())


def _record_fields(record):
    return getattr(record, "fields", {}) or {}


class _JSONFormatter(logging.Formatter):
    def format(self, record):
        timestamp = datetime.fromtimestamp(record.created).astimezone()
        payload = {
            "@data": _record_fields(record),
            "@file": os.path.basename(record.pathname),
            "@func": record.funcName,
            "@level": _level_name(record),
            "@message": record.getMessage(),
            "@timestamp": timestamp.strftime("%Y-%m-%dT%H:%M:%S%z"),
        }
        return json.dumps(payload, default=str, sort_keys=True)


def _quote(value):
    return json.dumps(str(value), ensure_ascii=False)


class _TextFormatter(logging.Formatter):
    def format(self, record):
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        parts = [
            f"time={_quote(timestamp)}",
            f"level={_quote(_level_name(record))}",
            f"msg={_quote(record.getMessage())}",
            f"func={_quote(record.funcName)}",
            f"file={_quote(os.path.basename(record.pathname))}",
        ]
        fields = _record_fields(record)
        parts.extend(f"{key}={_quote(fields[key])}" for key in sorted(fields))
        return " ".join(parts)


class FieldLogger:
    """A logger that attaches a fixed set of fields to every entry."""

    def __init__(self, fields=None, logger=None):
        self.fields = dict(fields or {})
        self._logger = logger or _LOGGER

    def _emit(self, level, message, args):
        self._logger.log(
            level, message, *args, extra={"fields": dict(self.fields)}, stacklevel=3
        )

    def trace(self, message, *args):
        self._emit(TRACE, message, args)

    def debug(self, message, *args):
        self._emit(logging.DEBUG, message, args)

    def info(self, message, *args):
        self._emit(logging.INFO, message, args)

    def warn(self, message, *args):
        self._emit(logging.WARNING, message, args)

    def error(self, message, *args):
        self._emit(logging.ERROR, message, args)


def init_logging(log_format, log_level, stream=None):
    """Configure the package logger's format, minimum level and output stream."""
    fmt = Format(log_format)
    level = Level(log_level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(_JSONFormatter() if fmt is Format.JSON else _TextFormatter())
    for existing in list(_LOGGER.handlers):
        _LOGGER.removeHandler(existing)
    _LOGGER.addHandler(handler)
    _LOGGER.setLevel(LEVEL_MAP[level])
    _LOGGER.propagate = False


def with_fields(fields):
    """Return a logger carrying the given fields."""
    return FieldLogger(fields)


def with_field(key, value):
    """Return a logger carrying a single field."""
    return FieldLogger({key: value})