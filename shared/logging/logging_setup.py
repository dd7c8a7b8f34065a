"""Logging configuration for vectdb.

Console output goes to stderr so command output on stdout stays pipeable.
The optional file log rotates under <ROOT_DIR or cwd>/logs/app.log.
Timestamps are rendered in the TIMEZONE zone via pytz.
"""

import logging
import logging.config
import os
from datetime import datetime
from logging import Logger

from pytz import timezone

LOGGER_NAME = "vectdb"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Supported ANSI color names for the color= parameter
_ANSI_RESET = "\033[0m"
_COLOR_MAP: dict[str, str] = {
    "cyan":    "\033[36m",
    "green":   "\033[32m",
    "yellow":  "\033[33m",
    "red":     "\033[31m",
    "magenta": "\033[35m",
    "blue":    "\033[34m",
    "white":   "\033[37m",
}

# used when a record carries no explicit color
_LEVEL_COLORS: dict[int, str] = {
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}

_LEVELS: dict[str, int] = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def resolve_log_level(level: str | None = None) -> int:
    """Map a level name (argument, else LOG_LEVEL env, else "info") to a logging level.

    Unknown names fall back to INFO.
    """
    name = (level or os.getenv("LOG_LEVEL") or "info").strip().lower()
    return _LEVELS.get(name, logging.INFO)


class TimezoneFormatter(logging.Formatter):
    """Formatter that renders %(asctime)s in a fixed timezone."""

    def __init__(self, tz_name, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()


class ColoredFormatter(TimezoneFormatter):
    """Console formatter with per-message ANSI colors.

    A ``color`` attribute on the record (set via ``ColorLogger(..., color=...)``)
    wins; otherwise warnings are yellow and errors red.
    """

    def format(self, record) -> str:
        line = super().format(record)
        color_name = getattr(record, "color", None) or _LEVEL_COLORS.get(record.levelno)
        ansi = _COLOR_MAP.get(color_name or "", "")
        return f"{ansi}{line}{_ANSI_RESET}" if ansi else line


class ColorLogger:
    """Wrapper around :class:`logging.Logger` adding an optional ``color=`` keyword.

    Usage::

        logger.info("Ingestion complete", color="green")

    Colors only reach the console handler; the file log stays plain text.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _log(self, level: int, msg, args: tuple, color: str | None, kwargs: dict) -> None:
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.DEBUG, msg, args, color, kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.INFO, msg, args, color, kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.WARNING, msg, args, color, kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.ERROR, msg, args, color, kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, args, color, kwargs)

    def __getattr__(self, name):
        """Delegate all other Logger attributes (e.g. setLevel, handlers) transparently."""
        return getattr(self._logger, name)


def setup_logging(level: str | None = None) -> ColorLogger:
    """Configure console and file logging for vectdb.

    Safe to call again, e.g. once the CLI has parsed --log-level.

    Args:
        level (str | None): Level name overriding the LOG_LEVEL env variable.

    Returns:
        ColorLogger: The application logger.
    """
    loglevel = resolve_log_level(level)
    tz_name = os.getenv("TIMEZONE", "UTC")
    log_to_file = os.getenv("LOG_TO_FILE", "true").strip().lower() in ("true", "1", "yes")
    line_format = "%(asctime)s - %(levelname)s - %(message)s"

    handlers: dict[str, dict] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "colored",
            "level": loglevel,
            "stream": "ext://sys.stderr",
        },
    }
    if log_to_file:
        log_dir = os.path.join(os.getenv("ROOT_DIR") or os.getcwd(), "logs")
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "standard",
            "level": loglevel,
            "filename": os.path.join(log_dir, "app.log"),
            "maxBytes": LOG_FILE_MAX_BYTES,
            "backupCount": LOG_FILE_BACKUPS,
            "encoding": "utf-8",
        }

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "()": TimezoneFormatter,
                "format": line_format,
                "datefmt": "%Y-%m-%d %H:%M:%S",
                "tz_name": tz_name,
            },
            "colored": {
                "()": ColoredFormatter,
                "format": line_format,
                "datefmt": "%Y-%m-%d %H:%M:%S",
                "tz_name": tz_name,
            },
        },
        "handlers": handlers,
        "root": {
            "handlers": list(handlers),
            "level": loglevel,
        },
    })

    # per-request transport chatter only in debug mode
    transport_level = logging.DEBUG if loglevel <= logging.DEBUG else logging.WARNING
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(transport_level)

    return ColorLogger(logging.getLogger(LOGGER_NAME))
