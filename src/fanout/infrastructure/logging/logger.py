"""Process-wide logger with rich console output and optional log file."""

import logging
import threading
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler


LOGGER_NAME = "fanout"
FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s %(message)s%(context)s"


class _ContextFilter(logging.Filter):
    """Renders the structured `extra` fields into a `context` attribute."""

    def filter(self, record: logging.LogRecord) -> bool:
        fields = getattr(record, "fields", None)
        if fields:
            rendered = " ".join(f"{key}={value}" for key, value in fields.items())
            record.context = f" [{rendered}]"
        else:
            record.context = ""
        return True


class FanoutLogger:
    """
    Singleton facade over the `fanout` standard library logger.

    Every call accepts structured fields through `extra`, mirroring
    logging's own keyword. Call configure() once at startup; until then
    records propagate to whatever the host application set up.
    """

    _instance: Optional["FanoutLogger"] = None
    _lock = threading.Lock()

    def __init__(self):
        self._logger = logging.getLogger(LOGGER_NAME)
        self._logger.addFilter(_ContextFilter())
        self._handlers = []

    @classmethod
    def get_instance(cls) -> "FanoutLogger":
        """Return the shared logger, creating it on first use."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def configure(
        self,
        level: str = "INFO",
        console: bool = True,
        file: Optional[str] = None,
        rotation: str = "daily",
        retention_days: int = 30,
        rich_console: Optional[Console] = None,
    ):
        """
        Install handlers, replacing any installed by a previous call.

        Args:
            level: Logging level name
            console: Log to the terminal through rich
            file: Optional log file path
            rotation: 'daily' or 'none'
            retention_days: Rotated files to keep when rotating daily
            rich_console: Console to render to (defaults to stderr)
        """
        for handler in self._handlers:
            self._logger.removeHandler(handler)
            handler.close()
        self._handlers = []

        self._logger.setLevel(level.upper())

        if console:
            console_handler = RichHandler(
                console=rich_console or Console(stderr=True),
                show_path=False,
                markup=False,
            )
            console_handler.setFormatter(logging.Formatter("%(message)s%(context)s"))
            self._add_handler(console_handler)

        if file:
            log_path = Path(file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            if rotation == "daily":
                file_handler = TimedRotatingFileHandler(
                    log_path,
                    when="midnight",
                    backupCount=retention_days,
                    encoding="utf-8",
                )
            else:
                file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            self._add_handler(file_handler)

        self._logger.propagate = not self._handlers

    def _add_handler(self, handler: logging.Handler):
        self._logger.addHandler(handler)
        self._handlers.append(handler)

    def _log(self, level: int, message: str, extra: Optional[Dict[str, Any]], **kwargs):
        self._logger.log(level, message, extra={"fields": extra or {}}, **kwargs)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None, **kwargs):
        self._log(logging.DEBUG, message, extra, **kwargs)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None, **kwargs):
        self._log(logging.INFO, message, extra, **kwargs)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None, **kwargs):
        self._log(logging.WARNING, message, extra, **kwargs)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None, **kwargs):
        self._log(logging.ERROR, message, extra, **kwargs)

    def is_verbose(self) -> bool:
        """True when DEBUG records would be emitted."""
        return self._logger.isEnabledFor(logging.DEBUG)
