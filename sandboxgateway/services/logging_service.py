# -*- coding: utf-8 -*-
"""Location: ./sandboxgateway/services/logging_service.py
Copyright 2026
SPDX-License-Identifier: Apache-2.0

Logging Service Implementation.

Process logging for the sandbox gateway. Console records always go to
stderr, since stdout carries the MCP stdio protocol. With ``LOG_TO_FILE``
enabled, records are also written as JSON lines to a rotating file. MCP
``logging/setLevel`` requests arrive through :meth:`LoggingService.set_level`.
"""

# Standard
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys
from typing import Dict, List, Optional

# Third-Party
from pythonjsonlogger import jsonlogger

# First-Party
from sandboxgateway.config import settings, Settings
from sandboxgateway.models import LogLevel

CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

_LEVEL_MAP: Dict[LogLevel, int] = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.NOTICE: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL,
    LogLevel.ALERT: logging.CRITICAL,
    LogLevel.EMERGENCY: logging.CRITICAL,
}


def to_logging_level(level: LogLevel) -> int:
    """Map an RFC 5424 level to a stdlib logging level.

    Args:
        level: MCP log level

    Returns:
        int: ``logging`` module level

    Examples:
        >>> import logging
        >>> to_logging_level(LogLevel.NOTICE) == logging.INFO
        True
        >>> to_logging_level(LogLevel.EMERGENCY) == logging.CRITICAL
        True
    """
    return _LEVEL_MAP[LogLevel(level)]


def log_file_path(config: Settings) -> Optional[Path]:
    """Resolve where JSON log records go.

    Args:
        config: Settings holding the file logging options

    Returns:
        Optional[Path]: Target file, or None when file logging is off

    Examples:
        >>> log_file_path(Settings(log_to_file=False)) is None
        True
        >>> str(log_file_path(Settings(log_to_file=True, log_file="gw.log", log_folder="logs")))
        'logs/gw.log'
    """
    if not config.log_to_file or not config.log_file:
        return None
    if config.log_folder:
        return Path(config.log_folder) / config.log_file
    return Path(config.log_file)


def build_console_handler() -> logging.Handler:
    """Create the stderr handler with the plain-text format.

    Returns:
        logging.Handler: Console handler
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def build_json_file_handler(path: Path) -> logging.Handler:
    """Create the rotating JSON-lines handler.

    ``asctime`` and ``levelname`` are written as ``timestamp`` and ``level``.

    Args:
        path: Log file, its folder is created when missing

    Returns:
        logging.Handler: File handler
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8")
    handler.setFormatter(jsonlogger.JsonFormatter(JSON_FIELDS, rename_fields={"asctime": "timestamp", "levelname": "level"}))
    return handler


class LoggingService:
    """Owns the root-logger handlers of the process.

    Named loggers (``logging.getLogger(__name__)`` in every module) keep the
    NOTSET level and propagate to the root, so the root level is the single
    switch changed by :meth:`set_level`.
    """

    def __init__(self, level: Optional[LogLevel] = None, config: Optional[Settings] = None):
        """Initialize logging service.

        Args:
            level: Initial level (defaults to ``LOG_LEVEL``)
            config: Settings with the file logging options (defaults to the process settings)
        """
        self._config = config or settings
        self._level = LogLevel(level if level is not None else self._config.log_level.lower())
        self._handlers: List[logging.Handler] = []

    @property
    def level(self) -> LogLevel:
        """Current minimum level."""
        return self._level

    @property
    def handlers(self) -> List[logging.Handler]:
        """Handlers installed on the root logger by this service."""
        return list(self._handlers)

    async def initialize(self) -> None:
        """Install the console and optional JSON file handlers.

        Calling it again while initialized changes nothing.

        Examples:
            >>> import asyncio
            >>> service = LoggingService(config=Settings(log_to_file=False))
            >>> asyncio.run(service.initialize())
            >>> len(service.handlers)
            1
            >>> asyncio.run(service.shutdown())
            >>> service.handlers
            []
        """
        if self._handlers:
            return

        root = logging.getLogger()
        self._handlers.append(build_console_handler())

        path = log_file_path(self._config)
        file_error: Optional[OSError] = None
        if path is not None:
            try:
                self._handlers.append(build_json_file_handler(path))
            except OSError as exc:
                file_error = exc

        for handler in self._handlers:
            root.addHandler(handler)
        root.setLevel(to_logging_level(self._level))

        logger = logging.getLogger(__name__)
        if file_error is not None:
            logger.warning(f"File logging disabled, cannot open {path}: {file_error}")
        elif path is not None:
            logger.info(f"File logging enabled: {path}")
        logger.info(f"Logging service initialized at {self._level.value}")

    async def shutdown(self) -> None:
        """Flush, detach and close the installed handlers."""
        root = logging.getLogger()
        handlers, self._handlers = self._handlers, []
        for handler in handlers:
            root.removeHandler(handler)
            handler.close()

    async def set_level(self, level: LogLevel) -> None:
        """Change the minimum level of every gateway logger.

        Args:
            level: New log level

        Examples:
            >>> import asyncio, logging
            >>> previous = logging.getLogger().level
            >>> service = LoggingService(LogLevel.INFO)
            >>> asyncio.run(service.set_level(LogLevel.DEBUG))
            >>> service.level
            <LogLevel.DEBUG: 'debug'>
            >>> logging.getLogger().level == logging.DEBUG
            True
            >>> logging.getLogger().setLevel(previous)
        """
        self._level = LogLevel(level)
        logging.getLogger().setLevel(to_logging_level(self._level))
        logging.getLogger(__name__).info(f"Log level set to {self._level.value}")
