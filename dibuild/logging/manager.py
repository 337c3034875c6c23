"""
Centralized Log Manager

Provides unified logging configuration with:
- Human-readable console output on stderr
- Optional rotating JSON file logs

Usage:
    from dibuild.logging import setup_logging, get_logger

    setup_logging(level='DEBUG')
    logger = get_logger(__name__)
    logger.info("Build started")
"""

import os
import sys
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict
from logging.handlers import RotatingFileHandler


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Produces log entries in JSON format with standard fields.
    """

    def __init__(self, service_name: str = 'dibuild'):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'service': self.service_name,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.pathname:
            log_data['location'] = {
                'file': os.path.basename(record.pathname),
                'line': record.lineno,
                'function': record.funcName,
            }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # Build context passed through `extra=`
        extra_fields = ['step', 'file', 'error_code']
        for field in extra_fields:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter with colors.
    """

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True, stream=None):
        super().__init__(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        stream = stream or sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with optional colors."""
        message = super().format(record)

        if self.use_colors:
            color = self.COLORS.get(record.levelname, '')
            if color:
                message = message.replace(
                    record.levelname,
                    f'{color}{record.levelname}{self.RESET}'
                )

        return message


class LogManager:
    """
    Centralized log manager.

    Only the `dibuild` and `cli` logger hierarchies are configured, so
    embedding applications keep control of the root logger.
    """

    _instance: Optional['LogManager'] = None
    _initialized: bool = False

    LOGGER_NAMES = ('dibuild', 'cli')
    DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
    DEFAULT_BACKUP_COUNT = 5

    def __new__(cls) -> 'LogManager':
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._log_dir: Optional[Path] = None
        self._service_name = 'dibuild'
        self._level = logging.WARNING
        self._handlers: Dict[str, logging.Handler] = {}

        self._initialized = True

    @property
    def level(self) -> int:
        return self._level

    def setup(
        self,
        service_name: str = 'dibuild',
        level: str = 'WARNING',
        log_dir: Optional[str] = None,
        add_console: bool = True,
        stream=None,
    ) -> None:
        """
        Configure logging.

        Args:
            service_name: Name used in JSON log entries
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for JSON log files; no file handler when None
            add_console: Add a console handler
            stream: Console stream (default: sys.stderr)
        """
        self._service_name = service_name
        self._level = getattr(logging, level.upper(), logging.WARNING)
        self._log_dir = Path(log_dir) if log_dir else None

        self.reset()

        if add_console:
            console_handler = logging.StreamHandler(stream or sys.stderr)
            console_handler.setLevel(self._level)
            console_handler.setFormatter(ConsoleFormatter(stream=stream))
            self._add_handler('console', console_handler)

        if self._log_dir is not None:
            self._log_dir.mkdir(parents=True, exist_ok=True)
            log_file = self._log_dir / f"dibuild-{datetime.now().strftime('%Y%m%d')}.log"

            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=self.DEFAULT_MAX_BYTES,
                backupCount=self.DEFAULT_BACKUP_COUNT,
                encoding='utf-8',
            )
            file_handler.setLevel(self._level)
            file_handler.setFormatter(JSONFormatter(service_name))
            self._add_handler('file', file_handler)

        for name in self.LOGGER_NAMES:
            logger = logging.getLogger(name)
            logger.setLevel(self._level)
            logger.propagate = False

        logging.getLogger('dibuild').debug(
            "Logging configured for '%s' at level %s", service_name, level
        )

    def reset(self) -> None:
        """Detach and close every handler installed by this manager."""
        for handler in self._handlers.values():
            for name in self.LOGGER_NAMES:
                logging.getLogger(name).removeHandler(handler)
            handler.close()
        self._handlers.clear()
        for name in self.LOGGER_NAMES:
            logger = logging.getLogger(name)
            logger.setLevel(logging.NOTSET)
            logger.propagate = True

    def _add_handler(self, key: str, handler: logging.Handler) -> None:
        for name in self.LOGGER_NAMES:
            logging.getLogger(name).addHandler(handler)
        self._handlers[key] = handler

    def get_logger(self, name: str) -> logging.Logger:
        return logging.getLogger(name)


_manager: Optional[LogManager] = None


def setup_logging(
    service_name: str = 'dibuild',
    level: str = 'WARNING',
    log_dir: Optional[str] = None,
    stream=None,
) -> LogManager:
    """
    Set up logging for the process.

    Args:
        service_name: Name used in JSON log entries
        level: Log level
        log_dir: Directory for JSON log files
        stream: Console stream

    Returns:
        LogManager instance
    """
    global _manager
    _manager = LogManager()
    _manager.setup(
        service_name=service_name,
        level=level,
        log_dir=log_dir,
        stream=stream,
    )
    return _manager


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the given name.

    Unlike setup_logging this never installs handlers, so importing a
    dibuild module has no logging side effects.
    """
    global _manager
    if _manager is None:
        _manager = LogManager()
    return _manager.get_logger(name)
