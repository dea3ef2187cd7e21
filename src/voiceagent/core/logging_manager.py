"""Centralized Logging Management for the voice agent

Handles log configuration, formatting, and output management.
"""

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'        # Reset
    }

    def format(self, record):
        """Format log record with colors for console output."""
        log_message = super().format(record)
        return f"{self.COLORS.get(record.levelname, '')}{log_message}{self.COLORS['RESET']}"


class LoggingManager:
    """Centralized logging configuration and management.

    The first instantiation wires the root logger. Call ``configure`` once
    the application configuration is known to move the log directory or
    change the console level.
    """

    _instance: Optional['LoggingManager'] = None
    _initialized: bool = False

    def __new__(cls) -> 'LoggingManager':
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize logging manager (only once)."""
        if self._initialized:
            return

        self.log_dir = Path("logs")
        self.console_level = logging.INFO
        self.file_logging = True

        self.loggers: Dict[str, logging.Logger] = {}
        self._setup_root_logger()
        self._initialized = True

    def _setup_root_logger(self):
        """Configure the root logger with handlers."""
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)

        # Clearing existing handlers
        root_logger.handlers.clear()

        # Console handler with colors, on stderr so CLI output stays parseable
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(self.console_level)
        console_formatter = ColoredFormatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
            datefmt='%H:%M:%S'
        )
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

        if not self.file_logging:
            return

        self.log_dir.mkdir(parents=True, exist_ok=True)

        # File handler for all logs
        log_file = self.log_dir / f"voiceagent_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

        # Error file handler for errors only
        error_file = self.log_dir / f"voiceagent_errors_{datetime.now().strftime('%Y%m%d')}.log"
        error_handler = logging.handlers.RotatingFileHandler(
            error_file,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=10,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_formatter)
        root_logger.addHandler(error_handler)

    def configure(self, log_dir: Optional[str] = None, level: Optional[str] = None,
                  file_logging: Optional[bool] = None):
        """Re-wire handlers from application configuration.

        Args:
            log_dir: Directory for rotating log files
            level: Console log level name
            file_logging: Whether rotating file handlers are installed
        """
        if log_dir is not None:
            self.log_dir = Path(log_dir)
        if level is not None:
            self.console_level = self._to_numeric_level(level)
        if file_logging is not None:
            self.file_logging = file_logging

        for handler in logging.getLogger().handlers:
            handler.close()
        self._setup_root_logger()

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Class method to get logger instance.

        Args:
            name: Logger name (typically __name__ of the module)

        Returns:
            Configured logger
        """
        manager = cls()
        return manager._get_logger_instance(name)

    def _get_logger_instance(self, name: str) -> logging.Logger:
        """Internal method to get logger instance."""
        if name in self.loggers:
            return self.loggers[name]

        logger = logging.getLogger(name)
        self.loggers[name] = logger
        return logger

    def set_log_level(self, level: str):
        """Set the logging level for the console handler.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        """
        numeric_level = self._to_numeric_level(level)
        self.console_level = numeric_level

        root_logger = logging.getLogger()
        for handler in root_logger.handlers:
            if isinstance(handler, logging.StreamHandler) and handler.stream == sys.stderr:
                handler.setLevel(numeric_level)
                break

    @staticmethod
    def _to_numeric_level(level: str) -> int:
        numeric_level = getattr(logging, level.upper(), None)
        if not isinstance(numeric_level, int):
            raise ValueError(f'Invalid log level: {level}')
        return numeric_level
