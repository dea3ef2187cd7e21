"""Core modules for the voice agent.

Configuration, logging, error handling and the clock shared by every other
package. The application controller lives in ``core.application`` and is
exported from the top-level package.
"""

from .clock import FixedClock, NowProvider
from .config_manager import AppConfig, ConfigManager
from .error_handler import (
    ConfigurationError,
    ErrorHandler,
    ErrorSeverity,
    LogSinkFailure,
    ParseIssue,
    TeacherError,
    TeacherTimeout,
    TeacherUnavailable,
    VoiceAgentError,
)
from .logging_manager import LoggingManager

__all__ = [
    "AppConfig",
    "ConfigManager",
    "ConfigurationError",
    "ErrorHandler",
    "ErrorSeverity",
    "FixedClock",
    "LogSinkFailure",
    "LoggingManager",
    "NowProvider",
    "ParseIssue",
    "TeacherError",
    "TeacherTimeout",
    "TeacherUnavailable",
    "VoiceAgentError",
]
