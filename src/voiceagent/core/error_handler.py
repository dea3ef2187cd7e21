"""Global Error Handling for the voice agent

Exception taxonomy for the resolution pipeline plus a central handler that
logs failures at a level matching their severity.
"""

import logging
import sys
from enum import Enum
from typing import Callable, Dict, Optional, Type


class ErrorSeverity(Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ParseIssue(Enum):
    """Non-fatal conditions recorded while parsing an utterance.

    None of these abort resolution; they are attached to the parse outcome
    so the router and the gold log can report them.
    """
    NORMALIZATION_NOOP = "normalization_noop"
    AMBIGUOUS_DATE = "ambiguous_date"
    UNPARSEABLE_TIME = "unparseable_time"


class VoiceAgentError(Exception):
    """Base exception class for the voice agent."""

    def __init__(self, message: str, severity: ErrorSeverity = ErrorSeverity.MEDIUM):
        self.message = message
        self.severity = severity
        super().__init__(self.message)


class ConfigurationError(VoiceAgentError):
    """Error raised when configuration is invalid."""

    def __init__(self, message: str):
        super().__init__(message, ErrorSeverity.HIGH)


class TeacherError(VoiceAgentError):
    """Error raised when the teacher resolver cannot produce a result."""
    pass


class TeacherTimeout(TeacherError):
    """The teacher resolver did not answer within its timeout."""

    def __init__(self, message: str, timeout: Optional[float] = None):
        super().__init__(message, ErrorSeverity.MEDIUM)
        self.timeout = timeout


class TeacherUnavailable(TeacherError):
    """Network, HTTP or response-format failure from the teacher resolver."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, ErrorSeverity.MEDIUM)
        self.status_code = status_code


class LogSinkFailure(VoiceAgentError):
    """Error raised when a gold log entry cannot be persisted."""

    def __init__(self, message: str):
        super().__init__(message, ErrorSeverity.HIGH)


class ErrorHandler:
    """Central error handler for the application."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.error_callbacks: Dict[Type[Exception], Callable[[Exception], None]] = {}

    def register_error_callback(self, exception_type: Type[Exception],
                              callback: Callable[[Exception], None]):
        """Register a callback for specific exception types.

        Args:
            exception_type: The exception type to handle
            callback: Function to call when this exception occurs
        """
        self.error_callbacks[exception_type] = callback

    def handle_error(self, error: Exception, context: Optional[str] = None) -> bool:
        """Handle an error with logging at the appropriate level.

        Args:
            error: The exception that occurred
            context: Additional context about where the error occurred

        Returns:
            True if error was handled successfully, False otherwise
        """
        try:
            severity = self._get_error_severity(error)
            error_message = self._format_error_message(error, context)

            self._log_error(error_message, severity)

            # Calling registered callbacks, most specific type first
            for error_type in type(error).__mro__:
                if error_type in self.error_callbacks:
                    self.error_callbacks[error_type](error)
                    break

            return True

        except Exception as handler_error:
            # If error handler itself fails, log to stderr
            print(f"Error handler failed: {handler_error}", file=sys.stderr)
            return False

    def _get_error_severity(self, error: Exception) -> ErrorSeverity:
        """Determine error severity based on exception type.

        Args:
            error: The exception to analyze

        Returns:
            Appropriate severity level
        """
        if isinstance(error, VoiceAgentError):
            return error.severity

        # Mapping standard exceptions to severity levels
        severity_map = {
            FileNotFoundError: ErrorSeverity.MEDIUM,
            PermissionError: ErrorSeverity.HIGH,
            ConnectionError: ErrorSeverity.HIGH,
            TimeoutError: ErrorSeverity.MEDIUM,
            MemoryError: ErrorSeverity.CRITICAL,
            KeyboardInterrupt: ErrorSeverity.LOW,
            SystemExit: ErrorSeverity.LOW,
        }

        return severity_map.get(type(error), ErrorSeverity.MEDIUM)

    def _format_error_message(self, error: Exception, context: Optional[str] = None) -> str:
        message = str(error)
        if context:
            message = f"{context}: {message}"

        return message

    def _log_error(self, message: str, severity: ErrorSeverity):
        """Log error with appropriate level.

        Args:
            message: Formatted error message
            severity: Error severity
        """
        log_methods = {
            ErrorSeverity.LOW: self.logger.info,
            ErrorSeverity.MEDIUM: self.logger.warning,
            ErrorSeverity.HIGH: self.logger.error,
            ErrorSeverity.CRITICAL: self.logger.critical,
        }

        log_method = log_methods[severity]
        log_method(message, exc_info=severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL))
