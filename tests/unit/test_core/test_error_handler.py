"""
Unit tests for the error taxonomy and ErrorHandler.
"""

import logging

import pytest

from voiceagent.core import (
    ConfigurationError,
    ErrorHandler,
    ErrorSeverity,
    LogSinkFailure,
    TeacherError,
    TeacherTimeout,
    TeacherUnavailable,
)


class TestErrorHandler:
    """Test suite for ErrorHandler"""

    @pytest.fixture
    def handler(self):
        return ErrorHandler()

    @pytest.mark.unit
    def test_severities(self):
        assert TeacherTimeout("slow", timeout=8.0).severity == ErrorSeverity.MEDIUM
        assert TeacherUnavailable("down").severity == ErrorSeverity.MEDIUM
        assert LogSinkFailure("disk full").severity == ErrorSeverity.HIGH
        assert ConfigurationError("bad").severity == ErrorSeverity.HIGH

    @pytest.mark.unit
    def test_callback_matches_subclass(self, handler):
        """Test a callback on the base class sees subclass errors"""
        seen = []
        handler.register_error_callback(TeacherError, seen.append)
        error = TeacherUnavailable("HTTP 502", status_code=502)

        assert handler.handle_error(error, context="teacher resolution")
        assert seen == [error]

    @pytest.mark.unit
    def test_most_specific_callback_wins(self, handler):
        general, specific = [], []
        handler.register_error_callback(TeacherError, general.append)
        handler.register_error_callback(TeacherTimeout, specific.append)

        handler.handle_error(TeacherTimeout("slow"))

        assert len(specific) == 1
        assert general == []

    @pytest.mark.unit
    def test_logs_with_context(self, handler, caplog):
        with caplog.at_level(logging.WARNING, logger="voiceagent.core.error_handler"):
            handler.handle_error(TeacherUnavailable("connection refused"), context="teacher resolution")

        assert "teacher resolution: connection refused" in caplog.text

    @pytest.mark.unit
    def test_standard_exception_severity(self, handler):
        assert handler._get_error_severity(PermissionError("no")) == ErrorSeverity.HIGH
        assert handler._get_error_severity(ValueError("x")) == ErrorSeverity.MEDIUM

    @pytest.mark.unit
    def test_failing_callback_is_contained(self, handler):
        def explode(error):
            raise RuntimeError("callback bug")

        handler.register_error_callback(LogSinkFailure, explode)

        assert handler.handle_error(LogSinkFailure("locked")) is False
