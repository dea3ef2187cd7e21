"""Voice Agent Application Core

Wires configuration, logging, the fast-path parser, the teacher client,
the router and the gold log into one object with a ``resolve`` entry point.
"""

from pathlib import Path
from typing import Optional

from .clock import NowProvider
from .config_manager import ConfigManager
from .error_handler import ErrorHandler, LogSinkFailure, TeacherError
from .logging_manager import LoggingManager
from ..audit.gold_log import AsyncGoldLogWriter, SqliteGoldLog
from ..intelligence.resolution_router import ResolutionRouter, RoutingResult
from ..intelligence.task_parser import TaskParser
from ..intelligence.teacher_client import TeacherResolver
from ..processors.models import Resolution


class VoiceAgentApp:
    """Main application controller for the voice agent backend."""

    def __init__(self, config_manager: Optional[ConfigManager] = None, clock: Optional[NowProvider] = None,
                 teacher=None, gold_log=None, config_path: Optional[Path] = None):
        """Initialize the application.

        Args:
            config_manager: Preloaded configuration; built from ``config_path`` otherwise
            clock: Now provider; defaults to the configured per-language zones
            teacher: Teacher resolver; built from configuration when enabled
            gold_log: Gold log sink; built from configuration when enabled
            config_path: Optional configuration directory
        """
        self.error_handler = ErrorHandler()
        self.config_manager = config_manager or ConfigManager(config_path)
        self.config = self.config_manager.config

        LoggingManager().configure(
            log_dir=self.config.logging.log_dir,
            level=self.config.logging.level,
            file_logging=self.config.logging.file_logging,
        )
        self.logger = LoggingManager.get_logger(__name__)

        languages = self.config.languages
        self.clock = clock or NowProvider(languages.timezones, languages.fallback_timezone)
        self.parser = TaskParser(self.config.processing)
        self.teacher = teacher if teacher is not None else self._build_teacher()
        self.gold_log = gold_log if gold_log is not None else self._build_gold_log()

        self.router = ResolutionRouter(
            parser=self.parser,
            teacher=self.teacher,
            gold_log=self.gold_log,
            processing_config=self.config.processing,
            teacher_config=self.config.teacher,
            error_handler=self.error_handler,
        )
        self._register_error_callbacks()
        self.logger.info(
            f"Voice agent ready (environment: {self.config.environment}, "
            f"teacher: {'on' if self.teacher else 'off'}, gold log: {'on' if self.gold_log else 'off'})"
        )

    def _build_teacher(self) -> Optional[TeacherResolver]:
        teacher_config = self.config.teacher
        if not teacher_config.enabled:
            return None
        if teacher_config.api_key is None:
            self.logger.warning("Teacher enabled but no API key configured; running fast path only")
            return None
        return TeacherResolver(teacher_config)

    def _build_gold_log(self):
        gold_log_config = self.config.gold_log
        if not gold_log_config.enabled:
            return None
        try:
            sink = SqliteGoldLog(gold_log_config.db_path)
        except LogSinkFailure as e:
            self.error_handler.handle_error(e, context="gold log setup")
            return None
        return AsyncGoldLogWriter(sink) if gold_log_config.async_writes else sink

    def _register_error_callbacks(self):
        def count_teacher_failure(error):
            self.teacher_failures += 1

        self.teacher_failures = 0
        self.error_handler.register_error_callback(TeacherError, count_teacher_failure)

    def resolve_detailed(self, text: str, language: Optional[str] = None) -> RoutingResult:
        language = language or self.config.processing.default_language
        now = self.clock.now(language)
        return self.router.route(text, language, now)

    def resolve(self, text: str, language: Optional[str] = None) -> Resolution:
        """Resolve one transcribed utterance into a typed action."""
        return self.resolve_detailed(text, language).result

    def shutdown(self):
        """Stop the teacher pool and drain the gold log."""
        self.router.shutdown()
        if self.gold_log is not None:
            self.gold_log.close()
        if self.teacher is not None and hasattr(self.teacher, "close"):
            self.teacher.close()
        self.logger.info("Voice agent stopped")
