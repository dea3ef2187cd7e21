"""Resolution audit trail."""

from .gold_log import (
    AsyncGoldLogWriter,
    GoldLogAnalyzer,
    GoldLogEntry,
    GoldLogReport,
    SqliteGoldLog,
    format_report,
)

__all__ = [
    "AsyncGoldLogWriter",
    "GoldLogAnalyzer",
    "GoldLogEntry",
    "GoldLogReport",
    "SqliteGoldLog",
    "format_report",
]
