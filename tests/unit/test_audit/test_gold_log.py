"""
Unit tests for the gold log sink, the async writer and the analyzer.
"""

import json
import sqlite3
import threading
from unittest.mock import Mock

import pytest

from voiceagent.audit import (
    AsyncGoldLogWriter,
    GoldLogAnalyzer,
    GoldLogEntry,
    SqliteGoldLog,
    format_report,
)
from voiceagent.core import LogSinkFailure
from tests.fixtures.sample_data import riga


def make_entry(decision="v3", ts=None, confidence=0.95, teacher_result=None,
               discrepancies=None, **kwargs):
    return GoldLogEntry(
        ts=ts or riga(2025, 11, 5, 16, 37),
        language="lv",
        asr_text="atgādini rīt plkst 9 izvest suni",
        decision=decision,
        v3_result={"type": "reminder", "description": "Izvest suni", "lang": "lv"},
        confidence_after=confidence,
        teacher_result=teacher_result,
        discrepancies=discrepancies,
        **kwargs
    )


def read_rows(db_path):
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        return conn.execute("SELECT * FROM v3_gold_log ORDER BY id").fetchall()
    finally:
        conn.close()


class TestGoldLogEntry:
    """Test suite for gold log entries"""

    @pytest.mark.unit
    def test_unknown_decision_rejected(self):
        with pytest.raises(ValueError):
            make_entry(decision="maybe")

    @pytest.mark.unit
    def test_row_uses_utc_timestamp(self):
        row = make_entry().to_row()

        assert row[0] == "2025-11-05T14:37:00+00:00"


class TestSqliteGoldLog:
    """Test suite for the SQLite sink"""

    @pytest.mark.unit
    def test_creates_database(self, gold_log_path):
        SqliteGoldLog(str(gold_log_path))

        assert gold_log_path.exists()
        assert read_rows(gold_log_path) == []

    @pytest.mark.unit
    def test_append(self, gold_log_path):
        """Test an entry round-trips into one row"""
        sink = SqliteGoldLog(str(gold_log_path))
        sink.append(make_entry(
            am_pm_decision="am_default",
            used_triggers=["atgādini"],
            desc_had_time_tokens_removed=True,
        ))

        rows = read_rows(gold_log_path)
        assert len(rows) == 1
        row = rows[0]
        assert row["ts"] == "2025-11-05T14:37:00+00:00"
        assert row["decision"] == "v3"
        assert json.loads(row["v3_result"])["description"] == "Izvest suni"
        assert row["teacher_result"] is None
        assert row["discrepancies"] is None
        assert row["confidence_after"] == 0.95
        assert row["am_pm_decision"] == "am_default"
        assert json.loads(row["used_triggers"]) == ["atgādini"]
        assert row["desc_had_time_tokens_removed"] == 1

    @pytest.mark.unit
    def test_append_keeps_unicode(self, gold_log_path):
        sink = SqliteGoldLog(str(gold_log_path))
        sink.append(make_entry(used_triggers=["atgādini"]))

        row = read_rows(gold_log_path)[0]
        assert row["used_triggers"] == '["atgādini"]'
        assert row["asr_text"] == "atgādini rīt plkst 9 izvest suni"

    @pytest.mark.unit
    def test_concurrent_appends(self, gold_log_path):
        """Test writers on several threads each leave exactly one intact row"""
        sink = SqliteGoldLog(str(gold_log_path))
        writers = 16
        start = threading.Barrier(writers)
        errors = []

        def write(index):
            try:
                start.wait()
                sink.append(make_entry(
                    used_triggers=[f"atgādini-{index}"],
                    teacher_result={"type": "reminder", "description": f"Uzdevums {index}"},
                    discrepancies={"description": {"v3": "Izvest suni", "teacher": f"Uzdevums {index}"}},
                ))
            except Exception as error:
                errors.append(error)

        threads = [threading.Thread(target=write, args=(index,)) for index in range(writers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert errors == []
        rows = read_rows(gold_log_path)
        assert len(rows) == writers
        descriptions = {json.loads(row["teacher_result"])["description"] for row in rows}
        assert descriptions == {f"Uzdevums {index}" for index in range(writers)}
        for row in rows:
            assert json.loads(row["v3_result"])["description"] == "Izvest suni"
            (trigger,) = json.loads(row["used_triggers"])
            assert trigger.startswith("atgādini-")
            assert "description" in json.loads(row["discrepancies"])

    @pytest.mark.unit
    def test_write_failure_raises(self, gold_log_path):
        sink = SqliteGoldLog(str(gold_log_path))
        conn = sqlite3.connect(gold_log_path)
        conn.execute("DROP TABLE v3_gold_log")
        conn.close()

        with pytest.raises(LogSinkFailure):
            sink.append(make_entry())

    @pytest.mark.unit
    def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(LogSinkFailure):
            SqliteGoldLog(str(blocker / "gold_log.db"))


class TestAsyncGoldLogWriter:
    """Test suite for the background writer"""

    @pytest.mark.unit
    def test_entries_reach_sink(self):
        sink = Mock()
        writer = AsyncGoldLogWriter(sink)
        first, second = make_entry(), make_entry(decision="teacher")

        writer.append(first)
        writer.append(second)
        writer.flush()

        assert [call.args[0] for call in sink.append.call_args_list] == [first, second]
        writer.close()

    @pytest.mark.unit
    def test_failures_are_counted(self):
        """Test a failing sink does not stop the writer"""
        sink = Mock()
        sink.append.side_effect = [LogSinkFailure("locked"), None]
        writer = AsyncGoldLogWriter(sink)

        writer.append(make_entry())
        writer.append(make_entry())
        writer.flush()

        assert writer.failed_writes == 1
        assert sink.append.call_count == 2
        writer.close()

    @pytest.mark.unit
    def test_close_stops_thread_and_sink(self):
        sink = Mock()
        writer = AsyncGoldLogWriter(sink)

        writer.close()

        assert not writer.writer_thread.is_alive()
        sink.close.assert_called_once()

    @pytest.mark.unit
    def test_writes_to_sqlite(self, gold_log_path):
        writer = AsyncGoldLogWriter(SqliteGoldLog(str(gold_log_path)))
        for _ in range(5):
            writer.append(make_entry())
        writer.close()

        assert len(read_rows(gold_log_path)) == 5


class TestGoldLogAnalyzer:
    """Test suite for gold log statistics"""

    @pytest.fixture
    def populated_log(self, gold_log_path):
        sink = SqliteGoldLog(str(gold_log_path))
        sink.append(make_entry(
            ts=riga(2025, 11, 1, 9, 0), confidence=0.95,
            am_pm_decision="am_default", used_triggers=["atgādini"],
            desc_had_time_tokens_removed=True,
        ))
        sink.append(make_entry(
            ts=riga(2025, 11, 5, 10, 0), decision="teacher", confidence=0.85,
            teacher_result={"type": "reminder", "description": "Izvest suni"},
        ))
        sink.append(make_entry(
            ts=riga(2025, 11, 5, 12, 0), decision="teacher", confidence=0.85,
            teacher_result={"type": "reminder", "description": "izvest suni"},
            discrepancies={"severity": "low", "tags": ["description_format"]},
        ))
        sink.append(make_entry(
            ts=riga(2025, 11, 5, 15, 0), decision="teacher_override", confidence=0.4,
            am_pm_decision="pm_default",
            teacher_result={"type": "calendar", "description": "Izvest suni"},
            discrepancies={"severity": "high", "tags": ["type", "start"]},
        ))
        return gold_log_path

    @pytest.mark.unit
    def test_counts(self, populated_log, now):
        report = GoldLogAnalyzer(str(populated_log)).analyze(now=now)

        assert report.total == 4
        assert report.decisions == {"teacher": 2, "v3": 1, "teacher_override": 1}
        assert report.teacher_invoked == 3
        assert report.teacher_agreements == 1
        assert report.with_discrepancies == 2
        assert report.severities == {"high": 1, "low": 1}
        assert report.last_24h == 3
        assert report.descriptions_cleaned == 1

    @pytest.mark.unit
    def test_rates(self, populated_log, now):
        report = GoldLogAnalyzer(str(populated_log)).analyze(now=now)

        assert report.teacher_rate == 0.75
        assert report.discrepancy_rate == 0.5
        assert report.agreement_rate == pytest.approx(1 / 3)
        assert report.cleaning_rate == 0.25

    @pytest.mark.unit
    def test_confidence_stats(self, populated_log, now):
        report = GoldLogAnalyzer(str(populated_log)).analyze(now=now)

        assert report.confidence_avg == pytest.approx((0.95 + 0.85 + 0.85 + 0.4) / 4)
        assert report.confidence_min == 0.4
        assert report.confidence_max == 0.95
        assert report.confidence_buckets == {"low": 1, "medium": 0, "high": 3}

    @pytest.mark.unit
    def test_breakdowns(self, populated_log, now):
        report = GoldLogAnalyzer(str(populated_log)).analyze(now=now, top=2)

        assert report.am_pm_decisions == {"am_default": 1, "pm_default": 1}
        assert report.triggers == {"atgādini": 1}
        assert len(report.top_tags) == 2

    @pytest.mark.unit
    def test_recent_discrepancies(self, populated_log):
        recent = GoldLogAnalyzer(str(populated_log)).recent_discrepancies(limit=5)

        assert [row["decision"] for row in recent] == ["teacher_override", "teacher"]
        assert recent[0]["discrepancies"]["severity"] == "high"

    @pytest.mark.unit
    def test_missing_database(self, tmp_path):
        with pytest.raises(LogSinkFailure):
            GoldLogAnalyzer(str(tmp_path / "missing.db")).analyze()

    @pytest.mark.unit
    def test_empty_database(self, gold_log_path, now):
        SqliteGoldLog(str(gold_log_path))

        report = GoldLogAnalyzer(str(gold_log_path)).analyze(now=now)

        assert report.total == 0
        assert report.agreement_rate is None
        assert "No entries yet." in format_report(report)

    @pytest.mark.unit
    def test_format_report(self, populated_log, now):
        analyzer = GoldLogAnalyzer(str(populated_log))
        text = format_report(analyzer.analyze(now=now), analyzer.recent_discrepancies())

        assert "Total requests: 4" in text
        assert "Teacher invocation rate: 75.0% (3/4)" in text
        assert "Recent discrepancies:" in text
        assert "(high)" in text
