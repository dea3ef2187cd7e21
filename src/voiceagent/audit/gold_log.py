"""Gold Log

Append-only record of every resolution: the fast-path result, the teacher
result when one was requested, and the discrepancies between the two.
Writes are serialized through one lock and, optionally, one writer thread;
analysis opens separate read-only connections.
"""

import json
import queue
import sqlite3
import threading
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from dateutil.tz import tzutc

from ..core.error_handler import LogSinkFailure
from ..core.logging_manager import LoggingManager


DECISIONS = ("v3", "teacher", "teacher_override")
SEVERITY_ORDER = {"high": 1, "mid": 2, "low": 3}


@dataclass
class GoldLogEntry:
    """One row of the gold log, keyed by request timestamp."""
    ts: datetime
    language: str
    asr_text: str
    decision: str
    v3_result: Dict[str, Any]
    confidence_after: float
    teacher_result: Optional[Dict[str, Any]] = None
    discrepancies: Optional[Dict[str, Any]] = None
    am_pm_decision: Optional[str] = None
    used_triggers: List[str] = field(default_factory=list)
    desc_had_time_tokens_removed: bool = False

    def __post_init__(self):
        if self.decision not in DECISIONS:
            raise ValueError(f"Unknown decision: {self.decision}")

    def to_row(self) -> tuple:
        return (
            self.ts.astimezone(tzutc()).isoformat(),
            self.language,
            self.asr_text,
            self.decision,
            json.dumps(self.v3_result, ensure_ascii=False),
            json.dumps(self.teacher_result, ensure_ascii=False) if self.teacher_result is not None else None,
            json.dumps(self.discrepancies, ensure_ascii=False) if self.discrepancies else None,
            self.confidence_after,
            self.am_pm_decision,
            json.dumps(self.used_triggers, ensure_ascii=False),
            int(self.desc_had_time_tokens_removed),
        )


class SqliteGoldLog:
    """SQLite-backed gold log sink."""

    COLUMNS = (
        "ts", "language", "asr_text", "decision", "v3_result", "teacher_result",
        "discrepancies", "confidence_after", "am_pm_decision", "used_triggers",
        "desc_had_time_tokens_removed",
    )

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self.logger = LoggingManager.get_logger(__name__)
        self._lock = threading.Lock()
        self._initialize_database()

    def _initialize_database(self):
        """Create the table and switch the file to WAL mode."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
            try:
                conn.execute('PRAGMA journal_mode=WAL')
                with conn:
                    conn.execute('''
                        CREATE TABLE IF NOT EXISTS v3_gold_log (
                            id INTEGER PRIMARY KEY AUTOINCREMENT,
                            ts TEXT NOT NULL,
                            language TEXT NOT NULL,
                            asr_text TEXT NOT NULL,
                            decision TEXT NOT NULL,
                            v3_result TEXT NOT NULL,
                            teacher_result TEXT,
                            discrepancies TEXT,
                            confidence_after REAL,
                            am_pm_decision TEXT,
                            used_triggers TEXT,
                            desc_had_time_tokens_removed INTEGER DEFAULT 0
                        )
                    ''')
                    conn.execute('CREATE INDEX IF NOT EXISTS idx_v3_gold_log_ts ON v3_gold_log(ts)')
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            raise LogSinkFailure(f"Cannot initialize gold log at {self.db_path}: {e}") from e

    def append(self, entry: GoldLogEntry):
        """Insert one entry.

        Raises:
            LogSinkFailure: On any database error
        """
        placeholders = ', '.join('?' for _ in self.COLUMNS)
        with self._lock:
            try:
                conn = sqlite3.connect(self.db_path)
                try:
                    with conn:
                        conn.execute(
                            f'INSERT INTO v3_gold_log ({", ".join(self.COLUMNS)}) VALUES ({placeholders})',
                            entry.to_row(),
                        )
                finally:
                    conn.close()
            except sqlite3.Error as e:
                raise LogSinkFailure(f"Gold log write failed: {e}") from e

        self.logger.debug(f"Gold log entry written ({entry.decision}, {entry.language})")

    def close(self):
        """Nothing to release; connections are per write."""


class AsyncGoldLogWriter:
    """Single writer thread draining a queue into a gold log sink.

    Failures are logged and dropped so resolution never waits on the disk.
    """

    _STOP = object()

    def __init__(self, sink):
        self.sink = sink
        self.logger = LoggingManager.get_logger(__name__)
        self.write_queue: queue.Queue = queue.Queue()
        self.failed_writes = 0
        self.writer_thread = threading.Thread(target=self._process_writes, name="gold-log-writer", daemon=True)
        self.writer_thread.start()

    def append(self, entry: GoldLogEntry):
        self.write_queue.put(entry)

    def _process_writes(self):
        while True:
            entry = self.write_queue.get()
            try:
                if entry is self._STOP:
                    return
                self.sink.append(entry)
            except LogSinkFailure as e:
                self.failed_writes += 1
                self.logger.error(f"Dropped gold log entry: {e}")
            finally:
                self.write_queue.task_done()

    def flush(self):
        """Block until every queued entry has been handled."""
        self.write_queue.join()

    def close(self, timeout: float = 5.0):
        if self.writer_thread.is_alive():
            self.write_queue.put(self._STOP)
            self.writer_thread.join(timeout=timeout)
        self.sink.close()


@dataclass
class GoldLogReport:
    """Aggregate statistics over the gold log."""
    total: int = 0
    decisions: Dict[str, int] = field(default_factory=dict)
    teacher_invoked: int = 0
    with_discrepancies: int = 0
    severities: Dict[str, int] = field(default_factory=dict)
    confidence_avg: Optional[float] = None
    confidence_min: Optional[float] = None
    confidence_max: Optional[float] = None
    confidence_buckets: Dict[str, int] = field(default_factory=dict)
    am_pm_decisions: Dict[str, int] = field(default_factory=dict)
    triggers: Dict[str, int] = field(default_factory=dict)
    last_24h: int = 0
    teacher_agreements: int = 0
    descriptions_cleaned: int = 0
    top_tags: List[tuple] = field(default_factory=list)

    @property
    def teacher_rate(self) -> float:
        return self.teacher_invoked / self.total if self.total else 0.0

    @property
    def discrepancy_rate(self) -> float:
        return self.with_discrepancies / self.total if self.total else 0.0

    @property
    def agreement_rate(self) -> Optional[float]:
        if not self.teacher_invoked:
            return None
        return self.teacher_agreements / self.teacher_invoked

    @property
    def cleaning_rate(self) -> float:
        return self.descriptions_cleaned / self.total if self.total else 0.0


class GoldLogAnalyzer:
    """Read-only statistics over a gold log database."""

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self.logger = LoggingManager.get_logger(__name__)

    def _connect(self) -> sqlite3.Connection:
        if not self.db_path.exists():
            raise LogSinkFailure(f"Gold log database not found: {self.db_path}")
        try:
            conn = sqlite3.connect(f"file:{self.db_path}?mode=ro", uri=True)
        except sqlite3.Error as e:
            raise LogSinkFailure(f"Cannot open gold log read-only: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    def _rows(self) -> List[sqlite3.Row]:
        conn = self._connect()
        try:
            return conn.execute('SELECT * FROM v3_gold_log ORDER BY ts').fetchall()
        except sqlite3.Error as e:
            raise LogSinkFailure(f"Gold log query failed: {e}") from e
        finally:
            conn.close()

    def analyze(self, now: Optional[datetime] = None, top: int = 10) -> GoldLogReport:
        """Compute the full report.

        Args:
            now: Reference instant for the 24-hour window (defaults to now, UTC)
            top: Number of discrepancy tags to list
        """
        now = now or datetime.now(tzutc())
        cutoff = (now - timedelta(hours=24)).astimezone(tzutc()).isoformat()
        rows = self._rows()

        report = GoldLogReport(total=len(rows))
        decisions, severities, am_pm, triggers, tags = Counter(), Counter(), Counter(), Counter(), Counter()
        confidences = []

        for row in rows:
            decisions[row['decision']] += 1
            discrepancies = _load_json(row['discrepancies'])

            if row['teacher_result'] is not None:
                report.teacher_invoked += 1
                if not discrepancies:
                    report.teacher_agreements += 1

            if discrepancies:
                report.with_discrepancies += 1
                severities[discrepancies.get('severity') or 'unknown'] += 1
                tags.update(discrepancies.get('tags') or [])

            if row['confidence_after'] is not None:
                confidences.append(row['confidence_after'])
            if row['am_pm_decision']:
                am_pm[row['am_pm_decision']] += 1
            triggers.update(_load_json(row['used_triggers']) or [])
            if row['desc_had_time_tokens_removed']:
                report.descriptions_cleaned += 1
            if row['ts'] >= cutoff:
                report.last_24h += 1

        report.decisions = dict(decisions.most_common())
        report.severities = dict(sorted(severities.items(), key=lambda item: SEVERITY_ORDER.get(item[0], 9)))
        report.am_pm_decisions = dict(am_pm.most_common())
        report.triggers = dict(triggers.most_common())
        report.top_tags = tags.most_common(top)

        if confidences:
            report.confidence_avg = sum(confidences) / len(confidences)
            report.confidence_min = min(confidences)
            report.confidence_max = max(confidences)
        report.confidence_buckets = {
            "low": sum(1 for value in confidences if value < 0.5),
            "medium": sum(1 for value in confidences if 0.5 <= value < 0.8),
            "high": sum(1 for value in confidences if value >= 0.8),
        }

        self.logger.info(f"Analyzed {report.total} gold log entries")
        return report

    def recent_discrepancies(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Most recent rows where the teacher disagreed with the fast path."""
        conn = self._connect()
        try:
            rows = conn.execute('''
                SELECT ts, language, asr_text, decision, discrepancies
                FROM v3_gold_log
                WHERE discrepancies IS NOT NULL
                ORDER BY ts DESC
                LIMIT ?
            ''', (limit,)).fetchall()
        except sqlite3.Error as e:
            raise LogSinkFailure(f"Gold log query failed: {e}") from e
        finally:
            conn.close()

        return [
            {
                "ts": row['ts'],
                "language": row['language'],
                "asr_text": row['asr_text'],
                "decision": row['decision'],
                "discrepancies": _load_json(row['discrepancies']),
            }
            for row in rows
        ]


def format_report(report: GoldLogReport, recent: Optional[List[Dict[str, Any]]] = None) -> str:
    """Plain-text rendering of a report."""
    lines = ["Gold Log Analysis", "=" * 60, f"Total requests: {report.total}"]
    if not report.total:
        lines.append("No entries yet.")
        return "\n".join(lines)

    lines += ["", "Decisions:"]
    for decision, count in report.decisions.items():
        lines.append(f"  {decision:<20} {count:>6} ({count / report.total:.1%})")

    lines += [
        "",
        f"Teacher invocation rate: {report.teacher_rate:.1%} ({report.teacher_invoked}/{report.total})",
        f"Discrepancy rate: {report.discrepancy_rate:.1%} ({report.with_discrepancies}/{report.total})",
    ]
    for severity, count in report.severities.items():
        lines.append(f"  {severity:<10} {count:>4}")

    if report.confidence_avg is not None:
        lines += [
            "",
            f"Confidence: avg {report.confidence_avg:.3f}, "
            f"range {report.confidence_min:.3f}-{report.confidence_max:.3f}",
            f"  low (<0.5): {report.confidence_buckets['low']}, "
            f"medium (0.5-0.8): {report.confidence_buckets['medium']}, "
            f"high (>=0.8): {report.confidence_buckets['high']}",
        ]

    if report.am_pm_decisions:
        lines += ["", "AM/PM decisions:"]
        lines += [f"  {name:<20} {count:>6}" for name, count in report.am_pm_decisions.items()]

    if report.triggers:
        lines += ["", "Triggers:"]
        lines += [f"  {name:<20} {count:>6}" for name, count in report.triggers.items()]

    lines += ["", f"Last 24 hours: {report.last_24h}"]
    if report.agreement_rate is not None:
        lines.append(f"Teacher agreement rate: {report.agreement_rate:.1%}")
    lines.append(f"Descriptions cleaned of time tokens: {report.cleaning_rate:.1%}")

    if report.top_tags:
        lines += ["", "Top discrepancy tags:"]
        lines += [f"  {tag:<20} {count:>6}" for tag, count in report.top_tags]

    if recent:
        lines += ["", "Recent discrepancies:"]
        for row in recent:
            severity = (row['discrepancies'] or {}).get('severity', 'unknown')
            lines.append(f"  [{row['ts']}] ({severity}) {row['asr_text']}")

    return "\n".join(lines)


def _load_json(value: Optional[str]) -> Any:
    if not value:
        return None
    try:
        return json.loads(value)
    except ValueError:
        return None
