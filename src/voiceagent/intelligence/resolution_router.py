"""Resolution Router

Accepts the fast-path parse when it is confident enough, otherwise asks the
teacher with a bounded timeout and returns the teacher's answer. Either way
exactly one gold log entry is written per request.
"""

import concurrent.futures
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional

from ..audit.gold_log import GoldLogEntry
from ..core.config_manager import ProcessingConfig, TeacherConfig
from ..core.error_handler import ErrorHandler, LogSinkFailure, TeacherError, TeacherTimeout
from ..core.logging_manager import LoggingManager
from ..processors.models import MultiAction, ParsedAction, Resolution
from .task_parser import ParseOutcome, TaskParser


class Decision(Enum):
    """Which path produced the answer returned to the caller."""
    V3 = "v3"
    TEACHER = "teacher"
    TEACHER_OVERRIDE = "teacher_override"


class Severity(Enum):
    HIGH = "high"
    MID = "mid"
    LOW = "low"


_SEVERITY_RANK = {Severity.LOW: 1, Severity.MID: 2, Severity.HIGH: 3}


@dataclass
class Discrepancy:
    """Field-level disagreement between the fast path and the teacher."""
    severity: Severity
    tags: List[str] = field(default_factory=list)

    def to_dict(self):
        return {"severity": self.severity.value, "tags": list(self.tags)}


@dataclass
class RoutingResult:
    """What the router returned and why."""
    result: Resolution
    decision: Decision
    outcome: ParseOutcome
    teacher_result: Optional[Resolution] = None
    discrepancy: Optional[Discrepancy] = None
    teacher_error: Optional[str] = None


def _tasks(result: Resolution) -> List[ParsedAction]:
    return list(result.tasks) if isinstance(result, MultiAction) else [result]


def _canonical_text(value: Optional[str]) -> str:
    value = re.sub(r'[^\w\s]', '', (value or '').casefold())
    return re.sub(r'\s+', ' ', value).strip()


def _canonical_items(items: Optional[List[str]]) -> List[str]:
    return [_canonical_text(item) for item in items or []]


def compare_results(v3: Resolution, teacher: Resolution, tolerance: timedelta = timedelta(minutes=5)) -> Optional[Discrepancy]:
    """Compare two resolutions field by field.

    ``high``: kind or task count differs, start present on one side only or
    apart by more than ``tolerance``. ``mid``: end, items, has_time or
    description/notes wording differ, or start within tolerance. ``low``:
    description/notes differ only in case, whitespace or punctuation.

    Returns:
        Discrepancy, or None when the results agree
    """
    found = []

    if v3.kind != teacher.kind:
        found.append((Severity.HIGH, "type"))
    v3_tasks, teacher_tasks = _tasks(v3), _tasks(teacher)
    if len(v3_tasks) != len(teacher_tasks):
        found.append((Severity.HIGH, "task_count"))

    for ours, theirs in zip(v3_tasks, teacher_tasks):
        if (ours.start is None) != (theirs.start is None):
            found.append((Severity.HIGH, "start"))
        elif ours.start is not None and ours.start != theirs.start:
            difference = abs(ours.start - theirs.start)
            found.append((Severity.HIGH if difference > tolerance else Severity.MID, "start"))

        if ours.end != theirs.end:
            found.append((Severity.MID, "end"))
        if _canonical_items(ours.items) != _canonical_items(theirs.items):
            found.append((Severity.MID, "items"))
        if ours.has_time != theirs.has_time:
            found.append((Severity.MID, "has_time"))

        for name in ("description", "notes"):
            ours_text, theirs_text = getattr(ours, name) or "", getattr(theirs, name) or ""
            if ours_text == theirs_text:
                continue
            if _canonical_text(ours_text) == _canonical_text(theirs_text):
                found.append((Severity.LOW, f"{name}_format"))
            else:
                found.append((Severity.MID, name))

    if not found:
        return None

    tags = []
    for _, tag in found:
        if tag not in tags:
            tags.append(tag)
    severity = max((severity for severity, _ in found), key=_SEVERITY_RANK.get)
    return Discrepancy(severity=severity, tags=tags)


class ResolutionRouter:
    """Confidence-gated choice between the fast path and the teacher."""

    def __init__(self, parser: TaskParser, teacher=None, gold_log=None,
                 processing_config: Optional[ProcessingConfig] = None,
                 teacher_config: Optional[TeacherConfig] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.parser = parser
        self.teacher = teacher
        self.gold_log = gold_log
        self.processing_config = processing_config or ProcessingConfig()
        self.teacher_config = teacher_config or TeacherConfig()
        self.error_handler = error_handler
        self.logger = LoggingManager.get_logger(__name__)

        self.tolerance = timedelta(minutes=self.processing_config.start_tolerance_minutes)
        self.executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=self.teacher_config.max_workers, thread_name_prefix="teacher"
        )

    def should_escalate(self, outcome: ParseOutcome) -> bool:
        return outcome.score < self.processing_config.acceptance_threshold or outcome.needs_context

    def route(self, text: str, language: str, now: datetime) -> RoutingResult:
        """Resolve ``text`` and record the outcome."""
        outcome = self.parser.parse(text, language, now)
        routing = RoutingResult(result=outcome.result, decision=Decision.V3, outcome=outcome)

        if self.teacher is not None and self.teacher_config.enabled and self.should_escalate(outcome):
            self.logger.info(
                f"Escalating to teacher (confidence {outcome.score:.2f}, "
                f"needs context: {outcome.needs_context})"
            )
            routing = self._consult_teacher(text, outcome, now, routing)
        else:
            self.logger.info(f"Fast path accepted (confidence {outcome.score:.2f})")

        self._record(text, routing, now)
        return routing

    def _consult_teacher(self, text: str, outcome: ParseOutcome, now: datetime,
                         routing: RoutingResult) -> RoutingResult:
        future = self.executor.submit(self.teacher.resolve, text, now, outcome.language)
        try:
            teacher_result = future.result(timeout=self.teacher_config.timeout)
        except concurrent.futures.TimeoutError:
            future.add_done_callback(self._log_late_completion)
            routing.teacher_error = f"timed out after {self.teacher_config.timeout}s"
            self._report(TeacherTimeout(f"Teacher timed out after {self.teacher_config.timeout}s"))
            return routing
        except TeacherError as e:
            routing.teacher_error = str(e)
            self._report(e)
            return routing

        discrepancy = compare_results(outcome.result, teacher_result, self.tolerance)
        agrees = discrepancy is None or discrepancy.severity == Severity.LOW
        routing.result = teacher_result
        routing.teacher_result = teacher_result
        routing.discrepancy = discrepancy
        routing.decision = Decision.TEACHER if agrees else Decision.TEACHER_OVERRIDE

        if discrepancy:
            self.logger.info(
                f"Teacher disagreed ({discrepancy.severity.value}): {', '.join(discrepancy.tags)}"
            )
        return routing

    def _log_late_completion(self, future: concurrent.futures.Future):
        error = future.exception()
        if error is not None:
            self.logger.warning(f"Abandoned teacher call failed: {error}")
        else:
            self.logger.info(f"Abandoned teacher call finished late with {future.result().kind.value}")

    def _report(self, error: Exception):
        if self.error_handler is not None:
            self.error_handler.handle_error(error, context="teacher resolution")
        else:
            self.logger.warning(f"Teacher unavailable, using fast path: {error}")

    def _record(self, text: str, routing: RoutingResult, now: datetime):
        if self.gold_log is None:
            return

        outcome = routing.outcome
        entry = GoldLogEntry(
            ts=now,
            language=outcome.language,
            asr_text=text,
            decision=routing.decision.value,
            v3_result=outcome.result.to_dict(),
            teacher_result=routing.teacher_result.to_dict() if routing.teacher_result else None,
            discrepancies=routing.discrepancy.to_dict() if routing.discrepancy else None,
            confidence_after=outcome.score,
            am_pm_decision=outcome.am_pm_decision,
            used_triggers=outcome.used_triggers,
            desc_had_time_tokens_removed=outcome.desc_had_time_tokens_removed,
        )
        try:
            self.gold_log.append(entry)
        except LogSinkFailure as e:
            if self.error_handler is not None:
                self.error_handler.handle_error(e, context="gold log")
            else:
                self.logger.error(f"Gold log write failed, continuing: {e}")

    def shutdown(self, wait: bool = False):
        self.executor.shutdown(wait=wait)
