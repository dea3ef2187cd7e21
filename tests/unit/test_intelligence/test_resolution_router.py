"""
Unit tests for the ResolutionRouter and result comparison.

The teacher and the gold log sink are mocks; the fast path is the real
parser so confidence gating is exercised end to end.
"""

import threading
from datetime import timedelta

import pytest

from voiceagent.core import ErrorHandler, LogSinkFailure, TeacherUnavailable
from voiceagent.core.config_manager import ProcessingConfig, TeacherConfig
from voiceagent.intelligence.resolution_router import (
    Decision,
    ResolutionRouter,
    Severity,
    compare_results,
)
from voiceagent.processors import ActionKind, MultiAction, ParsedAction
from tests.fixtures.sample_data import riga


def reminder(description="Izvest suni", start=None, **kwargs):
    return ParsedAction(
        kind=ActionKind.REMINDER,
        description=description,
        language="lv",
        start=start,
        has_time=start is not None,
        **kwargs
    )


class TestCompareResults:
    """Test suite for field-level discrepancy detection"""

    @pytest.mark.unit
    def test_identical_results_agree(self):
        start = riga(2025, 11, 6, 9, 0)
        assert compare_results(reminder(start=start), reminder(start=start)) is None

    @pytest.mark.unit
    def test_description_format_is_low(self):
        """Test case and punctuation differences are cosmetic"""
        discrepancy = compare_results(reminder("Izvest suni"), reminder("izvest suni."))

        assert discrepancy.severity == Severity.LOW
        assert discrepancy.tags == ["description_format"]

    @pytest.mark.unit
    def test_description_wording_is_mid(self):
        discrepancy = compare_results(reminder("Izvest suni"), reminder("Pastaigāt ar suni"))

        assert discrepancy.severity == Severity.MID
        assert discrepancy.tags == ["description"]

    @pytest.mark.unit
    def test_small_start_shift_is_mid(self):
        discrepancy = compare_results(
            reminder(start=riga(2025, 11, 6, 9, 0)),
            reminder(start=riga(2025, 11, 6, 9, 3)),
        )

        assert discrepancy.severity == Severity.MID
        assert "start" in discrepancy.tags

    @pytest.mark.unit
    def test_large_start_shift_is_high(self):
        discrepancy = compare_results(
            reminder(start=riga(2025, 11, 6, 9, 0)),
            reminder(start=riga(2025, 11, 6, 21, 0)),
        )

        assert discrepancy.severity == Severity.HIGH

    @pytest.mark.unit
    def test_tolerance_is_configurable(self):
        discrepancy = compare_results(
            reminder(start=riga(2025, 11, 6, 9, 0)),
            reminder(start=riga(2025, 11, 6, 9, 10)),
            tolerance=timedelta(minutes=15),
        )

        assert discrepancy.severity == Severity.MID

    @pytest.mark.unit
    def test_missing_start_is_high(self):
        discrepancy = compare_results(reminder(), reminder(start=riga(2025, 11, 6, 9, 0)))

        assert discrepancy.severity == Severity.HIGH
        assert "start" in discrepancy.tags
        assert "has_time" in discrepancy.tags

    @pytest.mark.unit
    def test_kind_and_count_mismatch(self):
        multiple = MultiAction(tasks=[reminder(), reminder("Pabarot kaķi")])
        discrepancy = compare_results(reminder(), multiple)

        assert discrepancy.severity == Severity.HIGH
        assert discrepancy.tags[:2] == ["type", "task_count"]

    @pytest.mark.unit
    def test_items_compare_canonically(self):
        ours = ParsedAction(kind=ActionKind.SHOPPING, description="Pirkumi", language="lv",
                            items=["Pienu", "maizi"])
        theirs = ParsedAction(kind=ActionKind.SHOPPING, description="Pirkumi", language="lv",
                              items=["pienu", "maizi."])

        assert compare_results(ours, theirs) is None

    @pytest.mark.unit
    def test_to_dict(self):
        discrepancy = compare_results(reminder("Izvest suni"), reminder("izvest suni"))

        assert discrepancy.to_dict() == {"severity": "low", "tags": ["description_format"]}


class TestResolutionRouter:
    """Test suite for confidence-gated routing"""

    @pytest.fixture
    def error_handler(self):
        return ErrorHandler()

    @pytest.fixture
    def make_router(self, parser, mock_teacher, mock_gold_log, error_handler):
        routers = []

        def build(**teacher_settings):
            router = ResolutionRouter(
                parser=parser,
                teacher=mock_teacher,
                gold_log=mock_gold_log,
                processing_config=ProcessingConfig(),
                teacher_config=TeacherConfig(**teacher_settings),
                error_handler=error_handler,
            )
            routers.append(router)
            return router

        yield build
        for router in routers:
            router.shutdown(wait=True)

    @pytest.mark.unit
    def test_confident_parse_skips_teacher(self, make_router, mock_teacher, mock_gold_log, now):
        """Test a high-confidence fast path answer is returned directly"""
        routing = make_router().route("rīt divos tikšanās ar J.", "lv", now)

        assert routing.decision == Decision.V3
        assert routing.result.kind == ActionKind.CALENDAR
        mock_teacher.resolve.assert_not_called()

        entry = mock_gold_log.entries[0]
        assert entry.decision == "v3"
        assert entry.teacher_result is None
        assert entry.confidence_after == 0.95
        assert entry.am_pm_decision == "pm_default"

    @pytest.mark.unit
    def test_low_confidence_escalates(self, make_router, mock_teacher, mock_gold_log, now):
        """Test an agreeing teacher answer is labelled teacher"""
        mock_teacher.resolve.return_value = reminder("Izvest suni")

        routing = make_router().route("izvest suni", "lv", now)

        mock_teacher.resolve.assert_called_once_with("izvest suni", now, "lv")
        assert routing.decision == Decision.TEACHER
        assert routing.discrepancy is None
        assert mock_gold_log.entries[0].decision == "teacher"
        assert mock_gold_log.entries[0].confidence_after == 0.85

    @pytest.mark.unit
    def test_cosmetic_disagreement_is_still_teacher(self, make_router, mock_teacher, now):
        mock_teacher.resolve.return_value = reminder("izvest suni!")

        routing = make_router().route("izvest suni", "lv", now)

        assert routing.decision == Decision.TEACHER
        assert routing.discrepancy.severity == Severity.LOW

    @pytest.mark.unit
    def test_disagreement_is_override(self, make_router, mock_teacher, mock_gold_log, now):
        """Test the teacher answer wins and the disagreement is logged"""
        teacher_answer = reminder("Izvest suni", start=riga(2025, 11, 5, 19, 0))
        mock_teacher.resolve.return_value = teacher_answer

        routing = make_router().route("izvest suni", "lv", now)

        assert routing.decision == Decision.TEACHER_OVERRIDE
        assert routing.result is teacher_answer
        entry = mock_gold_log.entries[0]
        assert entry.decision == "teacher_override"
        assert entry.discrepancies["severity"] == "high"
        assert entry.teacher_result["start"] == "2025-11-05T19:00:00+02:00"

    @pytest.mark.unit
    def test_needs_context_escalates_confident_parse(self, make_router, mock_teacher, now):
        mock_teacher.resolve.return_value = reminder("Izmest miskasti", start=riga(2025, 11, 6, 9, 0))

        routing = make_router().route("atgādini rīt plkst 9 tas pats", "lv", now)

        assert routing.outcome.score == 0.95
        mock_teacher.resolve.assert_called_once()
        assert routing.decision != Decision.V3

    @pytest.mark.unit
    def test_teacher_failure_falls_back(self, make_router, mock_teacher, mock_gold_log, error_handler, now):
        """Test a teacher error keeps the fast path answer"""
        failures = []
        error_handler.register_error_callback(TeacherUnavailable, failures.append)
        mock_teacher.resolve.side_effect = TeacherUnavailable("HTTP 503", status_code=503)

        routing = make_router().route("izvest suni", "lv", now)

        assert routing.decision == Decision.V3
        assert routing.result.description == "Izvest suni"
        assert "503" in routing.teacher_error
        assert len(failures) == 1
        assert mock_gold_log.entries[0].decision == "v3"

    @pytest.mark.unit
    def test_teacher_timeout_falls_back(self, make_router, mock_teacher, mock_gold_log, now):
        """Test a slow teacher is abandoned after the timeout"""
        release = threading.Event()

        def slow_resolve(text, now, language):
            release.wait(5)
            return reminder("Izvest suni")

        mock_teacher.resolve.side_effect = slow_resolve
        try:
            routing = make_router(timeout=0.05).route("izvest suni", "lv", now)
        finally:
            release.set()

        assert routing.decision == Decision.V3
        assert "timed out" in routing.teacher_error
        assert len(mock_gold_log.entries) == 1
        entry = mock_gold_log.entries[0]
        assert entry.decision == "v3"
        assert entry.teacher_result is None
        assert entry.discrepancies is None

    @pytest.mark.unit
    def test_disabled_teacher_is_never_called(self, make_router, mock_teacher, now):
        routing = make_router(enabled=False).route("izvest suni", "lv", now)

        assert routing.decision == Decision.V3
        mock_teacher.resolve.assert_not_called()

    @pytest.mark.unit
    def test_gold_log_failure_does_not_fail_request(self, make_router, mock_gold_log, now):
        mock_gold_log.append.side_effect = LogSinkFailure("disk full")

        routing = make_router().route("rīt divos tikšanās ar J.", "lv", now)

        assert routing.result.kind == ActionKind.CALENDAR

    @pytest.mark.unit
    def test_without_gold_log(self, parser, now):
        router = ResolutionRouter(parser=parser)
        try:
            routing = router.route("rīt divos tikšanās ar J.", "lv", now)
        finally:
            router.shutdown()

        assert routing.decision == Decision.V3

    @pytest.mark.unit
    def test_should_escalate_threshold(self, parser, now):
        router = ResolutionRouter(parser=parser, processing_config=ProcessingConfig(acceptance_threshold=0.9))
        try:
            call = parser.parse("Zvanīt Jānim", "lv", now)
            meeting = parser.parse("rīt divos tikšanās", "lv", now)

            assert router.should_escalate(call)
            assert not router.should_escalate(meeting)
        finally:
            router.shutdown()

    @pytest.mark.unit
    def test_gold_log_entry_fields(self, make_router, mock_gold_log, now):
        make_router().route("atgādini rīt plkst 9 izvest suni", "lv", now)

        entry = mock_gold_log.entries[0]
        assert entry.language == "lv"
        assert entry.asr_text == "atgādini rīt plkst 9 izvest suni"
        assert entry.ts == now
        assert entry.v3_result["type"] == "reminder"
        assert entry.used_triggers == ["atgādini"]
        assert entry.desc_had_time_tokens_removed is True
