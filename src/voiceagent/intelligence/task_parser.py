"""Fast-path Task Parser

Deterministic pipeline that turns one transcribed utterance into a typed
action: normalize, extract date and time, classify, clean the description
and score the result. Parsing is a pure function of ``(text, language,
now)`` and never raises on malformed input; the worst case is a
low-confidence reminder without a time.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from ..core.config_manager import ProcessingConfig
from ..core.error_handler import ParseIssue
from ..core.logging_manager import LoggingManager
from ..processors.core.contact_normalizer import ContactNormalizer
from ..processors.core.display_cleaner import DisplayCleaner
from ..processors.core.temporal_extractor import (
    TemporalExtraction,
    TemporalExtractor,
    TimeMention,
    combine,
)
from ..processors.core.text_normalizer import NormalizationResult, TextNormalizer
from ..processors.languages import LanguageProfile, get_language_profile
from ..processors.models import (
    ActionKind,
    DateDerivation,
    DateResolution,
    MultiAction,
    ParsedAction,
    Resolution,
    TimeResolution,
)
from .confidence_calculator import ConfidenceCalculator, ConfidenceRecord
from .intent_classifier import IntentClassifier, IntentMatch


CALENDAR_DEFAULT_HOUR = 14
CALENDAR_DURATION = timedelta(hours=1)
LONG_OFFSET_UNITS = ("days", "weeks")
TIMED_KINDS = (ActionKind.REMINDER, ActionKind.CALENDAR)


@dataclass
class ParseOutcome:
    """Fast-path result plus everything the router and the gold log need."""
    result: Resolution
    language: str
    normalization: NormalizationResult
    temporal: TemporalExtraction
    intent: IntentMatch
    confidence: ConfidenceRecord
    issues: List[ParseIssue] = field(default_factory=list)
    used_triggers: List[str] = field(default_factory=list)
    desc_had_time_tokens_removed: bool = False
    am_pm_decision: Optional[str] = None

    @property
    def score(self) -> float:
        return self.confidence.score

    @property
    def needs_context(self) -> bool:
        return self.intent.needs_context


@dataclass
class _LanguageComponents:
    profile: LanguageProfile
    extractor: TemporalExtractor
    cleaner: DisplayCleaner
    classifier: IntentClassifier


class TaskParser:
    """Language-aware fast-path parser."""

    def __init__(self, config: Optional[ProcessingConfig] = None):
        self.config = config or ProcessingConfig()
        self.logger = LoggingManager.get_logger(__name__)
        self.normalizer = TextNormalizer()
        self.contact_normalizer = ContactNormalizer()
        self.confidence_calculator = ConfidenceCalculator()
        self._components: Dict[str, _LanguageComponents] = {}

    def _components_for(self, language: Optional[str]) -> _LanguageComponents:
        profile = get_language_profile(language, self.config.default_language)
        components = self._components.get(profile.code)
        if components is None:
            extractor = TemporalExtractor(profile)
            components = _LanguageComponents(
                profile=profile,
                extractor=extractor,
                cleaner=DisplayCleaner(profile, extractor, self.config.long_reminder_words),
                classifier=IntentClassifier(profile, self.contact_normalizer),
            )
            self._components[profile.code] = components
        return components

    def parse(self, text: str, language: Optional[str], now: datetime) -> ParseOutcome:
        """Parse ``text`` spoken in ``language`` at instant ``now``.

        Args:
            text: Raw transcription
            language: Language code; unsupported codes use the default vocabulary
            now: Timezone-aware current instant in the language's zone

        Returns:
            ParseOutcome with the typed action and scoring details
        """
        components = self._components_for(language)
        profile = components.profile

        normalization = self.normalizer.normalize(text or "", profile)
        normalized = normalization.normalized_text
        issues = [] if normalization.changed else [ParseIssue.NORMALIZATION_NOOP]

        extraction = components.extractor.extract(normalized, now)
        spans = components.extractor.temporal_spans(normalized, now)
        intent = components.classifier.classify(normalized, extraction, spans)

        used_triggers: List[str] = []
        removed_time_tokens = False

        result = self._split_reminders(normalized, extraction, intent, components, now,
                                       normalization.corrected_input)
        if result is None:
            result, cleaning = self._build_action(normalized, extraction, intent, components, now)
            if cleaning is not None:
                used_triggers = cleaning.used_triggers
                removed_time_tokens = cleaning.removed_time_tokens
        else:
            used_triggers = [match.group(0).lower() for match in
                             components.cleaner.trigger_pattern.finditer(normalized)]
            removed_time_tokens = True

        if isinstance(result, ParsedAction):
            result.corrected_input = normalization.corrected_input
        elif isinstance(result, MultiAction):
            for task in result.tasks:
                task.corrected_input = normalization.corrected_input

        issues.extend(self._temporal_issues(normalized, extraction, result, intent, components, now))

        has_time = result.kind == ActionKind.MULTIPLE or result.has_time
        confidence = self.confidence_calculator.score(
            has_time=has_time,
            has_day=extraction.date.has_day,
            has_type=intent.has_type,
        )

        outcome = ParseOutcome(
            result=result,
            language=profile.code,
            normalization=normalization,
            temporal=extraction,
            intent=intent,
            confidence=confidence,
            issues=issues,
            used_triggers=used_triggers,
            desc_had_time_tokens_removed=removed_time_tokens,
            am_pm_decision=extraction.time.am_pm_decision if extraction.time else None,
        )
        self.logger.debug(
            f"Parsed {profile.code} input as {result.kind.value} "
            f"(confidence {confidence.score:.2f}, issues: {[issue.value for issue in issues]})"
        )
        return outcome

    def _build_action(self, text: str, extraction: TemporalExtraction, intent: IntentMatch,
                      components: _LanguageComponents, now: datetime):
        """Single action for the classified intent, plus the cleaning record."""
        profile = components.profile

        if intent.kind == ActionKind.CALL_CONTACT:
            start, end = intent.call_span
            description = text[start:end].strip(' ,.;:!?')
            action = ParsedAction(
                kind=ActionKind.CALL_CONTACT,
                description=description[:1].upper() + description[1:],
                language=profile.code,
                contact_name=intent.contact_name,
                contact_normalized=intent.contact_normalized,
            )
            return action, None

        if intent.kind == ActionKind.SHOPPING:
            action = ParsedAction(
                kind=ActionKind.SHOPPING,
                description=profile.shopping_label,
                language=profile.code,
                items=list(intent.items or []),
            )
            return action, None

        cleaning = components.cleaner.clean(
            text, now, intent.kind, temporal_spans=components.extractor.resolved_spans(extraction)
        )
        description, notes = cleaning.text, cleaning.notes

        if intent.is_inbox:
            description, notes = self._inbox_text(text, intent, cleaning, components)
            return ParsedAction(
                kind=ActionKind.REMINDER,
                description=description,
                language=profile.code,
                notes=notes,
            ), cleaning

        if intent.kind == ActionKind.CALENDAR:
            start, end, has_time = self._calendar_window(extraction.date, extraction.time, now)
        else:
            start, end, has_time = self._reminder_window(extraction.date, extraction.time, now)

        return ParsedAction(
            kind=intent.kind,
            description=description,
            language=profile.code,
            notes=notes,
            start=start,
            end=end,
            has_time=has_time,
        ), cleaning

    def _inbox_text(self, text: str, intent: IntentMatch, cleaning, components) -> Tuple[str, Optional[str]]:
        """Idea and note dictation: the note noun labels it, the rest is the note."""
        if not intent.note_label:
            return cleaning.text, cleaning.notes

        payload = text[intent.note_span[1]:] if intent.note_span else text
        payload = re.sub(r'^[\s,.:;!?–-]+', '', payload)
        payload = re.sub(rf'^(?:{components.profile.filler_words})(?!\w)[\s,:]*', '', payload,
                         flags=re.IGNORECASE).strip(' .')
        if not payload:
            return intent.note_label, None
        return intent.note_label, payload

    @staticmethod
    def _calendar_window(date: DateResolution, time: Optional[TimeResolution], now: datetime):
        """Calendar entries always get a start and an end, 14:00 when no time was said."""
        tz = now.tzinfo
        if date.derivation == DateDerivation.RELATIVE_TIME and time is None:
            start = date.instant
            return start, start + CALENDAR_DURATION, True

        if time is None:
            start = combine(date.base_date, CALENDAR_DEFAULT_HOUR, 0, tz)
            return start, start + CALENDAR_DURATION, False

        start = combine(date.base_date, time.hour, time.minute, tz)
        end = _interval_end(time, start, tz) or start + CALENDAR_DURATION
        return start, end, True

    @staticmethod
    def _reminder_window(date: DateResolution, time: Optional[TimeResolution], now: datetime):
        tz = now.tzinfo
        if date.derivation == DateDerivation.RELATIVE_TIME:
            if time is not None and date.metadata.get("unit") in LONG_OFFSET_UNITS:
                start = combine(date.instant.date(), time.hour, time.minute, tz)
                return start, _interval_end(time, start, tz), True
            return date.instant, None, True

        if time is not None:
            start = combine(date.base_date, time.hour, time.minute, tz)
            return start, _interval_end(time, start, tz), True

        if date.has_day:
            return combine(date.base_date, 0, 0, tz), None, False

        return None, None, False

    def _split_reminders(self, text: str, extraction: TemporalExtraction, intent: IntentMatch,
                         components: _LanguageComponents, now: datetime,
                         corrected_input: Optional[str]) -> Optional[Resolution]:
        """Split one reminder with several explicit times into several reminders.

        Returns None when the utterance is a single action.
        """
        mentions = extraction.mentions
        if intent.kind != ActionKind.REMINDER or intent.is_inbox or len(mentions) < 2:
            return None
        if not self._gaps_allow_split(text, mentions, components.profile):
            return None

        bounds = self._segment_bounds(text, mentions, components, now)

        # A calendar or shopping request inside a segment wins over the split
        for start, end in bounds:
            segment_text = text[start:end]
            sub_extraction = components.extractor.extract(segment_text, now)
            sub_spans = components.extractor.temporal_spans(segment_text, now)
            sub_intent = components.classifier.classify(segment_text, sub_extraction, sub_spans)
            if sub_intent.kind in (ActionKind.CALENDAR, ActionKind.SHOPPING):
                if sub_extraction.date.derivation == DateDerivation.DEFAULT:
                    sub_extraction.date = replace(extraction.date, spans=[])
                action, _ = self._build_action(segment_text, sub_extraction, sub_intent, components, now)
                self.logger.info(f"Split segment carries a {action.kind.value} request, returning it alone")
                return action

        dates = [components.extractor.date_resolver.resolve_date(text[start:end], now) for start, end in bounds]
        # Chained times ("9, 10 un 11") and every segment's date are cut from the shared text
        consumed = [(mention.start, mention.end) for mention in mentions] + list(extraction.date.spans)
        for (start, _), date in zip(bounds, dates):
            consumed.extend((start + span_start, start + span_end) for span_start, span_end in date.spans)
        shared = components.cleaner.clean(text, now, temporal_spans=consumed)
        shared_description = components.profile.default_label if shared.fell_back else shared.text

        tasks = []
        for mention, date, (start, end) in zip(mentions, dates, bounds):
            if date.derivation == DateDerivation.DEFAULT:
                date = extraction.date
            time = mention.to_resolution(text)
            date = components.extractor.reconcile_weekday(date, time, now)
            task_start, task_end, has_time = self._reminder_window(date, time, now)

            local = [(span_start - start, span_end - start) for span_start, span_end in consumed
                     if start <= span_start and span_end <= end]
            cleaned = components.cleaner.clean(text[start:end], now, temporal_spans=local)
            tasks.append(ParsedAction(
                kind=ActionKind.REMINDER,
                description=shared_description if cleaned.fell_back else cleaned.text,
                language=components.profile.code,
                notes=None if cleaned.fell_back else cleaned.notes,
                start=task_start,
                end=task_end,
                has_time=has_time,
            ))

        self.logger.info(f"Split reminder into {len(tasks)} tasks")
        return MultiAction(tasks=tasks, corrected_input=corrected_input)

    def _segment_bounds(self, text: str, mentions: List[TimeMention], components: _LanguageComponents,
                        now: datetime) -> List[Tuple[int, int]]:
        """Text owned by each mention, including the mention itself.

        Task words follow their time ("plkst 9 izvest suni, plkst 18 pabarot
        kaķi") unless nothing follows the last time, in which case they
        precede it.
        """
        tail = text[mentions[-1].end:]
        if tail.strip() and not components.cleaner.clean(tail, now).fell_back:
            bounds = [(mention.start, following.start) for mention, following in zip(mentions, mentions[1:])]
            bounds.append((mentions[-1].start, len(text)))
            # The first segment also owns everything before its time
            bounds[0] = (0, bounds[0][1])
            return bounds

        bounds = []
        previous_end = 0
        for mention in mentions:
            bounds.append((previous_end, mention.end))
            previous_end = mention.end
        bounds[-1] = (bounds[-1][0], len(text))
        return bounds

    def _gaps_allow_split(self, text: str, mentions: List[TimeMention], profile: LanguageProfile) -> bool:
        for previous, current in zip(mentions, mentions[1:]):
            words = re.findall(r'\w+', text[previous.end:current.start].lower())
            if len(words) > self.config.max_split_gap_words:
                return False
            if any(word in profile.subordinators for word in words):
                return False
        return True

    def _temporal_issues(self, text: str, extraction: TemporalExtraction, result: Resolution,
                         intent: IntentMatch, components: _LanguageComponents,
                         now: datetime) -> List[ParseIssue]:
        """Date fell back to today, or a timed action has no clock time."""
        issues = []
        lowered = text.lower()
        dates = list(components.extractor.date_resolver.specific_dates(lowered, now))
        if (extraction.date.derivation == DateDerivation.DEFAULT
                or any(candidate is None for candidate, _, _ in dates)):
            issues.append(ParseIssue.AMBIGUOUS_DATE)

        timed = result.kind in TIMED_KINDS and not intent.is_inbox
        if not extraction.has_time and (
                timed or components.extractor.marker_pattern.search(extraction.masked_text)):
            issues.append(ParseIssue.UNPARSEABLE_TIME)
        return issues


def _interval_end(time: TimeResolution, start: datetime, tz) -> Optional[datetime]:
    if not time.has_interval:
        return None
    end = combine(start.date(), time.end_hour, time.end_minute or 0, tz)
    return end if end > start else None
