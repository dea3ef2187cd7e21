"""Display-Text Cleaner

Turns a normalized utterance into the short task text shown to the user.
Command triggers, filler connectives and the date and time phrases the
action was resolved from are cut; the remainder is tidied and
capitalised. A due-date phrase survives as a trailing annotation such as
``(līdz 15.11.)``.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from ...core.logging_manager import LoggingManager
from ..languages import LanguageProfile
from ..models import ActionKind
from .number_words import number_pattern
from .temporal_extractor import Span, TemporalExtractor, merge_spans


@dataclass
class CleaningResult:
    """Description text plus what the cleaner removed to get there."""
    text: str
    notes: Optional[str] = None
    removed_time_tokens: bool = False
    used_triggers: List[str] = field(default_factory=list)
    fell_back: bool = False
    due_annotation: Optional[str] = None


class DisplayCleaner:
    """Strips command and temporal scaffolding from task descriptions."""

    def __init__(self, profile: LanguageProfile, extractor: Optional[TemporalExtractor] = None,
                 long_reminder_words: int = 10):
        self.profile = profile
        self.logger = LoggingManager.get_logger(__name__)
        self.extractor = extractor or TemporalExtractor(profile)
        self.long_reminder_words = long_reminder_words

        flags = re.IGNORECASE
        self.trigger_pattern = re.compile(profile.remind_triggers, flags)
        # "trīs atgādinājumus" counts the reminders, it is not task text
        self.count_pattern = re.compile(
            rf'\b(?:{number_pattern(profile.cardinals)})\s+(?=(?:{profile.remind_triggers}))', flags
        )
        self.command_pattern = re.compile(profile.command_verbs, flags)
        self.due_pattern = re.compile(rf'\b(?:{profile.due_prefix})\s+', flags)
        self.notes_pattern = re.compile(profile.notes_markers, flags)
        self.leading_pattern = re.compile(
            rf'^(?:[\s,.;:!?–-]+|(?:{profile.filler_words})(?!\w))', flags
        )
        self.trailing_pattern = re.compile(
            rf'(?:[\s,;:!?–-]+|(?<!\w)(?:{profile.filler_words}))$', flags
        )
        self.clause_pattern = re.compile(r'\s*[,;:]\s+|\s+[–-]\s+')
        self.filler_word_pattern = re.compile(rf'(?:{profile.filler_words})', flags)

    def clean(self, text: str, now: datetime, kind: ActionKind = ActionKind.REMINDER,
              extra_spans: Optional[List[Span]] = None,
              temporal_spans: Optional[List[Span]] = None) -> CleaningResult:
        """Clean ``text`` for display.

        Args:
            text: Normalized utterance (original casing)
            now: Current instant, needed to read date phrases
            kind: Action kind; only reminders get long-text note splitting
            extra_spans: Additional spans to cut, e.g. a detected call verb
            temporal_spans: Date and time phrases the action was resolved
                from; read from ``text`` itself when omitted

        Returns:
            CleaningResult whose text falls back to ``text`` unchanged when
            nothing meaningful would remain
        """
        lowered = text.lower()
        annotation, due_span = self._due_annotation(lowered, now)

        trigger_spans = [match.span() for match in self.trigger_pattern.finditer(lowered)]
        used_triggers = [lowered[start:end] for start, end in trigger_spans]
        if temporal_spans is None:
            temporal_spans = self.extractor.resolved_spans(self.extractor.extract(text, now))

        spans = trigger_spans + list(temporal_spans) + list(extra_spans or [])
        spans.extend(match.span() for match in self.count_pattern.finditer(lowered))
        spans.extend(match.span() for match in self.command_pattern.finditer(lowered))
        if due_span:
            spans.append(due_span)

        remaining = self._cut(text, merge_spans(spans))
        description, notes = self._split_notes(remaining)
        if notes is None and kind == ActionKind.REMINDER:
            description, notes = self._split_long(description)

        description = self._capitalize(description)
        result = CleaningResult(
            text=description,
            notes=self._capitalize(notes) if notes else None,
            removed_time_tokens=bool(temporal_spans),
            used_triggers=used_triggers,
            due_annotation=annotation,
        )

        if not description or self._is_function_word(description):
            if annotation:
                result.text = f"{self.profile.default_label} {annotation}"
            else:
                result.text = text
                result.notes = None
                result.fell_back = True
                self.logger.debug(f"Cleaning left nothing, keeping original text: {text!r}")
        elif annotation:
            result.text = f"{description} {annotation}"

        return result

    def _is_function_word(self, description: str) -> bool:
        """A lone preposition, connective or number left over from a phrase."""
        words = re.findall(r'\w+', description.lower())
        if len(words) != 1:
            return False
        word = words[0]
        return (word.isdigit()
                or word in self.profile.cardinals
                or word in self.profile.function_words
                or word in self.profile.subordinators
                or bool(self.filler_word_pattern.fullmatch(word)))

    def _due_annotation(self, lowered: str, now: datetime) -> Tuple[Optional[str], Optional[Span]]:
        """Find "līdz <date>" and render it as "(līdz DD.MM.)"."""
        candidates = list(self.extractor.date_resolver.specific_dates(lowered, now))
        for match in self.due_pattern.finditer(lowered):
            for due_date, (start, end), _ in candidates:
                if start == match.end() and due_date is not None:
                    annotation = f"({self.profile.due_label} {due_date.day:02d}.{due_date.month:02d}.)"
                    return annotation, (match.start(), end)
        return None, None

    @staticmethod
    def _cut(text: str, spans: List[Span]) -> str:
        pieces = []
        cursor = 0
        for start, end in spans:
            pieces.append(text[cursor:start])
            cursor = max(cursor, end)
        pieces.append(text[cursor:])
        return ' '.join(pieces)

    def _tidy(self, text: str) -> str:
        """Collapse whitespace and punctuation, then strip edge fillers."""
        text = re.sub(r'\s+', ' ', text)
        text = re.sub(r'\s+([,.;:!?])', r'\1', text)
        text = re.sub(r'([,;:])(?:\s*[,;:])+', r'\1', text)
        text = re.sub(r'\(\s*\)', '', text).strip()

        previous = None
        while previous != text:
            previous = text
            text = self.leading_pattern.sub('', text).strip()
            text = self.trailing_pattern.sub('', text).strip()

        # A final full stop goes, unless it closes an initial ("ar J.")
        if text.endswith('.') and not re.search(r'(?:^|\s)\w\.$', text):
            text = text[:-1].rstrip()
        return text

    def _split_notes(self, text: str) -> Tuple[str, Optional[str]]:
        parts = self.notes_pattern.split(text, maxsplit=1)
        if len(parts) == 2 and self._tidy(parts[1]):
            return self._tidy(parts[0]), self._tidy(parts[1])
        return self._tidy(text), None

    def _split_long(self, text: str) -> Tuple[str, Optional[str]]:
        if len(text.split()) <= self.long_reminder_words:
            return text, None
        parts = self.clause_pattern.split(text, maxsplit=1)
        if len(parts) == 2 and self._tidy(parts[0]) and self._tidy(parts[1]):
            return self._tidy(parts[0]), self._tidy(parts[1])
        return text, None

    @staticmethod
    def _capitalize(text: Optional[str]) -> str:
        if not text:
            return ""
        return text[0].upper() + text[1:]
