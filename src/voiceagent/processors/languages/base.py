"""Shared structures for per-language vocabulary tables."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, Tuple, Union


class DayPart(Enum):
    """Coarse time-of-day qualifiers with their default clock hour."""
    MORNING = ("morning", 9)
    NOON = ("noon", 12)
    AFTERNOON = ("afternoon", 14)
    EVENING = ("evening", 18)
    NIGHT = ("night", 22)

    def __init__(self, label: str, default_hour: int):
        self.label = label
        self.default_hour = default_hour


@dataclass(frozen=True)
class LiteralRule:
    """Fixed-string substitution for a recurring transcription error."""
    name: str
    pattern: str
    replacement: str
    preserve_case: bool = True


@dataclass(frozen=True)
class ComputedRule:
    """Substitution whose replacement is derived from the match."""
    name: str
    pattern: str
    compute: Callable[[re.Match], str]
    preserve_case: bool = True


NormalizationRule = Union[LiteralRule, ComputedRule]


@dataclass(frozen=True)
class LanguageProfile:
    """Everything language-specific the pipeline needs.

    Regex fragments are stored as strings and compiled by the component
    that uses them, always with ``re.IGNORECASE``. Dictionaries map a
    lowercase surface form (or stem, where noted) to its value.
    """
    code: str
    name: str
    timezone: str
    normalization_rules: Tuple[NormalizationRule, ...] = ()

    # Dates
    relative_days: Dict[str, int] = field(default_factory=dict)
    weekday_stems: Dict[str, int] = field(default_factory=dict)
    next_week_pattern: str = r'(?!x)x'
    month_stems: Dict[str, int] = field(default_factory=dict)
    ordinals: Dict[str, int] = field(default_factory=dict)
    ordinal_tens: Dict[str, int] = field(default_factory=dict)
    cardinals: Dict[str, int] = field(default_factory=dict)

    # Relative offsets: marker before ("pēc 10 min") or after ("10 min pärast")
    offset_marker: str = r'(?!x)x'
    offset_marker_first: bool = True
    offset_units: Tuple[Tuple[str, str], ...] = ()
    fractional_offsets: Tuple[Tuple[str, int], ...] = ()

    # Times
    time_markers: str = r'(?!x)x'
    hour_words: Dict[str, int] = field(default_factory=dict)
    word_hours_need_marker: bool = False
    half_hour_template: str = r'(?!x)x{words}'
    half_hour_words: Dict[str, int] = field(default_factory=dict)
    day_parts: Tuple[Tuple[str, DayPart], ...] = ()
    interval_patterns: Tuple[str, ...] = ()
    chain_separator: str = r','

    # Intent vocabulary
    remind_triggers: str = r'(?!x)x'
    call_verbs: str = r'(?!x)x'
    relation_words: FrozenSet[str] = frozenset()
    event_nouns: str = r'(?!x)x'
    known_places: str = r'(?!x)x'
    locative_suffixes: Tuple[str, ...] = ()
    shopping_triggers: Tuple[Tuple[str, int], ...] = ()
    item_separator: str = r'\s*,\s*'
    list_fillers: str = r'(?!x)x'
    shopping_label: str = "Shopping"
    note_triggers: str = r'(?!x)x'
    note_nouns: Dict[str, str] = field(default_factory=dict)
    default_label: str = "Reminder"
    subordinators: FrozenSet[str] = frozenset()
    needs_context_phrases: Tuple[str, ...] = ()

    # Display cleaning
    filler_words: str = r'(?!x)x'
    function_words: FrozenSet[str] = frozenset()
    command_verbs: str = r'(?!x)x'
    notes_markers: str = r'(?!x)x'
    due_prefix: str = r'(?!x)x'
    due_label: str = "due"

    # Contact names, longest ending first
    contact_suffixes: Tuple[Tuple[str, str], ...] = ()

    def day_words(self) -> Tuple[str, ...]:
        """Relative-day words and weekday stems, longest first."""
        words = list(self.relative_days) + list(self.weekday_stems)
        return tuple(sorted(words, key=len, reverse=True))


def alternation(words) -> str:
    """Regex alternation of literal words, longest first so prefixes lose."""
    return '|'.join(re.escape(word) for word in sorted(words, key=len, reverse=True))


def match_case(source: str, replacement: str) -> str:
    """Carry the capitalisation of ``source`` over to ``replacement``."""
    if not source or not replacement:
        return replacement
    if source.isupper() and len(source) > 1:
        return replacement.upper()
    if source[0].isupper():
        return replacement[0].upper() + replacement[1:]
    return replacement

