"""Temporal Extractor for spoken reminders and calendar entries

Resolves the base date and the clock time of a normalized utterance. Date
rules are tried in a fixed precedence order and the first match wins; the
spans consumed by date rules are masked before time extraction so that a
day-of-month or an offset amount is never read as an hour.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

from dateutil.tz import tzutc

from ...core.logging_manager import LoggingManager
from ..languages import DayPart, LanguageProfile
from ..languages.base import alternation
from ..models import DateDerivation, DateResolution, TimeResolution, TimeSource
from .number_words import number_pattern, parse_number, parse_ordinal


TIME_BONUS = 0.07

OFFSET_DELTAS = {
    "minutes": lambda n: timedelta(minutes=n),
    "hours": lambda n: timedelta(hours=n),
    "days": lambda n: timedelta(days=n),
    "weeks": lambda n: timedelta(weeks=n),
}

Span = Tuple[int, int]


@dataclass
class TimeMention:
    """One explicit clock-time expression found in the text."""
    start: int
    end: int
    hour: int
    minute: int
    source: TimeSource
    literal: bool = False
    am_pm_decision: Optional[str] = None
    end_hour: Optional[int] = None
    end_minute: Optional[int] = None
    day_part: Optional[DayPart] = None

    def to_resolution(self, text: str = "") -> TimeResolution:
        return TimeResolution(
            hour=self.hour,
            minute=self.minute,
            source=self.source,
            confidence_bonus=TIME_BONUS,
            am_pm_decision=self.am_pm_decision,
            end_hour=self.end_hour,
            end_minute=self.end_minute,
            matched_text=text[self.start:self.end].strip() or None,
            span=(self.start, self.end),
        )


@dataclass
class TemporalExtraction:
    """Complete temporal reading of one utterance."""
    text: str
    masked_text: str
    date: DateResolution
    time: Optional[TimeResolution] = None
    mentions: List[TimeMention] = field(default_factory=list)
    consumed_spans: List[Span] = field(default_factory=list)

    @property
    def has_time(self) -> bool:
        return self.time is not None or self.date.derivation == DateDerivation.RELATIVE_TIME


def mask_spans(text: str, spans: List[Span]) -> str:
    """Blank out spans while keeping every other offset stable."""
    chars = list(text)
    for start, end in spans:
        for index in range(start, min(end, len(chars))):
            chars[index] = ' '
    return ''.join(chars)


def merge_spans(spans: List[Span]) -> List[Span]:
    merged: List[Span] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(end, merged[-1][1]))
        else:
            merged.append((start, end))
    return merged


def _overlaps(start: int, end: int, spans: List[Span]) -> bool:
    return any(start < span_end and span_start < end for span_start, span_end in spans)


class DateResolver:
    """Derives the base calendar date of an utterance."""

    def __init__(self, profile: LanguageProfile):
        self.profile = profile
        self.logger = LoggingManager.get_logger(__name__)

        flags = re.IGNORECASE
        self.relative_day_pattern = re.compile(
            rf'\b({alternation(profile.relative_days)})\b', flags
        )
        self.weekday_pattern = re.compile(
            rf'\b({alternation(profile.weekday_stems)})\w*', flags
        )
        self.next_week_pattern = re.compile(profile.next_week_pattern, flags)
        self.offset_pattern = self._build_offset_pattern()
        self.fractional_patterns = [
            (re.compile(pattern, flags), minutes)
            for pattern, minutes in profile.fractional_offsets
        ]
        self.specific_date_patterns = self._build_specific_date_patterns()
        self.marker_tail_pattern = re.compile(rf'(?:{profile.time_markers})\s*$', flags)

    def _build_offset_pattern(self) -> re.Pattern:
        """Build the "in N units" pattern for the profile's word order."""
        profile = self.profile
        units = '|'.join(
            f'(?P<u{index}>{pattern})'
            for index, (pattern, _) in enumerate(profile.offset_units)
        ) or r'(?!x)x'
        number = number_pattern(profile.cardinals)

        if profile.offset_marker_first:
            pattern = (
                rf'\b(?:{profile.offset_marker})\s+'
                rf'(?:(?P<amount>{number})\s*)?(?:{units})(?!\w)'
            )
        else:
            pattern = (
                rf'(?:\b(?P<amount>{number})\s*|\b)(?:{units})'
                rf'\s+(?:{profile.offset_marker})\b'
            )
        return re.compile(pattern, re.IGNORECASE)

    def _build_specific_date_patterns(self) -> Dict[str, re.Pattern]:
        """Build numeric, ordinal-word and dd.mm. date patterns.

        All forms share the profile's month-stem table so the numeric and
        spelled-out variants always agree on the month index.
        """
        profile = self.profile
        months = alternation(profile.month_stems)
        ordinals = alternation(profile.ordinals)
        tens = alternation(profile.ordinal_tens) or r'(?!x)x'

        return {
            'numeric': re.compile(
                rf'(?<![\d:.])\b(?P<day>\d{{1,2}})\.?\s*(?P<month>{months})\w*', re.IGNORECASE
            ),
            'ordinal': re.compile(
                rf'\b(?:(?P<tens>{tens})\s+)?(?P<ordinal>{ordinals})\s+(?P<month>{months})\w*',
                re.IGNORECASE
            ),
            'day_month': re.compile(
                r'(?<![\d:.])\b(?P<day>\d{1,2})\.(?P<month_number>\d{1,2})\.(?!\d)'
            ),
        }

    def resolve_date(self, text: str, now: datetime) -> DateResolution:
        """Resolve the base date of lowercased ``text`` relative to ``now``.

        Precedence: relative day, weekday, next week, relative offset,
        specific date, default (today).
        """
        text = text.lower()
        today = now.date()

        match = self.relative_day_pattern.search(text)
        if match:
            keyword = match.group(1)
            offset = self.profile.relative_days[keyword]
            return DateResolution(
                base_date=today + timedelta(days=offset),
                derivation=DateDerivation.RELATIVE_DAY,
                metadata={"keyword": keyword, "offset_days": offset},
                matched_text=match.group(0),
                spans=[match.span()],
            )

        next_week = self.next_week_pattern.search(text)
        match = self.weekday_pattern.search(text)
        if match:
            target = self.profile.weekday_stems[match.group(1)]
            offset = (target - now.isoweekday()) % 7
            if next_week:
                return DateResolution(
                    base_date=today + timedelta(days=offset + 7),
                    derivation=DateDerivation.NEXT_WEEK,
                    metadata={"weekday": target, "offset_days": offset + 7},
                    matched_text=match.group(0),
                    spans=[next_week.span(), match.span()],
                )
            return DateResolution(
                base_date=today + timedelta(days=offset),
                derivation=DateDerivation.WEEKDAY,
                metadata={"weekday": target, "offset_days": offset, "same_day": offset == 0},
                matched_text=match.group(0),
                spans=[match.span()],
            )

        if next_week:
            offset = 8 - now.isoweekday()
            return DateResolution(
                base_date=today + timedelta(days=offset),
                derivation=DateDerivation.NEXT_WEEK,
                metadata={"weekday": 1, "offset_days": offset},
                matched_text=next_week.group(0),
                spans=[next_week.span()],
            )

        offset_resolution = self._resolve_offset(text, now)
        if offset_resolution:
            return offset_resolution

        for candidate_date, span, form in self.specific_dates(text, now):
            if candidate_date is None:
                continue
            return DateResolution(
                base_date=candidate_date,
                derivation=DateDerivation.SPECIFIC_DATE,
                metadata={"form": form, "rolled_to_next_year": candidate_date.year > now.year},
                matched_text=text[span[0]:span[1]],
                spans=[span],
            )

        return DateResolution(
            base_date=today,
            derivation=DateDerivation.DEFAULT,
            metadata={"is_today": True},
        )

    def _resolve_offset(self, text: str, now: datetime) -> Optional[DateResolution]:
        """Resolve "in N minutes/hours/days/weeks" against the current instant."""
        found: List[Tuple[int, int, timedelta, str, str]] = []

        for pattern, minutes in self.fractional_patterns:
            for match in pattern.finditer(text):
                found.append((match.start(), match.end(), timedelta(minutes=minutes), "minutes", match.group(0)))

        for match in self.offset_pattern.finditer(text):
            unit = self._matched_unit(match)
            amount_text = match.group('amount')
            amount = parse_number(amount_text, self.profile.cardinals) if amount_text else 1
            if amount is None or unit is None:
                continue
            found.append((match.start(), match.end(), OFFSET_DELTAS[unit](amount), unit, match.group(0)))

        if not found:
            return None

        start, end, delta, unit, matched = min(found, key=lambda item: item[0])
        # Add in UTC so a DST switch inside the interval is honoured
        instant = (now.astimezone(tzutc()) + delta).astimezone(now.tzinfo)
        return DateResolution(
            base_date=instant.date(),
            derivation=DateDerivation.RELATIVE_TIME,
            metadata={"unit": unit, "minutes": int(delta.total_seconds() // 60)},
            instant=instant,
            matched_text=matched,
            spans=[(start, end)],
        )

    def _matched_unit(self, match: re.Match) -> Optional[str]:
        for index, (_, unit) in enumerate(self.profile.offset_units):
            if match.group(f'u{index}'):
                return unit
        return None

    def specific_dates(self, text: str, now: datetime):
        """Yield (date or None, span, form) for every date-like phrase, in text order."""
        candidates = []
        for form, pattern in self.specific_date_patterns.items():
            for match in pattern.finditer(text):
                if form == 'ordinal':
                    day = parse_ordinal(match.group('tens'), match.group('ordinal'),
                                        self.profile.ordinal_tens, self.profile.ordinals)
                else:
                    day = int(match.group('day'))

                if form == 'day_month':
                    if self.marker_tail_pattern.search(text[:match.start()]):
                        continue
                    month = int(match.group('month_number'))
                else:
                    month = self.profile.month_stems[match.group('month').lower()]

                if day is None or not 1 <= day <= 31 or not 1 <= month <= 12:
                    continue
                candidates.append((match.start(), match.end(), day, month, form))

        for start, end, day, month, form in sorted(candidates):
            yield self._roll_forward(day, month, now.date()), (start, end), form

    @staticmethod
    def _roll_forward(day: int, month: int, today: date) -> Optional[date]:
        """This year's date, or next year's when it is already in the past."""
        for year in (today.year, today.year + 1):
            try:
                candidate = date(year, month, day)
            except ValueError:
                continue
            if candidate >= today:
                return candidate
        return None

    def consumed_spans(self, text: str, now: datetime) -> List[Span]:
        """Spans of offsets and day-of-month phrases that are not clock times."""
        text = text.lower()
        spans = [
            match.span()
            for pattern, _ in self.fractional_patterns
            for match in pattern.finditer(text)
        ]
        spans.extend(match.span() for match in self.offset_pattern.finditer(text))
        spans.extend(span for _, span, _ in self.specific_dates(text, now))
        return merge_spans(spans)

    def date_word_spans(self, text: str) -> List[Span]:
        """Spans of relative-day, weekday and next-week words."""
        text = text.lower()
        spans = [match.span() for match in self.relative_day_pattern.finditer(text)]
        spans.extend(match.span() for match in self.weekday_pattern.finditer(text))
        spans.extend(match.span() for match in self.next_week_pattern.finditer(text))
        return spans


class TimeResolver:
    """Extracts clock times from masked, lowercased text."""

    def __init__(self, profile: LanguageProfile):
        self.profile = profile
        self.logger = LoggingManager.get_logger(__name__)
        self.day_part_patterns = [
            (re.compile(pattern, re.IGNORECASE), part) for pattern, part in profile.day_parts
        ]
        self.patterns = self._build_time_patterns()

    def _build_time_patterns(self) -> Dict[str, re.Pattern]:
        """Build the mention patterns, keyed in the order they claim text."""
        profile = self.profile
        flags = re.IGNORECASE
        markers = profile.time_markers
        qualifiers = '|'.join(f'(?:{pattern})' for pattern, _ in profile.day_parts) or r'(?!x)x'
        qual_after = rf'(?:\s+(?P<qual>{qualifiers}))?'
        qual_before = rf'(?:(?P<qual_pre>{qualifiers})\s+)?'
        day_words = (
            rf'(?:{alternation(profile.relative_days)})\b'
            rf'|(?:{alternation(profile.weekday_stems)})\w*'
        )
        bare_hour = r'(?P<h>\d{1,2})(?![\d:])(?!\.\d)'
        hour_words = alternation(profile.hour_words)
        minutes = number_pattern(profile.cardinals)
        optional_marker = rf'(?:\b(?:{markers})\s+)?'
        word_marker = rf'\b(?:{markers})\s+' if profile.word_hours_need_marker else optional_marker

        patterns = {}
        for index, interval in enumerate(profile.interval_patterns):
            patterns[f'interval_{index}'] = re.compile(interval + qual_after, flags)
        patterns.update({
            'clock': re.compile(
                rf'(?:\b(?:{markers})\s*)?(?<![\d:])(?<!\d\.)(?P<h>\d{{1,2}})[:.](?P<m>\d{{2}})(?!\d)'
                + qual_after, flags
            ),
            'half_hour': re.compile(
                qual_before + optional_marker
                + profile.half_hour_template.format(words=alternation(profile.half_hour_words))
                + qual_after, flags
            ),
            'word_hour': re.compile(
                qual_before + word_marker
                + rf'\b(?P<w>{hour_words})\b(?:\s+(?P<min>{minutes}))?' + qual_after, flags
            ),
            'marker_hour': re.compile(
                qual_before + rf'\b(?:{markers})\s*' + bare_hour + qual_after, flags
            ),
            'hour_day_part': re.compile(
                rf'(?<![\d.:])\b(?P<h>\d{{1,2}})\s+(?P<qual>{qualifiers})', flags
            ),
            'day_word_hour': re.compile(
                rf'\b(?:{day_words})\s+' + bare_hour + qual_after, flags
            ),
            'leading_hour': re.compile(
                rf'^\s*(?P<h>\d{{1,2}})(?![\d:.])'
                rf'(?:\s+no(?=\s+(?:{day_words})))?(?=\s+(?:{day_words}))', flags
            ),
        })
        self.chain_pattern = re.compile(
            rf'\s*(?P<sep>{profile.chain_separator})\s*(?P<marker>(?:{markers})\s*)?' + bare_hour + qual_after,
            flags
        )
        subordinators = alternation(profile.subordinators) or r'(?!x)x'
        self.chain_boundary = re.compile(
            rf'\s*(?:(?:{profile.chain_separator})|\b(?:{subordinators})\b|[.;!?]|$)', flags
        )
        return patterns

    def day_part_of(self, text: Optional[str]) -> Optional[DayPart]:
        if not text:
            return None
        for pattern, part in self.day_part_patterns:
            if pattern.fullmatch(text.strip()):
                return part
        return None

    @staticmethod
    def disambiguate(hour: int, day_part: Optional[DayPart]) -> Optional[Tuple[int, str]]:
        """Map a spoken 0-23 hour onto the 24-hour clock.

        A qualifier only disambiguates 1-12. Without one, 1-7 are afternoon
        or evening hours and 8-11 are morning hours.
        """
        if hour > 23:
            return None
        if hour == 0 or hour >= 13:
            return hour, "24h"

        if day_part is None:
            if hour <= 7:
                return hour + 12, "pm_default"
            if hour <= 11:
                return hour, "am_default"
            return hour, "24h"

        if day_part == DayPart.MORNING:
            return hour, "am_qualifier"
        if day_part == DayPart.NIGHT:
            if hour == 12:
                return 0, "night_qualifier"
            return (hour + 12 if hour >= 7 else hour), "night_qualifier"
        return (hour + 12 if hour < 12 else hour), "pm_qualifier"

    def _qualifier(self, match: re.Match) -> Optional[DayPart]:
        groups = match.groupdict()
        return self.day_part_of(groups.get('qual')) or self.day_part_of(groups.get('qual_pre'))

    def find_mentions(self, text: str) -> List[TimeMention]:
        """All explicit clock-time mentions (not bare day-parts), in text order."""
        text = text.lower()
        mentions: List[TimeMention] = []
        occupied: List[Span] = []

        for name, pattern in self.patterns.items():
            for match in pattern.finditer(text):
                if _overlaps(match.start(), match.end(), occupied):
                    continue
                mention = self._mention_from_match(name, match)
                if mention is None:
                    continue
                mentions.append(mention)
                occupied.append((mention.start, mention.end))

        mentions.sort(key=lambda item: item.start)

        # Enumerations such as "rīt 9, 10 un 11" continue the previous mention
        index = 0
        chained_starts = set()
        while index < len(mentions):
            previous = mentions[index]
            match = self.chain_pattern.match(text, previous.end)
            if (match and not _overlaps(match.start('h'), match.end(), occupied)
                    and self._continues_chain(text, match, previous.start in chained_starts)):
                day_part = self._qualifier(match) or previous.day_part
                resolved = self.disambiguate(int(match.group('h')), day_part)
                if resolved:
                    chained = TimeMention(
                        start=match.start('h'), end=match.end(), hour=resolved[0], minute=0,
                        source=TimeSource.EXPLICIT_24H, am_pm_decision=resolved[1],
                        day_part=day_part,
                    )
                    mentions.insert(index + 1, chained)
                    occupied.append((chained.start, chained.end))
                    chained_starts.add(chained.start)
            index += 1

        return mentions

    def _continues_chain(self, text: str, match: re.Match, after_chained: bool) -> bool:
        """Whether a number after a separator is another clock time.

        "plkst 10, 2 tabletes" names a count, "9, 10 un 11 iedzert" does
        not. The number needs its own marker or qualifier, a following
        boundary, or has to close an enumeration with a conjunction.
        """
        if match.group('marker') or match.group('qual'):
            return True
        if self.chain_boundary.match(text, match.end()):
            return True
        return after_chained and match.group('sep').strip() != ','

    def _mention_from_match(self, name: str, match: re.Match) -> Optional[TimeMention]:
        day_part = self._qualifier(match)
        start, end = match.span()

        if name.startswith('interval'):
            return self._interval_mention(match, day_part)

        if name == 'clock':
            hour, minute = int(match.group('h')), int(match.group('m'))
            if hour > 23 or minute > 59:
                return None
            # "07:30" and "19:30" are already on the 24-hour clock, "7:30" is not
            if match.group('h').startswith('0') or hour >= 13:
                return TimeMention(start, end, hour, minute, TimeSource.EXPLICIT_24H,
                                   literal=True, am_pm_decision="literal")
            resolved = self.disambiguate(hour, day_part)
            return TimeMention(start, end, resolved[0], minute, TimeSource.EXPLICIT_24H,
                               am_pm_decision=resolved[1], day_part=day_part)

        if name == 'half_hour':
            spoken = self.profile.half_hour_words[match.group('w').lower()] - 1
            resolved = self.disambiguate(spoken or 12, day_part)
            if resolved is None:
                return None
            return TimeMention(start, end, resolved[0], 30, TimeSource.WORD_HOUR,
                               am_pm_decision=resolved[1], day_part=day_part)

        if name == 'word_hour':
            resolved = self.disambiguate(self.profile.hour_words[match.group('w').lower()], day_part)
            if resolved is None:
                return None
            minute = parse_number(match.group('min'), self.profile.cardinals) if match.group('min') else 0
            if minute is None or minute > 59:
                minute = 0
                end = match.end('w')
            return TimeMention(start, end, resolved[0], minute, TimeSource.WORD_HOUR,
                               am_pm_decision=resolved[1], day_part=day_part)

        resolved = self.disambiguate(int(match.group('h')), day_part)
        if resolved is None:
            return None
        return TimeMention(start, end, resolved[0], 0, TimeSource.EXPLICIT_24H,
                           am_pm_decision=resolved[1], day_part=day_part)

    def _interval_mention(self, match: re.Match, day_part: Optional[DayPart]) -> Optional[TimeMention]:
        literal = bool(match.group('m1') or match.group('m2'))
        hours = []
        for hour_group, minute_group in (('h1', 'm1'), ('h2', 'm2')):
            hour = int(match.group(hour_group))
            minute = int(match.group(minute_group) or 0)
            if minute > 59:
                return None
            if literal:
                if hour > 23:
                    return None
                hours.append((hour, minute, "literal"))
                continue
            resolved = self.disambiguate(hour, day_part)
            if resolved is None:
                return None
            hours.append((resolved[0], minute, resolved[1]))

        (start_hour, start_minute, decision), (end_hour, end_minute, _) = hours
        if (end_hour, end_minute) <= (start_hour, start_minute):
            if end_hour + 12 <= 23:
                end_hour += 12
            else:
                end_hour = end_minute = None

        return TimeMention(
            match.start(), match.end(), start_hour, start_minute, TimeSource.EXPLICIT_24H,
            literal=literal, am_pm_decision=decision, end_hour=end_hour,
            end_minute=end_minute, day_part=day_part,
        )

    def find_day_parts(self, text: str) -> List[Tuple[Span, DayPart]]:
        text = text.lower()
        found = [
            (match.span(), part)
            for pattern, part in self.day_part_patterns
            for match in pattern.finditer(text)
        ]
        return sorted(found, key=lambda item: item[0])

    def resolve_time(self, text: str, date_context: Optional[DateResolution] = None,
                     mentions: Optional[List[TimeMention]] = None) -> Optional[TimeResolution]:
        """Resolve the clock time of masked text.

        An explicit ``HH:MM`` wins over everything, then the first spoken
        hour, then a day-part default. Returns None when none is present.
        """
        text = text.lower()
        mentions = self.find_mentions(text) if mentions is None else mentions
        if mentions:
            literal = [mention for mention in mentions if mention.literal]
            chosen = literal[0] if literal else mentions[0]
            return chosen.to_resolution(text)

        day_parts = self.find_day_parts(text)
        if day_parts:
            (start, end), part = day_parts[0]
            return TimeResolution(
                hour=part.default_hour,
                minute=0,
                source=TimeSource.DAY_PART_DEFAULT,
                confidence_bonus=TIME_BONUS,
                am_pm_decision="day_part_default",
                matched_text=text[start:end],
                span=(start, end),
            )

        if date_context is not None:
            self.logger.debug(f"No clock time found ({date_context.derivation.value} date)")
        return None


class TemporalExtractor:
    """Date plus time extraction for one language."""

    def __init__(self, profile: LanguageProfile):
        self.profile = profile
        self.logger = LoggingManager.get_logger(__name__)
        self.date_resolver = DateResolver(profile)
        self.time_resolver = TimeResolver(profile)
        self.marker_pattern = re.compile(rf'\b(?:{profile.time_markers})(?!\w)', re.IGNORECASE)

    def extract(self, text: str, now: datetime) -> TemporalExtraction:
        """Resolve date and time of ``text`` relative to ``now``."""
        lowered = text.lower()
        date_resolution = self.date_resolver.resolve_date(lowered, now)
        consumed = self.date_resolver.consumed_spans(lowered, now)
        masked = mask_spans(lowered, consumed)

        mentions = self.time_resolver.find_mentions(masked)
        time_resolution = self.time_resolver.resolve_time(masked, date_resolution, mentions)
        date_resolution = self.reconcile_weekday(date_resolution, time_resolution, now)

        self.logger.debug(
            f"Temporal extraction: date={date_resolution.base_date} "
            f"({date_resolution.derivation.value}), "
            f"time={'%02d:%02d' % (time_resolution.hour, time_resolution.minute) if time_resolution else None}, "
            f"mentions={len(mentions)}"
        )

        return TemporalExtraction(
            text=lowered,
            masked_text=masked,
            date=date_resolution,
            time=time_resolution,
            mentions=mentions,
            consumed_spans=consumed,
        )

    @staticmethod
    def reconcile_weekday(date_resolution: DateResolution, time_resolution: Optional[TimeResolution],
                          now: datetime) -> DateResolution:
        """Roll a same-day weekday to next week once its time has passed.

        A day-part default counts as a time. Without any time the date
        stays today.
        """
        if (date_resolution.derivation != DateDerivation.WEEKDAY
                or not date_resolution.metadata.get("same_day")
                or time_resolution is None):
            return date_resolution

        candidate = combine(date_resolution.base_date, time_resolution.hour,
                            time_resolution.minute, now.tzinfo)
        if candidate >= now:
            return date_resolution

        metadata = dict(date_resolution.metadata, offset_days=7, rolled_over=True)
        return DateResolution(
            base_date=date_resolution.base_date + timedelta(days=7),
            derivation=date_resolution.derivation,
            metadata=metadata,
            matched_text=date_resolution.matched_text,
            spans=date_resolution.spans,
        )

    def temporal_spans(self, text: str, now: datetime) -> List[Span]:
        """Every date or time phrase in ``text``, merged, so list items never include one."""
        lowered = text.lower()
        spans = self.date_resolver.consumed_spans(lowered, now)
        masked = mask_spans(lowered, spans)
        spans = spans + self.date_resolver.date_word_spans(lowered)
        spans.extend((mention.start, mention.end) for mention in self.time_resolver.find_mentions(masked))
        spans.extend(span for span, _ in self.time_resolver.find_day_parts(masked))
        spans.extend(match.span() for match in self.marker_pattern.finditer(masked))
        return merge_spans(spans)

    def resolved_spans(self, extraction: TemporalExtraction) -> List[Span]:
        """Spans the resolved date and time were read from.

        Other date or time phrases stay in the text. A time marker with no
        number after it is included, it never carries task content.
        """
        spans = list(extraction.date.spans)
        if extraction.time is not None and extraction.time.span is not None:
            spans.append(extraction.time.span)

        mention_spans = [(mention.start, mention.end) for mention in extraction.mentions]
        for match in self.marker_pattern.finditer(extraction.masked_text):
            if not _overlaps(match.start(), match.end(), mention_spans):
                spans.append(match.span())
        return merge_spans(spans)


def combine(day: date, hour: int, minute: int, tz) -> datetime:
    """Wall-clock datetime in ``tz``."""
    return datetime.combine(day, time(hour, minute), tzinfo=tz)
