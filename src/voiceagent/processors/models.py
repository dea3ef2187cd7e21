"""Typed results produced by the resolution pipeline.

``ParsedAction`` and ``MultiAction`` are what callers receive. The
intermediate ``DateResolution`` and ``TimeResolution`` records are owned by
a single parse call and never shared between requests.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from dateutil import parser as date_parser


class ActionKind(Enum):
    """Action types a single utterance can resolve to."""
    REMINDER = "reminder"
    CALENDAR = "calendar"
    SHOPPING = "shopping"
    CALL_CONTACT = "call_contact"
    MULTIPLE = "multiple"


class DateDerivation(Enum):
    """How the base date of an utterance was derived (first match wins)."""
    RELATIVE_DAY = "relative_day"        # šodien, rīt, parīt
    WEEKDAY = "weekday"                  # piektdien
    NEXT_WEEK = "next_week"              # nākamajā nedēļā [piektdien]
    RELATIVE_TIME = "relative_time"      # pēc 10 minūtēm
    SPECIFIC_DATE = "specific_date"      # 7. novembrī, septītajā novembrī
    DEFAULT = "default"                  # nothing matched, today


class TimeSource(Enum):
    """Where a resolved clock time came from."""
    EXPLICIT_24H = "explicit_24h"
    WORD_HOUR = "word_hour"
    DAY_PART_DEFAULT = "day_part_default"


@dataclass
class DateResolution:
    """Base date plus the single derivation that produced it."""
    base_date: date
    derivation: DateDerivation
    metadata: Dict[str, Any] = field(default_factory=dict)
    instant: Optional[datetime] = None  # set only for RELATIVE_TIME
    matched_text: Optional[str] = None
    spans: List[Tuple[int, int]] = field(default_factory=list)

    @property
    def is_today(self) -> bool:
        return self.derivation == DateDerivation.DEFAULT

    @property
    def has_day(self) -> bool:
        return self.derivation != DateDerivation.DEFAULT


@dataclass
class TimeResolution:
    """Resolved clock time, optionally the start of an interval."""
    hour: int
    minute: int
    source: TimeSource
    confidence_bonus: float = 0.07
    am_pm_decision: Optional[str] = None
    end_hour: Optional[int] = None
    end_minute: Optional[int] = None
    matched_text: Optional[str] = None
    span: Optional[Tuple[int, int]] = None

    def __post_init__(self):
        if not 0 <= self.hour <= 23 or not 0 <= self.minute <= 59:
            raise ValueError(f"Invalid clock time {self.hour}:{self.minute}")

    @property
    def has_interval(self) -> bool:
        return self.end_hour is not None


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = date_parser.isoparse(value)
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp without UTC offset: {value}")
    return parsed


def _parse_items(value: Any) -> Optional[List[str]]:
    if value is None or value == "":
        return None
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return [item.strip() for item in str(value).split(',') if item.strip()]


@dataclass
class ParsedAction:
    """A single resolved task."""
    kind: ActionKind
    description: str
    language: str
    notes: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    has_time: bool = False
    items: Optional[List[str]] = None
    contact_name: Optional[str] = None
    contact_normalized: Optional[str] = None
    corrected_input: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the wire shape returned to API callers."""
        return {
            "type": self.kind.value,
            "description": self.description,
            "notes": self.notes,
            "start": _format_timestamp(self.start),
            "end": _format_timestamp(self.end),
            "hasTime": self.has_time,
            "items": ", ".join(self.items) if self.items else None,
            "contact_name": self.contact_name,
            "contact_normalized": self.contact_normalized,
            "lang": self.language,
            "corrected_input": self.corrected_input,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_language: str = "lv") -> 'ParsedAction':
        """Build an action from the wire shape.

        Raises:
            ValueError: On an unknown type or a timestamp without offset
        """
        kind = ActionKind(data.get("type", "reminder"))
        if kind == ActionKind.MULTIPLE:
            raise ValueError("A multiple payload must be parsed with MultiAction.from_dict")

        return cls(
            kind=kind,
            description=data.get("description") or "",
            language=data.get("lang") or default_language,
            notes=data.get("notes") or None,
            start=_parse_timestamp(data.get("start")),
            end=_parse_timestamp(data.get("end")),
            has_time=bool(data.get("hasTime", False)),
            items=_parse_items(data.get("items")),
            contact_name=data.get("contact_name") or None,
            contact_normalized=data.get("contact_normalized") or None,
            corrected_input=data.get("corrected_input") or None,
        )


@dataclass
class MultiAction:
    """Several reminders detected in one utterance."""
    tasks: List[ParsedAction]
    corrected_input: Optional[str] = None

    kind = ActionKind.MULTIPLE

    def __post_init__(self):
        if len(self.tasks) < 2:
            raise ValueError("A multiple action needs at least two tasks")
        if any(task.kind != ActionKind.REMINDER for task in self.tasks):
            raise ValueError("Only reminders can be grouped into a multiple action")

    @property
    def language(self) -> str:
        return self.tasks[0].language

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": ActionKind.MULTIPLE.value,
            "tasks": [task.to_dict() for task in self.tasks],
        }
        if self.corrected_input:
            payload["corrected_input"] = self.corrected_input
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_language: str = "lv") -> 'MultiAction':
        tasks = [ParsedAction.from_dict(task, default_language) for task in data.get("tasks") or []]
        return cls(tasks=tasks, corrected_input=data.get("corrected_input") or None)


Resolution = Union[ParsedAction, MultiAction]


def action_from_dict(data: Dict[str, Any], default_language: str = "lv") -> Resolution:
    """Parse either wire shape into its typed form."""
    if data.get("type") == ActionKind.MULTIPLE.value:
        return MultiAction.from_dict(data, default_language)
    return ParsedAction.from_dict(data, default_language)
