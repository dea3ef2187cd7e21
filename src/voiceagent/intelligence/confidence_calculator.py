"""Confidence Calculator for fast-path resolutions

Additive scoring: a fixed base plus a bonus for every signal the parser
found, capped below certainty so the teacher can still be consulted on a
configured threshold.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict

from ..core.logging_manager import LoggingManager


class ConfidenceLevel(Enum):
    """Confidence level categories."""
    HIGH = "high"        # 0.93-0.95
    MEDIUM = "medium"    # 0.88-0.92
    LOW = "low"          # below 0.88


class ConfidenceFactor(Enum):
    """Signals that raise confidence."""
    HAS_TIME = "has_time"
    HAS_DAY = "has_day"
    HAS_TYPE = "has_type"


@dataclass
class ConfidenceRecord:
    """Score breakdown for one parse."""
    base: float
    bonuses: Dict[ConfidenceFactor, float] = field(default_factory=dict)
    cap: float = 0.95

    @property
    def score(self) -> float:
        return round(min(self.cap, self.base + sum(self.bonuses.values())), 2)

    @property
    def level(self) -> ConfidenceLevel:
        if self.score >= 0.93:
            return ConfidenceLevel.HIGH
        if self.score >= 0.88:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW


class ConfidenceCalculator:
    """Scores a parse from the presence of a time, a day and an explicit type."""

    BASE = 0.85
    CAP = 0.95
    FACTOR_BONUSES = {
        ConfidenceFactor.HAS_TIME: 0.07,
        ConfidenceFactor.HAS_DAY: 0.05,
        ConfidenceFactor.HAS_TYPE: 0.03,
    }

    def __init__(self):
        self.logger = LoggingManager.get_logger(__name__)

    def score(self, has_time: bool, has_day: bool, has_type: bool) -> ConfidenceRecord:
        signals = {
            ConfidenceFactor.HAS_TIME: has_time,
            ConfidenceFactor.HAS_DAY: has_day,
            ConfidenceFactor.HAS_TYPE: has_type,
        }
        record = ConfidenceRecord(
            base=self.BASE,
            bonuses={factor: self.FACTOR_BONUSES[factor] for factor, present in signals.items() if present},
            cap=self.CAP,
        )
        self.logger.debug(
            f"Confidence {record.score:.2f} ({record.level.value}); "
            f"factors: {', '.join(factor.value for factor in record.bonuses) or 'none'}"
        )
        return record
