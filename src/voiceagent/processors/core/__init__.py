"""Core text processors

Language-aware building blocks of the fast-path parser: normalization,
temporal extraction, display cleaning and contact name normalization.
"""

from .text_normalizer import TextNormalizer, NormalizationResult
from .temporal_extractor import (
    DateResolver,
    TemporalExtraction,
    TemporalExtractor,
    TimeMention,
    TimeResolver,
)
from .display_cleaner import DisplayCleaner, CleaningResult
from .contact_normalizer import ContactNormalizer

__all__ = [
    "TextNormalizer",
    "NormalizationResult",
    "DateResolver",
    "TimeResolver",
    "TimeMention",
    "TemporalExtractor",
    "TemporalExtraction",
    "DisplayCleaner",
    "CleaningResult",
    "ContactNormalizer",
]
