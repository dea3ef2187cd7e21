"""Text processors

Language tables, the typed action model and the building blocks of the
fast-path parser.
"""

from .models import (
    ActionKind,
    DateDerivation,
    DateResolution,
    MultiAction,
    ParsedAction,
    Resolution,
    TimeResolution,
    TimeSource,
    action_from_dict,
)
from .languages import get_language_profile, supported_languages

__all__ = [
    "ActionKind",
    "DateDerivation",
    "DateResolution",
    "MultiAction",
    "ParsedAction",
    "Resolution",
    "TimeResolution",
    "TimeSource",
    "action_from_dict",
    "get_language_profile",
    "supported_languages",
]
