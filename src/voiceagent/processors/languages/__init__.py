"""Per-language vocabulary tables.

Each supported language contributes one ``LanguageProfile``. Unknown
language codes resolve to a neutral profile with no normalization rules, so
normalization is the identity while parsing still uses the default
language's vocabulary.
"""

from dataclasses import replace
from typing import Dict, Optional

from .base import ComputedRule, DayPart, LanguageProfile, LiteralRule, NormalizationRule
from . import estonian, latvian

PROFILES: Dict[str, LanguageProfile] = {
    latvian.PROFILE.code: latvian.PROFILE,
    estonian.PROFILE.code: estonian.PROFILE,
}

DEFAULT_LANGUAGE = latvian.PROFILE.code


def supported_languages():
    return sorted(PROFILES)


def get_language_profile(language: Optional[str], default: str = DEFAULT_LANGUAGE) -> LanguageProfile:
    """Return the profile for ``language``.

    Unsupported codes get the default language's vocabulary with the
    normalization rules stripped and the requested code preserved.
    """
    code = (language or default).strip().lower()
    if code in PROFILES:
        return PROFILES[code]
    return replace(PROFILES[default], code=code, normalization_rules=())


__all__ = [
    "ComputedRule",
    "DayPart",
    "LanguageProfile",
    "LiteralRule",
    "NormalizationRule",
    "PROFILES",
    "DEFAULT_LANGUAGE",
    "get_language_profile",
    "supported_languages",
]
