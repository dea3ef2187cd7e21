"""Text Normalizer

Corrects recurring speech-to-text errors before any parsing happens. Each
language contributes an ordered list of rules; every rule runs on the output
of the previous one, so an early fix can enable a later one.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from ...core.logging_manager import LoggingManager
from ..languages import ComputedRule, LanguageProfile, LiteralRule, get_language_profile
from ..languages.base import match_case


@dataclass
class NormalizationResult:
    """Outcome of a normalization pass."""
    original_text: str
    normalized_text: str
    applied_rules: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.normalized_text != self.original_text

    @property
    def corrected_input(self) -> Optional[str]:
        """The corrected text when any rule fired, otherwise None."""
        return self.normalized_text if self.changed else None

    def describe(self) -> Optional[str]:
        """Human-readable before/after pair, or None when nothing changed."""
        if not self.changed:
            return None
        return f'"{self.original_text}" -> "{self.normalized_text}" ({", ".join(self.applied_rules)})'


class TextNormalizer:
    """Applies per-language substitution rules in a single dispatch loop."""

    def __init__(self):
        self.logger = LoggingManager.get_logger(__name__)
        self._compiled = {}

    def normalize(self, text: str, language) -> NormalizationResult:
        """Normalize ``text`` for ``language`` (a code or a profile).

        Unknown language codes have no rules, so the text comes back as is.
        """
        profile = language if isinstance(language, LanguageProfile) else get_language_profile(language)
        result = NormalizationResult(original_text=text, normalized_text=text)

        current = text
        for rule in profile.normalization_rules:
            pattern = self._compile(rule.pattern)

            if isinstance(rule, LiteralRule):
                def substitute(match, rule=rule):
                    if rule.preserve_case:
                        return match_case(match.group(0), rule.replacement)
                    return rule.replacement
            elif isinstance(rule, ComputedRule):
                def substitute(match, rule=rule):
                    replacement = rule.compute(match)
                    if rule.preserve_case:
                        return match_case(match.group(0), replacement)
                    return replacement
            else:
                raise TypeError(f"Unsupported normalization rule: {rule!r}")

            updated, count = pattern.subn(substitute, current)
            if count and updated != current:
                result.applied_rules.append(rule.name)
                current = updated

        result.normalized_text = current
        if result.changed:
            self.logger.debug(f"Normalized input: {result.describe()}")
        return result

    def _compile(self, pattern: str) -> re.Pattern:
        compiled = self._compiled.get(pattern)
        if compiled is None:
            compiled = re.compile(pattern, re.IGNORECASE)
            self._compiled[pattern] = compiled
        return compiled
