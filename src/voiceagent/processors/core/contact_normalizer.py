"""Contact Name Normalizer

Maps inflected person names ("Jānim Bērziņam", "Jaanile") to the
nominative form used for contact lookup.
"""

from typing import Union

from ...core.logging_manager import LoggingManager
from ..languages import LanguageProfile, get_language_profile


MIN_STEM_LENGTH = 2


class ContactNormalizer:
    """Suffix-table normalization, applied token by token."""

    def __init__(self):
        self.logger = LoggingManager.get_logger(__name__)

    def normalize_name(self, name: str, language: Union[str, LanguageProfile]) -> str:
        """Return the nominative form of ``name``.

        Endings that are not in the language's table are left unchanged.
        """
        profile = language if isinstance(language, LanguageProfile) else get_language_profile(language)
        suffixes = sorted(profile.contact_suffixes, key=lambda pair: len(pair[0]), reverse=True)

        tokens = [self._normalize_token(token, suffixes) for token in name.split()]
        normalized = ' '.join(tokens)
        if normalized != name:
            self.logger.debug(f"Contact name {name!r} normalized to {normalized!r}")
        return normalized

    @staticmethod
    def _normalize_token(token: str, suffixes) -> str:
        lowered = token.lower()
        for ending, replacement in suffixes:
            if lowered.endswith(ending) and len(token) - len(ending) >= MIN_STEM_LENGTH:
                stem = token[:-len(ending)]
                if token.isupper():
                    replacement = replacement.upper()
                return stem + replacement
        return token
