"""Intent Classifier for spoken task requests

Decides whether an utterance is a reminder, a calendar entry, a shopping
list or a request to call someone. Rules are evaluated in a fixed order and
the first one that fires decides the action kind.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..core.logging_manager import LoggingManager
from ..processors.core.contact_normalizer import ContactNormalizer
from ..processors.core.temporal_extractor import Span, TemporalExtraction, mask_spans
from ..processors.languages import LanguageProfile
from ..processors.models import ActionKind, DateDerivation


MAX_NAME_TOKENS = 3
TOKEN_PUNCTUATION = ',.;:!?"\'()'


@dataclass
class IntentMatch:
    """Classified intent with the evidence that decided it."""
    kind: ActionKind
    rule: str
    evidence: List[str] = field(default_factory=list)
    items: Optional[List[str]] = None
    contact_name: Optional[str] = None
    contact_normalized: Optional[str] = None
    call_span: Optional[Span] = None
    is_inbox: bool = False
    note_label: Optional[str] = None
    note_span: Optional[Span] = None
    needs_context: bool = False

    @property
    def has_type(self) -> bool:
        """True when a specific rule, not the fallback, decided the kind."""
        return self.rule != "default"


class IntentClassifier:
    """Rule-based intent classifier for one language."""

    def __init__(self, profile: LanguageProfile, contact_normalizer: Optional[ContactNormalizer] = None):
        self.profile = profile
        self.logger = LoggingManager.get_logger(__name__)
        self.contact_normalizer = contact_normalizer or ContactNormalizer()
        self.patterns = self._build_intent_patterns()
        self.shopping_patterns = [
            (re.compile(pattern, re.IGNORECASE), min_items)
            for pattern, min_items in profile.shopping_triggers
        ]
        self.context_patterns = [
            re.compile(pattern, re.IGNORECASE) for pattern in profile.needs_context_phrases
        ]

    def _build_intent_patterns(self):
        """Compile the per-rule trigger patterns.

        Returns:
            Dictionary mapping rule names to compiled regexes
        """
        profile = self.profile
        flags = re.IGNORECASE
        return {
            "remind_trigger": re.compile(profile.remind_triggers, flags),
            "call_contact": re.compile(profile.call_verbs, flags),
            "event_noun": re.compile(profile.event_nouns, flags),
            "known_place": re.compile(profile.known_places, flags),
            "note_trigger": re.compile(profile.note_triggers, flags),
            "item_separator": re.compile(profile.item_separator, flags),
            "list_fillers": re.compile(profile.list_fillers, flags),
        }

    def classify(self, text: str, temporal: TemporalExtraction,
                 temporal_spans: Optional[List[Span]] = None) -> IntentMatch:
        """Classify normalized ``text``.

        Args:
            text: Normalized utterance with its original casing
            temporal: Temporal reading of the same text
            temporal_spans: Date and time phrases, excluded from list items

        Returns:
            IntentMatch for the first rule that fired
        """
        match = self._classify(text, temporal, temporal_spans or [])
        match.needs_context = any(pattern.search(text) for pattern in self.context_patterns)
        self.logger.debug(f"Intent {match.kind.value} via {match.rule} for {text!r}")
        return match

    def _classify(self, text: str, temporal: TemporalExtraction, temporal_spans: List[Span]) -> IntentMatch:
        trigger = self.patterns["remind_trigger"].search(text)
        if trigger:
            return IntentMatch(ActionKind.REMINDER, "remind_trigger", evidence=[trigger.group(0)])

        call = self._match_call(text)
        if call:
            return call

        event = self.patterns["event_noun"].search(text)
        if event:
            return IntentMatch(ActionKind.CALENDAR, "event_noun", evidence=[event.group(0)])

        has_temporal = temporal.time is not None or temporal.date.derivation != DateDerivation.DEFAULT
        place = self._find_place(text)
        if place and has_temporal:
            return IntentMatch(ActionKind.CALENDAR, "location", evidence=[place])

        shopping = self._match_shopping(text, temporal_spans)
        if shopping:
            return shopping

        note = self.patterns["note_trigger"].search(text)
        if note and not has_temporal:
            label, label_end = self._note_label(text)
            return IntentMatch(
                ActionKind.REMINDER, "note", evidence=[note.group(0)], is_inbox=True,
                note_label=label, note_span=(note.start(), max(note.end(), label_end)),
            )

        return IntentMatch(ActionKind.REMINDER, "default")

    def _match_call(self, text: str) -> Optional[IntentMatch]:
        """Call verb followed by a person: capitalised name or relation word."""
        verb = self.patterns["call_contact"].search(text)
        if not verb:
            return None

        tokens = self._tokens_after(text, verb.end())
        relation: Optional[Tuple[str, int]] = None
        names: List[Tuple[str, int]] = []

        for token, end in tokens:
            lowered = token.lower()
            if names:
                if token[0].isupper() and len(names) < MAX_NAME_TOKENS and not self._is_day_word(lowered):
                    names.append((token, end))
                    continue
                break
            if token[0].isupper() and not self._is_day_word(lowered):
                names.append((token, end))
            elif lowered in self.profile.relation_words and relation is None:
                relation = (token, end)
            else:
                break

        # A name after a role word ("klientam Jānim") is the contact
        contact = names or ([relation] if relation else [])
        if not contact:
            return None

        contact_name = ' '.join(token for token, _ in contact)
        return IntentMatch(
            ActionKind.CALL_CONTACT,
            "call_contact",
            evidence=[verb.group(0), contact_name],
            contact_name=contact_name,
            contact_normalized=self.contact_normalizer.normalize_name(contact_name, self.profile),
            call_span=(verb.start(), contact[-1][1]),
        )

    @staticmethod
    def _tokens_after(text: str, position: int) -> List[Tuple[str, int]]:
        tokens = []
        for match in re.finditer(r'\S+', text[position:]):
            token = match.group(0).strip(TOKEN_PUNCTUATION)
            if not token:
                continue
            tokens.append((token, position + match.start() + len(match.group(0).rstrip(TOKEN_PUNCTUATION))))
            if match.group(0)[-1] in ',;:!?':
                break
        return tokens

    def _is_day_word(self, lowered: str) -> bool:
        return any(
            lowered == word if word in self.profile.relative_days else lowered.startswith(word)
            for word in self.profile.day_words()
        )

    def _find_place(self, text: str) -> Optional[str]:
        """Known venue, or a capitalised locative such as "Rīgā"."""
        known = self.patterns["known_place"].search(text)
        if known:
            return known.group(0)

        for index, match in enumerate(re.finditer(r'\S+', text)):
            token = match.group(0).strip(TOKEN_PUNCTUATION)
            if index == 0 or len(token) < 3 or not token[0].isupper():
                continue
            if self._is_day_word(token.lower()):
                continue
            if any(token.lower().endswith(suffix) for suffix in self.profile.locative_suffixes):
                return token
        return None

    def _match_shopping(self, text: str, temporal_spans: List[Span]) -> Optional[IntentMatch]:
        masked = mask_spans(text, temporal_spans)
        for pattern, min_items in self.shopping_patterns:
            trigger = pattern.search(masked)
            if not trigger:
                continue
            items = self.split_items(masked[trigger.end():])
            if len(items) >= min_items:
                return IntentMatch(
                    ActionKind.SHOPPING, "shopping", evidence=[trigger.group(0)], items=items,
                )
        return None

    def split_items(self, payload: str) -> List[str]:
        """Split a list payload on commas and conjunctions, keeping item wording."""
        payload = re.sub(r'\s+', ' ', payload).strip(' ,.;:!?')
        payload = self.patterns["list_fillers"].sub('', payload)
        items = []
        for item in self.patterns["item_separator"].split(payload):
            item = item.strip(' ,.;:!?')
            if item:
                items.append(item)
        return items

    def _note_label(self, text: str) -> Tuple[Optional[str], int]:
        """Label for the first note noun and the offset where it ends."""
        for match in re.finditer(r'\w+', text.lower()):
            if match.group(0) in self.profile.note_nouns:
                return self.profile.note_nouns[match.group(0)], match.end()
        return None, 0
