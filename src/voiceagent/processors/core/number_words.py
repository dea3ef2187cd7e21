"""Reading numbers written as digits or as spelled-out words."""

import re
from typing import Dict, Optional

from ..languages.base import alternation


def number_pattern(cardinals: Dict[str, int]) -> str:
    """Regex for a digit run or one or two number words ("divdesmit piecām")."""
    words = alternation(cardinals)
    return rf'\d{{1,3}}|(?:{words})(?:\s+(?:{words}))?(?!\w)'


def parse_number(text: Optional[str], cardinals: Dict[str, int]) -> Optional[int]:
    """Value of a phrase matched by ``number_pattern``.

    Compound word numbers are additive (tens word followed by a unit word).
    Returns None when any token is not a known number.
    """
    if not text:
        return None

    text = text.strip().lower()
    if text.isdigit():
        return int(text)

    total = 0
    for token in re.split(r'\s+', text):
        if token not in cardinals:
            return None
        total += cardinals[token]
    return total


def parse_ordinal(tens: Optional[str], unit: str, ordinal_tens: Dict[str, int],
                  ordinals: Dict[str, int]) -> Optional[int]:
    """Day number of an ordinal phrase such as "divdesmit sestajā"."""
    value = ordinals.get(unit.lower())
    if value is None:
        return None
    if tens:
        prefix = ordinal_tens.get(tens.lower())
        if prefix is None or value >= 10:
            return None
        value += prefix
    return value
