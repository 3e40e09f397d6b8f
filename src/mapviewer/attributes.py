"""Attribute resolution across inconsistently named dataset schemas.

Datasets from different sources spell the same field differently
("DPA_DESPRO" vs "PROVINCIA", "Total estu" vs "TOTAL_ESTU").  Callers list
candidate keys from most to least canonical and ``resolve`` returns the first
one that carries a real value.
"""

from __future__ import annotations

import enum
import math
import re
import unicodedata
from typing import Any, Mapping, Sequence

AFFIRMATIVE_WORDS = frozenset({"si", "sí", "s", "y", "yes", "true", "1"})
NEGATIVE_WORDS = frozenset({"no", "n"})

_WHITESPACE = re.compile(r"\s+")


class Flag(enum.Enum):
    """Classification of a yes/no attribute."""

    AFFIRMATIVE = "affirmative"
    NEGATIVE = "negative"
    NEITHER = "neither"


def resolve(attributes: Mapping[str, Any] | None, candidates: Sequence[str]) -> Any:
    """Return the first candidate value that is present and not blank.

    Args:
        attributes: Feature attribute mapping (may be None).
        candidates: Field names, most canonical first.

    Returns:
        The raw value of the first key whose trimmed string form is
        non-empty, or None when no candidate resolves.
    """
    if not attributes:
        return None
    for key in candidates:
        if key not in attributes:
            continue
        value = attributes[key]
        if value is None:
            continue
        if str(value).strip() == "":
            continue
        return value
    return None


def to_number(value: Any) -> float | None:
    """Coerce an attribute to a finite float.

    Strings may use a comma as decimal separator and contain stray
    whitespace.  Booleans, non-numeric text and non-finite values give None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = _WHITESPACE.sub("", str(value).replace(",", "."))
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def _fold(value: Any) -> str:
    text = unicodedata.normalize("NFKD", str(value).strip().lower())
    return "".join(ch for ch in text if not unicodedata.combining(ch))


_AFFIRMATIVE_FOLDED = frozenset(_fold(word) for word in AFFIRMATIVE_WORDS)
_NEGATIVE_FOLDED = frozenset(_fold(word) for word in NEGATIVE_WORDS)


def classify_flag(value: Any) -> Flag:
    """Classify a yes/no attribute, ignoring case, accents and padding."""
    if isinstance(value, Flag):
        return value
    if value is None:
        return Flag.NEITHER
    folded = _fold(value)
    if folded in _AFFIRMATIVE_FOLDED:
        return Flag.AFFIRMATIVE
    if folded in _NEGATIVE_FOLDED:
        return Flag.NEGATIVE
    return Flag.NEITHER


def is_affirmative(value: Any) -> bool:
    return classify_flag(value) is Flag.AFFIRMATIVE


def combine_flags(values: Sequence[Any]) -> Flag:
    """Fold several flags into one: affirmative only when every flag is."""
    if values and all(classify_flag(v) is Flag.AFFIRMATIVE for v in values):
        return Flag.AFFIRMATIVE
    return Flag.NEGATIVE
