"""Query normalization and weighted term selection.

Everything here is pure: no I/O, so it runs before any datastore call.
"""

from __future__ import annotations

import re

from tripsearch.config import ResolverConfig
from tripsearch.config.patterns import (
    EMAIL_PATTERN,
    KNOWN_DESCRIPTORS,
    KNOWN_LOCATIONS,
    PROPER_NOUN_PATTERN,
)
from tripsearch.domain import StrategyHint, WeightedTerm
from tripsearch.domain.results import TermReason

_AMPERSAND = re.compile(r"\s*[&+]\s*")
_SLASH = re.compile(r"\s*/\s*")
_SEPARATORS = re.compile(r"[,;:]")
_DISALLOWED = re.compile(r"[^\w\s@.-]")
_DASHES = re.compile(r"\s*-\s*")
_LOOSE_PERIOD = re.compile(r"(?<![\w])\.|\.(?![\w])")
_WHITESPACE = re.compile(r"\s+")

_NAME_PAIR_PATTERNS = (
    re.compile(r"^(\w+)\s*(?:&|\+|\s+and\s+)\s*(\w+)", re.IGNORECASE),
    re.compile(r"^(\w+)\s*[,/]\s*(\w+)", re.IGNORECASE),
    re.compile(r"^(\w+)\s+(\w+)\s+(?:and|&)\s+(\w+)", re.IGNORECASE),
    re.compile(r"^(\w+)\s+(?:and|&)\s+(\w+)\s+(\w+)", re.IGNORECASE),
)

_WEIGHTS: dict[str, float] = {
    "email": 3.0,
    "code": 2.5,
    "name": 2.0,
    "location": 1.5,
    "descriptor": 1.3,
    "long_word": 1.2,
    "generic": 1.0,
}

LONG_WORD_LENGTH = 5


def _clean(text: str) -> str:
    """Punctuation normalization without case folding."""
    text = _AMPERSAND.sub(" and ", text)
    text = _SLASH.sub(" or ", text)
    text = _SEPARATORS.sub(" ", text)
    text = _DISALLOWED.sub("", text)
    text = _DASHES.sub(" ", text)
    text = _LOOSE_PERIOD.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def normalize_search_term(text: str) -> str:
    """Lower-case and unify punctuation variants ("&" and "and", "/" and "or").

    >>> normalize_search_term("Sara & Darren, Bristol/Bath")
    'sara and darren bristol or bath'
    """
    return _clean(text.lower())


def _weigh(token: str, lowered: str, shouting: bool) -> tuple[float, TermReason]:
    if EMAIL_PATTERN.match(lowered):
        return _WEIGHTS["email"], "identifier"
    if any(ch.isdigit() for ch in token):
        return _WEIGHTS["code"], "identifier"
    if not shouting and token.isupper() and 2 <= len(token) <= 5:
        return _WEIGHTS["code"], "identifier"
    if PROPER_NOUN_PATTERN.match(token):
        return _WEIGHTS["name"], "name"
    if lowered in KNOWN_LOCATIONS:
        return _WEIGHTS["location"], "location"
    if lowered in KNOWN_DESCRIPTORS:
        return _WEIGHTS["descriptor"], "descriptor"
    if len(lowered) >= LONG_WORD_LENGTH and lowered.isalpha():
        return _WEIGHTS["long_word"], "long_word"
    return _WEIGHTS["generic"], "generic"


def select_weighted_terms(
    raw: str,
    stop_words: frozenset[str],
    *,
    max_terms: int = 3,
    min_length: int = 2,
) -> tuple[WeightedTerm, ...]:
    """Pick the most distinctive tokens of a raw query.

    Args:
        raw: Query exactly as the caller typed it (case is a signal)
        stop_words: Generic words never used as terms
        max_terms: Cap on returned terms
        min_length: Shorter tokens are dropped

    Returns:
        Terms sorted by weight descending, ties by original position
    """
    tokens = _clean(raw).split()
    # An all-caps query carries no signal in its casing
    shouting = raw.isupper()

    seen: set[str] = set()
    candidates: list[WeightedTerm] = []
    for position, token in enumerate(tokens):
        lowered = token.lower().strip(".")
        if len(lowered) < min_length or lowered in stop_words or lowered in seen:
            continue
        seen.add(lowered)
        weight, reason = _weigh(token, lowered, shouting)
        candidates.append(WeightedTerm(lowered, weight, reason, position))

    candidates.sort(key=lambda t: (-t.weight, t.position))
    return tuple(candidates[:max_terms])


def optimize_terms(raw: str, config: ResolverConfig) -> tuple[WeightedTerm, ...]:
    return select_weighted_terms(
        raw,
        config.stop_words,
        max_terms=config.max_search_terms,
        min_length=config.min_term_length,
    )


def spelling_variants(raw: str) -> list[str]:
    """Spellings of the same query that should resolve identically:
    as typed, normalized, and with "and" written as "&"."""
    normalized = normalize_search_term(raw)
    spellings = [raw.strip(), normalized, normalized.replace(" and ", " & ")]
    return [s for s in dict.fromkeys(spellings) if s]


def search_variations(raw: str) -> list[str]:
    """Spelling variants plus looser rewrites and split name pairs.

    >>> search_variations("Sara and Darren")[-2:]
    ['sara', 'darren']
    """
    normalized = normalize_search_term(raw)
    variations = [
        *spelling_variants(raw),
        normalized.replace(" and ", " "),
        normalized.replace(" or ", " "),
    ]
    for pattern in _NAME_PAIR_PATTERNS:
        match = pattern.match(raw.strip())
        if not match:
            continue
        names = [g.lower() for g in match.groups() if g]
        variations.extend(names)
        variations.append(f"{names[0]} {names[1]}")
        if len(names) == 3:
            variations.append(f"{names[0]} {names[2]}")
            variations.append(f"{names[1]} {names[2]}")
    return [v for v in dict.fromkeys(variations) if v]


def derive_strategy_hint(raw: str) -> StrategyHint:
    stripped = raw.strip()
    if stripped.isdigit():
        return StrategyHint.EXACT
    if any(EMAIL_PATTERN.match(word.lower()) for word in stripped.split()):
        return StrategyHint.EXACT
    if len(stripped.split()) > 4:
        return StrategyHint.BROAD
    return StrategyHint.FUZZY
