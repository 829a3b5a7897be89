"""Query complexity classification.

The tier only exists to keep multi-term pattern predicates away from queries
the datastore's pattern-complexity limiter would reject.
"""

from __future__ import annotations

from tripsearch.config import ResolverConfig
from tripsearch.domain import ComplexityTier


def classify_complexity(normalized: str, config: ResolverConfig) -> ComplexityTier:
    """Tier from whitespace token count and total length.

    Stop words are counted: they are dropped from the weighted terms but still
    make a full-query pattern wider. Both inputs grow along any prefix of the
    query, so the result is monotone in the query.
    """
    tokens = len(normalized.split())
    length = len(normalized)

    if tokens >= config.complex_min_tokens or length >= config.complex_min_length:
        return ComplexityTier.COMPLEX
    if tokens >= config.moderate_min_tokens or length >= config.moderate_min_length:
        return ComplexityTier.MODERATE
    return ComplexityTier.SIMPLE
