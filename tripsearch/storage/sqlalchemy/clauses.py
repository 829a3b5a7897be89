"""Weighted multi-term match predicates.

The datastore rejects LIKE patterns it considers too complex, so every
predicate built here is bounded: at most ``max_terms`` terms, each embedded in
exactly one ``%term%`` pattern no longer than ``max_pattern_length``
characters, with LIKE metacharacters escaped.
"""

from __future__ import annotations

import operator
import re
from collections.abc import Sequence
from dataclasses import dataclass
from functools import reduce

from sqlalchemy import ColumnElement, case, or_

LIKE_ESCAPE = "\\"

_LIKE_SPECIAL = re.compile(r"([%_\\])")


def escape_like(term: str) -> str:
    """Escape LIKE metacharacters so the term matches literally."""
    return _LIKE_SPECIAL.sub(r"\\\1", term)


def contains_pattern(term: str) -> str:
    return f"%{escape_like(term)}%"


@dataclass(frozen=True)
class WeightedClause:
    """A bounded match predicate plus the expressions used to rank rows.

    Attributes:
        terms: Terms actually used, after capping and de-duplication
        patterns: Bound LIKE parameters, one per term
        predicate: Each term contributes an OR-branch over the columns
        match_count: Number of terms matched by a row
        column_rank: 1-based index of the highest-priority column matching
            any term (len(columns) + 1 when none does)
    """

    terms: tuple[str, ...]
    patterns: tuple[str, ...]
    predicate: ColumnElement[bool]
    match_count: ColumnElement[int]
    column_rank: ColumnElement[int]


def build_weighted_clause(
    terms: Sequence[str],
    columns: Sequence[ColumnElement[str]],
    *,
    max_terms: int = 3,
    max_pattern_length: int = 48,
) -> WeightedClause:
    """Build a ranked OR-of-terms predicate over candidate text columns.

    Args:
        terms: Search terms, most important first
        columns: Candidate columns in priority order (highest first)
        max_terms: Hard cap on the number of terms embedded in the predicate
        max_pattern_length: Longest term kept inside a pattern

    Returns:
        WeightedClause ready to be used in a SELECT

    Raises:
        ValueError: If no usable term or no column is given
    """
    if not columns:
        raise ValueError("at least one column is required")

    kept: list[str] = []
    for term in terms:
        cleaned = term.strip().lower()[:max_pattern_length]
        if cleaned and cleaned not in kept:
            kept.append(cleaned)
        if len(kept) >= max_terms:
            break
    if not kept:
        raise ValueError("at least one non-empty term is required")

    patterns = tuple(contains_pattern(term) for term in kept)

    per_term = [
        or_(*(column.ilike(pattern, escape=LIKE_ESCAPE) for column in columns))
        for pattern in patterns
    ]
    match_count = reduce(
        operator.add,
        [case((condition, 1), else_=0) for condition in per_term],
    )
    column_rank = case(
        *[
            (
                or_(
                    *(column.ilike(pattern, escape=LIKE_ESCAPE) for pattern in patterns)
                ),
                rank,
            )
            for rank, column in enumerate(columns, start=1)
        ],
        else_=len(columns) + 1,
    )

    return WeightedClause(
        terms=tuple(kept),
        patterns=patterns,
        predicate=or_(*per_term),
        match_count=match_count,
        column_rank=column_rank,
    )
