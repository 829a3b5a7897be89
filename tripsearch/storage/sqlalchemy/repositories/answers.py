"""Repository for precomputed natural-key answers."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import ColumnElement, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tripsearch.data_models import AnswerDraft, PrecomputedAnswer
from tripsearch.domain.enums import ContextType
from tripsearch.storage.sqlalchemy.base import utc_now
from tripsearch.storage.sqlalchemy.clauses import build_weighted_clause
from tripsearch.storage.sqlalchemy.tables import PrecomputedAnswerTable

logger = logging.getLogger(__name__)

# Priority order used by rank: natural key > keyword index > full text
ANSWER_SEARCH_COLUMNS = ("natural_key", "search_keywords", "formatted_response")

_COLUMNS: dict[str, ColumnElement[str]] = {
    "natural_key": PrecomputedAnswerTable.natural_key,
    "search_keywords": PrecomputedAnswerTable.search_keywords,
    "formatted_response": PrecomputedAnswerTable.formatted_response,
}


class AnswerRepository:
    """Read, rank and refresh precomputed answers."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _current(now: datetime) -> ColumnElement[bool]:
        return (PrecomputedAnswerTable.is_active.is_(True)) & or_(
            PrecomputedAnswerTable.expires_at.is_(None),
            PrecomputedAnswerTable.expires_at > now,
        )

    @staticmethod
    def _most_recent_first() -> tuple[ColumnElement, ...]:
        # Never-accessed rows sort last on every backend
        return (
            PrecomputedAnswerTable.last_accessed.is_(None),
            PrecomputedAnswerTable.last_accessed.desc(),
            PrecomputedAnswerTable.context_id.desc(),
        )

    async def find_by_natural_key(self, natural_key: str) -> PrecomputedAnswer | None:
        """Exact, case-insensitive lookup of a current answer."""
        stmt = (
            select(PrecomputedAnswerTable)
            .where(
                func.lower(PrecomputedAnswerTable.natural_key)
                == natural_key.strip().lower(),
                self._current(utc_now()),
            )
            .order_by(*self._most_recent_first())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()
        return PrecomputedAnswer.model_validate(row) if row else None

    async def find_by_natural_keys(
        self,
        natural_keys: Sequence[str],
        context_type: ContextType,
    ) -> list[PrecomputedAnswer]:
        """One current answer per natural key, in the order of the keys given."""
        keys = [k.strip().lower() for k in natural_keys if k.strip()]
        if not keys:
            return []
        stmt = (
            select(PrecomputedAnswerTable)
            .where(
                func.lower(PrecomputedAnswerTable.natural_key).in_(keys),
                PrecomputedAnswerTable.context_type == context_type.value,
                self._current(utc_now()),
            )
            .order_by(*self._most_recent_first())
        )
        result = await self._session.execute(stmt)
        by_key: dict[str, PrecomputedAnswer] = {}
        for row in result.scalars().all():
            by_key.setdefault(
                row.natural_key.lower(), PrecomputedAnswer.model_validate(row)
            )
        return [by_key[k] for k in dict.fromkeys(keys) if k in by_key]

    async def search_weighted(
        self,
        terms: Sequence[str],
        columns: Sequence[str] = ANSWER_SEARCH_COLUMNS,
        *,
        limit: int = 5,
        max_terms: int = 3,
        max_pattern_length: int = 48,
    ) -> list[tuple[PrecomputedAnswer, int, int]]:
        """Rank current answers by terms matched, column priority, popularity.

        Returns:
            (answer, terms matched, column rank) tuples, best first
        """
        clause = build_weighted_clause(
            terms,
            [_COLUMNS[name] for name in columns],
            max_terms=max_terms,
            max_pattern_length=max_pattern_length,
        )
        match_count = clause.match_count.label("match_count")
        column_rank = clause.column_rank.label("column_rank")
        stmt = (
            select(PrecomputedAnswerTable, match_count, column_rank)
            .where(clause.predicate, self._current(utc_now()))
            .order_by(
                match_count.desc(),
                column_rank.asc(),
                PrecomputedAnswerTable.access_count.desc(),
                PrecomputedAnswerTable.context_id.asc(),
            )
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [
            (PrecomputedAnswer.model_validate(row), int(matched), int(rank))
            for row, matched, rank in result.all()
        ]

    async def touch(self, context_id: int) -> None:
        """Record a hit. A single UPDATE; concurrent hits may lose increments."""
        stmt = (
            update(PrecomputedAnswerTable)
            .where(PrecomputedAnswerTable.context_id == context_id)
            .values(
                access_count=PrecomputedAnswerTable.access_count + 1,
                last_accessed=utc_now(),
            )
        )
        await self._session.execute(stmt)
        await self._session.commit()

    async def refresh(self, draft: AnswerDraft) -> PrecomputedAnswer:
        """Write the current answer for (natural_key, context_type).

        The most recently used current row is updated in place, keeping its
        access metadata; every other current row for the pair is deleted.
        """
        stmt = (
            select(PrecomputedAnswerTable)
            .where(
                func.lower(PrecomputedAnswerTable.natural_key)
                == draft.natural_key.strip().lower(),
                PrecomputedAnswerTable.context_type == draft.context_type.value,
                PrecomputedAnswerTable.is_active.is_(True),
            )
            .order_by(*self._most_recent_first())
        )
        result = await self._session.execute(stmt)
        existing = list(result.scalars().all())

        if existing:
            keeper, *stale = existing
            keeper.natural_key = draft.natural_key
            keeper.formatted_response = draft.formatted_response
            keeper.raw_data = draft.raw_data
            keeper.search_keywords = draft.search_keywords
            keeper.relevance_date = draft.relevance_date
            keeper.expires_at = draft.expires_at
            if stale:
                stale_ids = [row.context_id for row in stale]
                await self._session.execute(
                    delete(PrecomputedAnswerTable).where(
                        PrecomputedAnswerTable.context_id.in_(stale_ids)
                    )
                )
                logger.info(
                    "Retired %d stale answers for %r (%s)",
                    len(stale_ids),
                    draft.natural_key,
                    draft.context_type.value,
                )
        else:
            keeper = PrecomputedAnswerTable(
                natural_key=draft.natural_key,
                context_type=draft.context_type.value,
                formatted_response=draft.formatted_response,
                raw_data=draft.raw_data,
                search_keywords=draft.search_keywords,
                relevance_date=draft.relevance_date,
                expires_at=draft.expires_at,
                is_active=True,
                access_count=0,
            )
            self._session.add(keeper)

        await self._session.flush()
        await self._session.commit()
        return PrecomputedAnswer.model_validate(keeper)

