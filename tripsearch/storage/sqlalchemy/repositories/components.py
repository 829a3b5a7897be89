"""Repository for semantic trip components."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy import ColumnElement, String, cast, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tripsearch.data_models import TripComponent
from tripsearch.domain.enums import ComponentType
from tripsearch.storage.sqlalchemy.clauses import LIKE_ESCAPE, contains_pattern
from tripsearch.storage.sqlalchemy.tables import TripComponentTable


class TripComponentRepository:
    """Lookup and replacement of precomputed trip components."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def find_matching(
        self,
        wanted: Sequence[tuple[ComponentType, str]],
        limit: int = 200,
    ) -> list[TripComponent]:
        """Components whose type matches and whose value or synonyms contain
        the wanted value."""
        conditions: list[ColumnElement[bool]] = []
        for component_type, value in wanted:
            pattern = contains_pattern(value.lower())
            conditions.append(
                (TripComponentTable.component_type == component_type.value)
                & or_(
                    TripComponentTable.component_value.ilike(
                        pattern, escape=LIKE_ESCAPE
                    ),
                    cast(TripComponentTable.synonyms, String).ilike(
                        pattern, escape=LIKE_ESCAPE
                    ),
                )
            )
        if not conditions:
            return []

        stmt = (
            select(TripComponentTable)
            .where(or_(*conditions))
            .order_by(TripComponentTable.trip_id, TripComponentTable.component_id)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [
            TripComponent(
                trip_id=row.trip_id,
                component_type=ComponentType(row.component_type),
                component_value=row.component_value,
                search_weight=row.search_weight,
                synonyms=list(row.synonyms or []),
            )
            for row in result.scalars().all()
        ]

    async def replace_for_trip(
        self, trip_id: int, components: Iterable[TripComponent]
    ) -> int:
        """Replace every component of a trip. Returns the number written."""
        await self._session.execute(
            delete(TripComponentTable).where(TripComponentTable.trip_id == trip_id)
        )
        count = 0
        for component in components:
            self._session.add(
                TripComponentTable(
                    trip_id=trip_id,
                    component_type=component.component_type.value,
                    component_value=component.component_value,
                    search_weight=component.search_weight,
                    synonyms=component.synonyms or None,
                )
            )
            count += 1
        await self._session.commit()
        return count
