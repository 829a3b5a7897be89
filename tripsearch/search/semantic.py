"""Semantic component matching.

Trips are indexed as small typed fragments (client names, places, dates,
cost band, status, occasion words). A query is broken into the same kinds of
fragments and trips are scored by how many of the query's fragments they
carry, weighted by both sides.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tripsearch.config.patterns import (
    CAPITALISED_RUN_PATTERN,
    COST_WORDS,
    DESCRIPTOR_SYNONYMS,
    DESTINATION_INDICATORS,
    DESTINATION_SYNONYMS,
    KNOWN_DESCRIPTORS,
    KNOWN_LOCATIONS,
    MONTH_NAMES,
    PRICE_PATTERN,
    STATUS_SYNONYMS,
    STATUS_WORDS,
    YEAR_PATTERN,
)
from tripsearch.data_models import TripComponent, TripRecord
from tripsearch.domain import ComponentType
from tripsearch.storage import RepositoryFactory

logger = logging.getLogger(__name__)

_WORD = re.compile(r"[a-z0-9]+")
_NAME_PAIR = re.compile(r"([A-Z][a-z]+)(?:\s+and\s+|\s*&\s*)([A-Z][a-z]+)")

MIN_ACTIVITY_LENGTH = 3
MAX_MATCH_BONUS = 0.5
MATCH_BONUS_STEP = 0.1

# Query-side weights
CLIENT_WEIGHT = 2.0
DESTINATION_WEIGHT = 1.5
YEAR_WEIGHT = 1.3
DESCRIPTOR_WEIGHT = 1.3
MONTH_WEIGHT = 1.2
STATUS_WEIGHT = 1.2
COST_WEIGHT = 1.1
ACTIVITY_WEIGHT = 0.8


@dataclass(frozen=True)
class QueryComponent:
    component_type: ComponentType
    value: str
    weight: float


@dataclass
class SemanticMatch:
    """A trip with its 0-1 score and the components that matched."""

    trip: TripRecord
    score: float
    matched: list[TripComponent] = field(default_factory=list)

    @property
    def matched_values(self) -> list[str]:
        return list(dict.fromkeys(c.component_value for c in self.matched))


class ComponentMatcher(Protocol):
    """Opaque scoring capability: query in, scored trips out."""

    async def match(self, query: str, limit: int) -> list[SemanticMatch]: ...


def extract_query_components(
    query: str, stop_words: Iterable[str] = ()
) -> list[QueryComponent]:
    """Break a raw query into typed, weighted fragments."""
    stop = frozenset(stop_words)
    components: list[QueryComponent] = []
    claimed: set[str] = set()

    def add(component_type: ComponentType, value: str, weight: float) -> None:
        if value and value not in claimed:
            claimed.add(value)
            components.append(QueryComponent(component_type, value, weight))

    for run in CAPITALISED_RUN_PATTERN.findall(query):
        for word in run.lower().split():
            if word in KNOWN_LOCATIONS:
                add(ComponentType.DESTINATION, word, DESTINATION_WEIGHT)
            elif word not in stop and word not in MONTH_NAMES:
                add(ComponentType.CLIENT, word, CLIENT_WEIGHT)

    for year in YEAR_PATTERN.findall(query):
        add(ComponentType.DATE, year, YEAR_WEIGHT)
    for price in PRICE_PATTERN.findall(query):
        add(ComponentType.COST, price, COST_WEIGHT)

    for word in _WORD.findall(query.lower()):
        if word in claimed:
            continue
        if word in MONTH_NAMES:
            add(ComponentType.DATE, word, MONTH_WEIGHT)
        elif word in COST_WORDS:
            add(ComponentType.COST, word, COST_WEIGHT)
        elif word in STATUS_WORDS:
            add(ComponentType.STATUS, word, STATUS_WEIGHT)
        elif word in KNOWN_DESCRIPTORS:
            add(ComponentType.DESCRIPTOR, word, DESCRIPTOR_WEIGHT)
        elif word in DESTINATION_INDICATORS:
            add(ComponentType.DESTINATION, word, DESTINATION_WEIGHT)
        elif (
            len(word) >= MIN_ACTIVITY_LENGTH
            and word not in stop
            and not word.isdigit()
        ):
            add(ComponentType.ACTIVITY, word, ACTIVITY_WEIGHT)

    return components


def component_matches(component: TripComponent, wanted: QueryComponent) -> bool:
    if component.component_type is not wanted.component_type:
        return False
    value = component.component_value.lower()
    if value == wanted.value or wanted.value in value or value in wanted.value:
        return True
    return any(s.lower() == wanted.value for s in component.synonyms)


def score_components(
    components: Sequence[TripComponent], wanted: Sequence[QueryComponent]
) -> tuple[float, list[TripComponent]]:
    """Score one trip's components against the query's.

    Each query component contributes its weight times the heaviest matching
    trip component; the sum is normalized by the query's total weight, then
    a bonus of 0.1 per matching trip component (at most 0.5) is added and the
    result capped at 1.0.
    """
    total = sum(q.weight for q in wanted)
    if total <= 0:
        return 0.0, []

    raw = 0.0
    matched: list[TripComponent] = []
    for q in wanted:
        hits = [c for c in components if component_matches(c, q)]
        if not hits:
            continue
        raw += q.weight * max(c.search_weight for c in hits)
        for c in hits:
            if c not in matched:
                matched.append(c)

    bonus = min(MATCH_BONUS_STEP * len(matched), MAX_MATCH_BONUS)
    return min(raw / total + bonus, 1.0), matched


class TripComponentMatcher:
    """Default matcher over the ``trip_components`` index.

    Opens its own session per call, so it can be handed to the resolver as
    an independent collaborator.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        *,
        min_score: float = 0.3,
        stop_words: Iterable[str] = (),
    ):
        self._session_maker = session_maker
        self._min_score = min_score
        self._stop_words = frozenset(stop_words)

    async def match(self, query: str, limit: int) -> list[SemanticMatch]:
        wanted = extract_query_components(query, self._stop_words)
        if not wanted:
            return []
        logger.debug(
            "Semantic components: %s",
            ", ".join(f"{q.component_type.value}:{q.value}" for q in wanted),
        )

        async with self._session_maker() as session:
            repos = RepositoryFactory(session)
            found = await repos.components.find_matching(
                [(q.component_type, q.value) for q in wanted]
            )
            by_trip: dict[int, list[TripComponent]] = defaultdict(list)
            for component in found:
                by_trip[component.trip_id].append(component)

            scored: list[tuple[int, float, list[TripComponent]]] = []
            for trip_id, components in by_trip.items():
                score, matched = score_components(components, wanted)
                if matched and score >= self._min_score:
                    scored.append((trip_id, score, matched))
            scored.sort(key=lambda item: (-item[1], item[0]))
            scored = scored[:limit]

            trips = await repos.trips.get_many([trip_id for trip_id, _, _ in scored])

        return [
            SemanticMatch(trip=trips[trip_id], score=round(score, 4), matched=matched)
            for trip_id, score, matched in scored
            if trip_id in trips
        ]


# -----------------------------------------------------------------------------
# Indexing
# -----------------------------------------------------------------------------


def _cost_band(cost: float) -> str:
    if cost < 1000:
        return "budget"
    if cost < 5000:
        return "moderate"
    if cost < 10000:
        return "premium"
    return "luxury"


def _descriptors(text: str) -> list[str]:
    words = _WORD.findall(text.lower())
    return list(dict.fromkeys(w for w in words if w in KNOWN_DESCRIPTORS))


def extract_trip_components(trip: TripRecord) -> list[TripComponent]:
    """Index a trip as typed components for semantic matching."""
    components: list[TripComponent] = []

    def add(
        component_type: ComponentType,
        value: str,
        weight: float,
        synonyms: Iterable[str] = (),
    ) -> None:
        components.append(
            TripComponent(
                trip_id=trip.trip_id,
                component_type=component_type,
                component_value=value,
                search_weight=weight,
                synonyms=list(synonyms),
            )
        )

    if trip.primary_client_email:
        prefix = trip.primary_client_email.split("@")[0].lower()
        add(ComponentType.CLIENT, prefix, 2.0, [trip.primary_client_email.lower()])

    names = _NAME_PAIR.search(trip.trip_name)
    if names:
        for name in names.groups():
            add(ComponentType.CLIENT, name.lower(), 2.0, [name])

    for destination in re.split(r"[,;]", trip.destinations or ""):
        destination = destination.strip().lower()
        if destination:
            add(
                ComponentType.DESTINATION,
                destination,
                1.5,
                DESTINATION_SYNONYMS.get(destination, []),
            )

    if trip.start_date:
        year = str(trip.start_date.year)
        month = f"{trip.start_date.month:02d}"
        add(ComponentType.DATE, year, 1.3, [trip.start_date.isoformat()])
        add(
            ComponentType.DATE,
            MONTH_NAMES[trip.start_date.month - 1],
            1.2,
            [month, f"{year}-{month}"],
        )

    if trip.total_cost and trip.total_cost > 0:
        add(
            ComponentType.COST,
            _cost_band(trip.total_cost),
            1.1,
            [f"{trip.total_cost:g}", f"${trip.total_cost:g}"],
        )

    if trip.status:
        status = trip.status.lower()
        add(ComponentType.STATUS, status, 1.2, STATUS_SYNONYMS.get(status, []))

    for word in _descriptors(trip.trip_name):
        add(ComponentType.DESCRIPTOR, word, 1.3, DESCRIPTOR_SYNONYMS.get(word, []))
    for word in _descriptors(trip.notes or ""):
        add(ComponentType.DESCRIPTOR, word, 1.1, DESCRIPTOR_SYNONYMS.get(word, []))

    return components
