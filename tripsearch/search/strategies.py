"""Search strategies, cheapest and most precise first.

Every strategy reads through the TimeoutGuard, so a slow or rejected
datastore call surfaces as a RecoverableSearchError for the resolver to
absorb.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import Any, Protocol, TypeVar

from tripsearch.config.patterns import WORD_SCAN_SKIP
from tripsearch.data_models import ClientRecord, PrecomputedAnswer, TripRecord
from tripsearch.domain import (
    ComplexityTier,
    ContextType,
    MatchCandidate,
    RecoverableSearchError,
    Strategy,
)
from tripsearch.storage import RepositoryFactory
from tripsearch.storage.sqlalchemy.repositories.answers import ANSWER_SEARCH_COLUMNS

from .context import ResolutionContext
from .formatting import (
    append_client_details,
    format_client,
    format_semantic_match,
    format_surface_match,
    format_trip,
    with_dashboard,
)
from .guard import TimeoutGuard
from .semantic import ComponentMatcher
from .surface import SurfaceQuery, rank_surface_rows

logger = logging.getLogger(__name__)

T = TypeVar("T")

ALL_TIERS = frozenset(ComplexityTier)
PATTERN_SAFE_TIERS = frozenset({ComplexityTier.SIMPLE, ComplexityTier.MODERATE})

PARTIAL_COLUMNS = ("natural_key", "search_keywords")
REDUCED_TRIP_COLUMNS = ("trip_name",)
REDUCED_CLIENT_COLUMNS = ("full_name",)
WORD_TRIP_COLUMNS = ("trip_name", "destinations")
WORD_CLIENT_COLUMNS = ("full_name", "email")

# Single-term strategies try at most this many of the top weighted terms
SINGLE_TERM_ATTEMPTS = 2


class SearchStrategy(Protocol):
    """Interface for one step of the fallback chain."""

    name: Strategy

    def applies(self, ctx: ResolutionContext) -> bool:
        """Whether the strategy may run for this query."""
        ...

    def skip_reason(self, ctx: ResolutionContext) -> str | None:
        """Why the strategy does not apply, None when it does."""
        ...

    def describe(self, ctx: ResolutionContext) -> dict[str, Any]:
        """Parameters the strategy will use, for the attempt trace."""
        ...

    async def attempt(
        self, ctx: ResolutionContext, repos: RepositoryFactory
    ) -> list[MatchCandidate]:
        """Ranked candidates, best first; empty on a miss."""
        ...


class BaseStrategy:
    """Tier and exact-only gating shared by all strategies."""

    name: Strategy
    # Exact strategies run for every query, including exact-only ones
    exact: bool = False
    tiers: frozenset[ComplexityTier] = ALL_TIERS

    def __init__(self, guard: TimeoutGuard):
        self._guard = guard

    def applies(self, ctx: ResolutionContext) -> bool:
        return self.skip_reason(ctx) is None

    def skip_reason(self, ctx: ResolutionContext) -> str | None:
        if not self.exact and ctx.exact_only:
            return "exact strategies only"
        if ctx.tier not in self.tiers:
            return f"not permitted for {ctx.tier.value} queries"
        return None

    def describe(self, ctx: ResolutionContext) -> dict[str, Any]:
        return {"terms": ctx.query.term_values}

    def _run(self, call: Awaitable[T]) -> Awaitable[T]:
        return self._guard.run(self.name.value, call)


def _answer_candidate(
    answer: PrecomputedAnswer,
    strategy: Strategy,
    *,
    text: str | None = None,
    score: float = 0.0,
    source: str | None = None,
    terms: list[str] | None = None,
) -> MatchCandidate:
    return MatchCandidate(
        natural_key=answer.natural_key,
        formatted_text=text if text is not None else answer.formatted_response,
        context_type=answer.context_type,
        strategy=strategy,
        score=score,
        matched_source=source,
        matched_terms=terms or [],
        record_id=answer.context_id,
        raw_data=answer.raw_data,
    )


def _trip_candidate(
    trip: TripRecord,
    strategy: Strategy,
    context_type: ContextType,
    *,
    score: float = 0.0,
    source: str | None = None,
    terms: list[str] | None = None,
) -> MatchCandidate:
    return MatchCandidate(
        natural_key=trip.trip_name,
        formatted_text=format_trip(trip),
        context_type=context_type,
        strategy=strategy,
        score=score,
        matched_source=source,
        matched_terms=terms or [],
        record_id=trip.trip_id,
    )


def _client_candidate(
    client: ClientRecord,
    strategy: Strategy,
    context_type: ContextType,
    *,
    score: float = 0.0,
    source: str | None = None,
    terms: list[str] | None = None,
) -> MatchCandidate:
    return MatchCandidate(
        natural_key=client.email or client.full_name,
        formatted_text=format_client(client),
        context_type=context_type,
        strategy=strategy,
        score=score,
        matched_source=source,
        matched_terms=terms or [],
        record_id=client.client_id,
    )


def _rank_score(matched: int, rank: int, n_columns: int) -> float:
    """Terms matched first, column priority as the fraction."""
    return matched + (n_columns + 1 - rank) / (n_columns + 1)


def _column_at(columns: tuple[str, ...], rank: int) -> str | None:
    return columns[rank - 1] if 1 <= rank <= len(columns) else None


def _terms_found(terms: list[str], *texts: str | None) -> list[str]:
    haystack = " ".join(t.lower() for t in texts if t)
    return [term for term in terms if term in haystack]


# -----------------------------------------------------------------------------
# Exact strategies
# -----------------------------------------------------------------------------


class ExactMatchStrategy(BaseStrategy):
    """Case-insensitive equality of the query against precomputed natural keys."""

    name = Strategy.EXACT_MATCH
    exact = True

    def skip_reason(self, ctx: ResolutionContext) -> str | None:
        if not ctx.query.has_terms and not ctx.has_shape:
            return "no distinctive terms"
        return super().skip_reason(ctx)

    def describe(self, ctx: ResolutionContext) -> dict[str, Any]:
        return {"natural_keys": ctx.exact_variations}

    async def attempt(
        self, ctx: ResolutionContext, repos: RepositoryFactory
    ) -> list[MatchCandidate]:
        for key in ctx.exact_variations:
            answer = await self._run(repos.answers.find_by_natural_key(key))
            if answer is None:
                continue

            text = answer.formatted_response
            if ctx.options.include_everything:
                text = await self._enrich(repos, answer)
            return [
                _answer_candidate(
                    answer,
                    self.name,
                    text=text,
                    score=1.0,
                    source="natural_key",
                    terms=[key.lower()],
                )
            ]
        return []

    async def _enrich(
        self, repos: RepositoryFactory, answer: PrecomputedAnswer
    ) -> str:
        if answer.context_type is not ContextType.TRIP_FULL:
            return answer.formatted_response

        text = with_dashboard(answer.formatted_response, answer.raw_data)
        emails = answer.client_emails()
        if not emails:
            return text
        try:
            clients = await self._run(
                repos.answers.find_by_natural_keys(emails, ContextType.CLIENT_PROFILE)
            )
        except RecoverableSearchError as e:
            logger.warning(
                "Client enrichment skipped for %r: %s", answer.natural_key, e
            )
            return text
        return append_client_details(text, clients)


class SlugDirectMatchStrategy(BaseStrategy):
    """One equality lookup by trip slug, for slug-shaped queries."""

    name = Strategy.SLUG_DIRECT_MATCH
    exact = True

    def skip_reason(self, ctx: ResolutionContext) -> str | None:
        if ctx.slug is None:
            return "query is not slug-shaped"
        return super().skip_reason(ctx)

    def describe(self, ctx: ResolutionContext) -> dict[str, Any]:
        return {"slug": ctx.slug}

    async def attempt(
        self, ctx: ResolutionContext, repos: RepositoryFactory
    ) -> list[MatchCandidate]:
        assert ctx.slug is not None
        trip = await self._run(repos.trips.get_by_slug(ctx.slug))
        if trip is None:
            return []
        return [
            _trip_candidate(
                trip,
                self.name,
                ContextType.TRIP_SLUG_MATCH,
                score=1.0,
                source="trip_slug",
                terms=[ctx.slug],
            )
        ]


class IdDirectMatchStrategy(BaseStrategy):
    """One primary-key lookup for "trip 482" / "client 7" shaped queries."""

    name = Strategy.ID_DIRECT_MATCH
    exact = True

    def skip_reason(self, ctx: ResolutionContext) -> str | None:
        if ctx.identifier is None:
            return "query is not an identifier"
        return super().skip_reason(ctx)

    def describe(self, ctx: ResolutionContext) -> dict[str, Any]:
        if ctx.identifier is None:
            return {}
        return {"target": ctx.identifier.target, "id": ctx.identifier.record_id}

    async def attempt(
        self, ctx: ResolutionContext, repos: RepositoryFactory
    ) -> list[MatchCandidate]:
        assert ctx.identifier is not None
        record_id = ctx.identifier.record_id

        if ctx.identifier.target == "client":
            client = await self._run(repos.clients.get_by_id(record_id))
            if client is None:
                return []
            return [
                _client_candidate(
                    client,
                    self.name,
                    ContextType.CLIENT_BY_ID,
                    score=1.0,
                    source="client_id",
                    terms=[str(record_id)],
                )
            ]

        trip = await self._run(repos.trips.get_by_id(record_id))
        if trip is None:
            return []
        return [
            _trip_candidate(
                trip,
                self.name,
                ContextType.TRIP_BY_ID,
                score=1.0,
                source="trip_id",
                terms=[str(record_id)],
            )
        ]


# -----------------------------------------------------------------------------
# Pattern strategies
# -----------------------------------------------------------------------------


class WeightedClauseStrategy(BaseStrategy):
    """Multi-term ranked search over precomputed answers."""

    name = Strategy.WEIGHTED_CLAUSE
    tiers = PATTERN_SAFE_TIERS

    def describe(self, ctx: ResolutionContext) -> dict[str, Any]:
        return {
            "terms": ctx.query.term_values[: ctx.config.max_search_terms],
            "columns": list(ANSWER_SEARCH_COLUMNS),
        }

    async def attempt(
        self, ctx: ResolutionContext, repos: RepositoryFactory
    ) -> list[MatchCandidate]:
        config = ctx.config
        terms = ctx.query.term_values[: config.max_search_terms]
        rows = await self._run(
            repos.answers.search_weighted(
                terms,
                ANSWER_SEARCH_COLUMNS,
                limit=config.candidate_limit,
                max_terms=config.max_search_terms,
                max_pattern_length=config.max_pattern_length,
            )
        )
        n_columns = len(ANSWER_SEARCH_COLUMNS)
        return [
            _answer_candidate(
                answer,
                self.name,
                score=_rank_score(matched, rank, n_columns),
                source=_column_at(ANSWER_SEARCH_COLUMNS, rank),
                terms=_terms_found(
                    terms,
                    answer.natural_key,
                    answer.search_keywords,
                    answer.formatted_response,
                ),
            )
            for answer, matched, rank in rows
        ]


class ReducedScanStrategy(BaseStrategy):
    """Complex queries only: one term against one column at a time."""

    name = Strategy.REDUCED_SCAN
    tiers = frozenset({ComplexityTier.COMPLEX})

    def describe(self, ctx: ResolutionContext) -> dict[str, Any]:
        return {
            "terms": ctx.query.term_values[:SINGLE_TERM_ATTEMPTS],
            "columns": [*REDUCED_TRIP_COLUMNS, *REDUCED_CLIENT_COLUMNS],
        }

    async def attempt(
        self, ctx: ResolutionContext, repos: RepositoryFactory
    ) -> list[MatchCandidate]:
        config = ctx.config
        for term in ctx.query.term_values[:SINGLE_TERM_ATTEMPTS]:
            trips = await self._run(
                repos.trips.search_weighted(
                    [term],
                    REDUCED_TRIP_COLUMNS,
                    limit=config.candidate_limit,
                    max_terms=1,
                    max_pattern_length=config.max_pattern_length,
                )
            )
            if trips:
                return [
                    _trip_candidate(
                        trip,
                        self.name,
                        ContextType.TRIP_RECORD,
                        score=float(matched),
                        source="trip_name",
                        terms=[term],
                    )
                    for trip, matched, _ in trips
                ]

            clients = await self._run(
                repos.clients.search_weighted(
                    [term],
                    REDUCED_CLIENT_COLUMNS,
                    limit=config.candidate_limit,
                    max_terms=1,
                    max_pattern_length=config.max_pattern_length,
                )
            )
            if clients:
                return [
                    _client_candidate(
                        client,
                        self.name,
                        ContextType.CLIENT_RECORD,
                        score=float(matched),
                        source="full_name",
                        terms=[term],
                    )
                    for client, matched, _ in clients
                ]
        return []


class PartialLikeStrategy(BaseStrategy):
    """The single heaviest term against natural keys and keywords."""

    name = Strategy.PARTIAL_LIKE
    tiers = PATTERN_SAFE_TIERS

    def describe(self, ctx: ResolutionContext) -> dict[str, Any]:
        return {"terms": ctx.query.term_values[:1], "columns": list(PARTIAL_COLUMNS)}

    async def attempt(
        self, ctx: ResolutionContext, repos: RepositoryFactory
    ) -> list[MatchCandidate]:
        config = ctx.config
        top = ctx.query.term_values[:1]
        rows = await self._run(
            repos.answers.search_weighted(
                top,
                PARTIAL_COLUMNS,
                limit=config.candidate_limit,
                max_terms=1,
                max_pattern_length=config.max_pattern_length,
            )
        )
        n_columns = len(PARTIAL_COLUMNS)
        return [
            _answer_candidate(
                answer,
                self.name,
                score=_rank_score(matched, rank, n_columns),
                source=_column_at(PARTIAL_COLUMNS, rank),
                terms=list(top),
            )
            for answer, matched, rank in rows
        ]


class SingleTermWordStrategy(BaseStrategy):
    """Trip then client records, one term at a time."""

    name = Strategy.SINGLE_TERM_WORD

    @staticmethod
    def _terms(ctx: ResolutionContext) -> list[str]:
        usable = [t for t in ctx.query.term_values if t not in WORD_SCAN_SKIP]
        return usable[:SINGLE_TERM_ATTEMPTS]

    def describe(self, ctx: ResolutionContext) -> dict[str, Any]:
        return {
            "terms": self._terms(ctx),
            "columns": [*WORD_TRIP_COLUMNS, *WORD_CLIENT_COLUMNS],
        }

    async def attempt(
        self, ctx: ResolutionContext, repos: RepositoryFactory
    ) -> list[MatchCandidate]:
        config = ctx.config
        for term in self._terms(ctx):
            trips = await self._run(
                repos.trips.search_weighted(
                    [term],
                    WORD_TRIP_COLUMNS,
                    limit=config.candidate_limit,
                    max_terms=1,
                    max_pattern_length=config.max_pattern_length,
                )
            )
            if trips:
                return [
                    _trip_candidate(
                        trip,
                        self.name,
                        ContextType.TRIP_RECORD,
                        score=_rank_score(matched, rank, len(WORD_TRIP_COLUMNS)),
                        source=_column_at(WORD_TRIP_COLUMNS, rank),
                        terms=[term],
                    )
                    for trip, matched, rank in trips
                ]

            clients = await self._run(
                repos.clients.search_weighted(
                    [term],
                    WORD_CLIENT_COLUMNS,
                    limit=config.candidate_limit,
                    max_terms=1,
                    max_pattern_length=config.max_pattern_length,
                )
            )
            if clients:
                return [
                    _client_candidate(
                        client,
                        self.name,
                        ContextType.CLIENT_RECORD,
                        score=_rank_score(matched, rank, len(WORD_CLIENT_COLUMNS)),
                        source=_column_at(WORD_CLIENT_COLUMNS, rank),
                        terms=[term],
                    )
                    for client, matched, rank in clients
                ]
        return []


# -----------------------------------------------------------------------------
# Index-backed strategies
# -----------------------------------------------------------------------------


class TripSurfaceStrategy(BaseStrategy):
    """Scored lookup over the fuzzy/phonetic trip search surface."""

    name = Strategy.TRIP_SURFACE

    @staticmethod
    def _surface_query(ctx: ResolutionContext) -> SurfaceQuery:
        parsed = SurfaceQuery.parse(ctx.query.raw)
        if ctx.tier is ComplexityTier.COMPLEX:
            # One token keeps the candidate predicate small
            parsed = SurfaceQuery(
                tokens=tuple(ctx.query.term_values[:1]),
                emails=parsed.emails,
                slug=parsed.slug,
                trip_ids=parsed.trip_ids,
            )
        return parsed

    def describe(self, ctx: ResolutionContext) -> dict[str, Any]:
        parsed = self._surface_query(ctx)
        return {
            "tokens": list(parsed.tokens),
            "emails": list(parsed.emails),
            "trip_ids": list(parsed.trip_ids),
        }

    async def attempt(
        self, ctx: ResolutionContext, repos: RepositoryFactory
    ) -> list[MatchCandidate]:
        parsed = self._surface_query(ctx)
        rows = await self._run(
            repos.surface.find_candidates(
                tokens=parsed.tokens,
                slug=parsed.slug,
                trip_ids=parsed.trip_ids,
                emails=parsed.emails,
                limit=ctx.config.surface_candidate_limit,
            )
        )
        matches = rank_surface_rows(rows, parsed)[: ctx.config.candidate_limit]
        return [
            MatchCandidate(
                natural_key=m.row.trip_name,
                formatted_text=format_surface_match(m.row, m.score, m.matched_tokens),
                context_type=ContextType.TRIP_SEARCH_SURFACE_MATCH,
                strategy=self.name,
                score=float(m.score),
                matched_source=m.reasons[0] if m.reasons else None,
                matched_terms=list(m.matched_tokens),
                record_id=m.row.trip_id,
            )
            for m in matches
        ]


class SemanticStrategy(BaseStrategy):
    """Last resort: the semantic component matcher."""

    name = Strategy.SEMANTIC

    def __init__(self, guard: TimeoutGuard, matcher: ComponentMatcher):
        super().__init__(guard)
        self._matcher = matcher

    def describe(self, ctx: ResolutionContext) -> dict[str, Any]:
        return {"query": ctx.query.raw, "limit": ctx.config.candidate_limit}

    async def attempt(
        self, ctx: ResolutionContext, repos: RepositoryFactory
    ) -> list[MatchCandidate]:
        matches = await self._run(
            self._matcher.match(ctx.query.raw, ctx.config.candidate_limit)
        )
        return [
            MatchCandidate(
                natural_key=m.trip.trip_name,
                formatted_text=format_semantic_match(
                    m.trip, m.score, m.matched_values
                ),
                context_type=ContextType.SEMANTIC_SEARCH_RESULT,
                strategy=self.name,
                score=m.score,
                matched_source="trip_components",
                matched_terms=m.matched_values,
                record_id=m.trip.trip_id,
            )
            for m in matches
        ]
