"""Tests for the progressive-fallback resolver."""

import asyncio
from collections.abc import Sequence
from typing import Any
from unittest.mock import MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tripsearch.config import ResolverConfig
from tripsearch.data_models import PrecomputedAnswer, TripRecord
from tripsearch.domain import (
    AttemptOutcome,
    ComplexityTier,
    ContextType,
    InvalidInputError,
    NotFoundResult,
    ResolvedAnswer,
    ResolveOptions,
    Strategy,
    StrategyHint,
    UnexpectedFailureError,
)
from tripsearch.search import SearchResolver, SemanticMatch
from tripsearch.search.diagnostics import NO_TERMS_MESSAGE
from tripsearch.search.formatting import CLIENT_DETAILS_HEADER, DASHBOARD_HEADER
from tripsearch.storage import RepositoryFactory
from tripsearch.storage.sqlalchemy.repositories import (
    AnswerRepository,
    TripRepository,
    answers as answers_module,
    records as records_module,
)
from tripsearch.storage.sqlalchemy.repositories.answers import ANSWER_SEARCH_COLUMNS


def _outcomes(
    result: ResolvedAnswer | NotFoundResult,
) -> dict[Strategy, AttemptOutcome]:
    attempts = (
        result.attempts
        if isinstance(result, ResolvedAnswer)
        else result.diagnostics.attempts
    )
    return {a.strategy: a.outcome for a in attempts}


class SlowMultiTermAnswers(AnswerRepository):
    """Answer search that hangs whenever more than one term is used."""

    async def search_weighted(
        self,
        terms: Sequence[str],
        columns: Sequence[str] = ANSWER_SEARCH_COLUMNS,
        **kwargs: Any,
    ) -> list[tuple[PrecomputedAnswer, int, int]]:
        if len(terms) > 1:
            await asyncio.sleep(5)
        return await super().search_weighted(terms, columns, **kwargs)


class RejectingMultiTermAnswers(AnswerRepository):
    """Answer search the datastore refuses as too complex for several terms."""

    async def search_weighted(
        self,
        terms: Sequence[str],
        columns: Sequence[str] = ANSWER_SEARCH_COLUMNS,
        **kwargs: Any,
    ) -> list[tuple[PrecomputedAnswer, int, int]]:
        if len(terms) > 1:
            raise RuntimeError("LIKE or GLOB pattern too complex")
        return await super().search_weighted(terms, columns, **kwargs)


class BrokenTrips(TripRepository):
    async def get_by_id(self, trip_id: int) -> TripRecord | None:
        raise RuntimeError("connection reset by peer")


class SlowAnswersFactory(RepositoryFactory):
    @property
    def answers(self) -> AnswerRepository:
        return SlowMultiTermAnswers(self._session)


class RejectingAnswersFactory(RepositoryFactory):
    @property
    def answers(self) -> AnswerRepository:
        return RejectingMultiTermAnswers(self._session)


class BrokenTripsFactory(RepositoryFactory):
    @property
    def trips(self) -> TripRepository:
        return BrokenTrips(self._session)


class TestExactStrategies:
    @pytest.mark.asyncio
    async def test_slug_query_uses_slug_lookup(self, resolver: SearchResolver) -> None:
        result = await resolver.resolve("acme-retreat-2025")

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.SLUG_DIRECT_MATCH
        assert result.context_type is ContextType.TRIP_SLUG_MATCH
        assert result.natural_key == "Acme Corporate Retreat"
        assert result.record_id == 501

    @pytest.mark.asyncio
    async def test_slug_hit_skips_pattern_strategies(
        self, resolver: SearchResolver
    ) -> None:
        result = await resolver.resolve("acme-retreat-2025")

        assert isinstance(result, ResolvedAnswer)
        assert Strategy.WEIGHTED_CLAUSE not in _outcomes(result)

    @pytest.mark.asyncio
    async def test_slug_miss_falls_through_to_fuzzy_strategies(
        self, resolver: SearchResolver
    ) -> None:
        # Slug-shaped, but no trip carries this slug
        result = await resolver.resolve("Henderson Galway 2024")

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.SINGLE_TERM_WORD
        assert result.natural_key == "Henderson Family Reunion"
        assert _outcomes(result)[Strategy.SLUG_DIRECT_MATCH] is AttemptOutcome.MISS

    @pytest.mark.asyncio
    async def test_trip_id_query(self, resolver: SearchResolver) -> None:
        result = await resolver.resolve("trip id 482")

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.ID_DIRECT_MATCH
        assert result.context_type is ContextType.TRIP_BY_ID
        assert result.record_id == 482
        assert result.natural_key == "Sara and Darren Anniversary"

    @pytest.mark.asyncio
    async def test_client_id_query(self, resolver: SearchResolver) -> None:
        result = await resolver.resolve("client #7")

        assert isinstance(result, ResolvedAnswer)
        assert result.context_type is ContextType.CLIENT_BY_ID
        assert result.natural_key == "sara@example.com"

    @pytest.mark.asyncio
    async def test_natural_key_match_is_enriched(
        self, resolver: SearchResolver
    ) -> None:
        result = await resolver.resolve("Sara & Darren Anniversary")

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.EXACT_MATCH
        assert result.context_type is ContextType.TRIP_FULL
        assert result.formatted_text.startswith(DASHBOARD_HEADER)
        assert CLIENT_DETAILS_HEADER in result.formatted_text
        assert "Client: Sara Whitfield" in result.formatted_text
        assert "Client: Darren Cole" in result.formatted_text

    @pytest.mark.asyncio
    async def test_enrichment_can_be_turned_off(
        self, resolver: SearchResolver
    ) -> None:
        result = await resolver.resolve(
            "sara and darren anniversary",
            ResolveOptions(include_everything=False),
        )

        assert isinstance(result, ResolvedAnswer)
        assert result.formatted_text == (
            "Sara and Darren Anniversary\n"
            "Destinations: Bristol, Bath\n"
            "Status: confirmed"
        )

    @pytest.mark.asyncio
    async def test_exact_hit_records_access(
        self, resolver: SearchResolver, seeded: async_sessionmaker[AsyncSession]
    ) -> None:
        await resolver.resolve("sara@example.com")

        async with seeded() as session:
            answer = await RepositoryFactory(session).answers.find_by_natural_key(
                "sara@example.com"
            )
        assert answer is not None
        assert answer.access_count == 1

    @pytest.mark.asyncio
    async def test_weighted_hit_records_access(
        self, resolver: SearchResolver, seeded: async_sessionmaker[AsyncSession]
    ) -> None:
        result = await resolver.resolve("Sara Darren Bristol")
        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.WEIGHTED_CLAUSE

        async with seeded() as session:
            answer = await RepositoryFactory(session).answers.find_by_natural_key(
                "Sara and Darren Anniversary"
            )
        assert answer is not None
        assert answer.access_count == 1
        assert answer.last_accessed is not None

    @pytest.mark.asyncio
    async def test_explicit_exact_hint_stops_after_exact_strategies(
        self, resolver: SearchResolver
    ) -> None:
        result = await resolver.resolve(
            "Sara Darren Bristol", ResolveOptions(strategy_hint=StrategyHint.EXACT)
        )

        assert isinstance(result, NotFoundResult)
        assert _outcomes(result)[Strategy.WEIGHTED_CLAUSE] is AttemptOutcome.SKIPPED

    @pytest.mark.asyncio
    async def test_derived_exact_hint_keeps_fallbacks(
        self, resolver: SearchResolver
    ) -> None:
        result = await resolver.resolve("lou@example.com")

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.TRIP_SURFACE
        assert result.natural_key == "Henderson Family Reunion"


class TestFallbackChain:
    @pytest.mark.asyncio
    async def test_weighted_clause_prefers_most_terms(
        self, resolver: SearchResolver
    ) -> None:
        result = await resolver.resolve("Sara Darren Bristol")

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.WEIGHTED_CLAUSE
        assert result.natural_key == "Sara and Darren Anniversary"
        assert set(result.matched_terms) == {"sara", "darren", "bristol"}
        assert result.alternatives[0].natural_key == "Sara and Darren Paris Weekend"
        assert result.score > result.alternatives[0].score

    @pytest.mark.asyncio
    async def test_alternatives_are_bounded(
        self, seeded: async_sessionmaker[AsyncSession]
    ) -> None:
        resolver = SearchResolver(seeded, ResolverConfig(max_alternatives=1))

        result = await resolver.resolve("Sara Darren Bristol")

        assert isinstance(result, ResolvedAnswer)
        assert len(result.alternatives) == 1

    @pytest.mark.asyncio
    async def test_timeout_falls_back_to_single_term(
        self, seeded: async_sessionmaker[AsyncSession], config: ResolverConfig
    ) -> None:
        resolver = SearchResolver(
            seeded, config, repository_factory=SlowAnswersFactory
        )

        result = await resolver.resolve("Sara Darren Bristol")

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.PARTIAL_LIKE
        assert result.natural_key == "Sara and Darren Anniversary"
        outcomes = _outcomes(result)
        assert outcomes[Strategy.WEIGHTED_CLAUSE] is AttemptOutcome.TIMEOUT
        assert outcomes[Strategy.PARTIAL_LIKE] is AttemptOutcome.HIT

    @pytest.mark.asyncio
    async def test_resolver_recovers_after_timeout(
        self, seeded: async_sessionmaker[AsyncSession], config: ResolverConfig
    ) -> None:
        slow = SearchResolver(seeded, config, repository_factory=SlowAnswersFactory)
        await slow.resolve("Sara Darren Bristol")

        result = await SearchResolver(seeded, config).resolve("Sara Darren Bristol")

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.WEIGHTED_CLAUSE

    @pytest.mark.asyncio
    async def test_pattern_rejection_falls_back(
        self, seeded: async_sessionmaker[AsyncSession], config: ResolverConfig
    ) -> None:
        resolver = SearchResolver(
            seeded, config, repository_factory=RejectingAnswersFactory
        )

        result = await resolver.resolve("Sara Darren Bristol")

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.PARTIAL_LIKE
        outcomes = _outcomes(result)
        assert outcomes[Strategy.WEIGHTED_CLAUSE] is AttemptOutcome.PATTERN_REJECTED

    @pytest.mark.asyncio
    async def test_word_scan_over_records(self, resolver: SearchResolver) -> None:
        result = await resolver.resolve("Galway")

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.SINGLE_TERM_WORD
        assert result.context_type is ContextType.TRIP_RECORD
        assert result.natural_key == "Henderson Family Reunion"

    @pytest.mark.asyncio
    async def test_trip_surface_catches_misspelling(
        self, resolver: SearchResolver
    ) -> None:
        result = await resolver.resolve("Hendersen")

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.TRIP_SURFACE
        assert result.context_type is ContextType.TRIP_SEARCH_SURFACE_MATCH
        assert result.natural_key == "Henderson Family Reunion"
        assert result.matched_terms == ["hendersen"]

    @pytest.mark.asyncio
    async def test_semantic_is_last_resort(self, resolver: SearchResolver) -> None:
        result = await resolver.resolve("booked june celebration")

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.SEMANTIC
        assert result.context_type is ContextType.SEMANTIC_SEARCH_RESULT
        assert result.record_id == 482

    @pytest.mark.asyncio
    async def test_matcher_is_pluggable(
        self,
        seeded: async_sessionmaker[AsyncSession],
        config: ResolverConfig,
        sara_trip: TripRecord,
    ) -> None:
        class FixedMatcher:
            async def match(self, query: str, limit: int) -> list[SemanticMatch]:
                return [SemanticMatch(trip=sara_trip, score=0.9)]

        resolver = SearchResolver(seeded, config, matcher=FixedMatcher())

        result = await resolver.resolve("zzqx platypus")

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.SEMANTIC
        assert result.score == 0.9


class TestTiers:
    @pytest.mark.asyncio
    async def test_complex_query_only_builds_single_term_predicates(
        self, resolver: SearchResolver, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        record_calls: list[list[str]] = []
        answer_calls: list[list[str]] = []
        original = records_module.build_weighted_clause

        def spy(calls: list[list[str]]):
            def build(terms, columns, **kwargs):
                clause = original(terms, columns, **kwargs)
                calls.append(list(clause.terms))
                return clause

            return build

        monkeypatch.setattr(records_module, "build_weighted_clause", spy(record_calls))
        monkeypatch.setattr(answers_module, "build_weighted_clause", spy(answer_calls))

        query = (
            "Looking for the Sara and Darren anniversary weekend "
            "somewhere around Bristol in spring"
        )
        assert resolver.prepare(query).tier is ComplexityTier.COMPLEX

        result = await resolver.resolve(query)

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.REDUCED_SCAN
        assert result.record_id == 482
        assert record_calls
        assert all(len(terms) == 1 for terms in record_calls)
        assert answer_calls == []

    @pytest.mark.asyncio
    async def test_explicit_broad_hint_forces_complex_path(
        self, resolver: SearchResolver
    ) -> None:
        options = ResolveOptions(strategy_hint=StrategyHint.BROAD)
        assert resolver.prepare("Sara Darren Bristol", options).tier is (
            ComplexityTier.COMPLEX
        )

        result = await resolver.resolve("Sara Darren Bristol", options)

        assert isinstance(result, ResolvedAnswer)
        assert result.strategy is Strategy.REDUCED_SCAN

    def test_derived_broad_hint_keeps_tier(self, resolver: SearchResolver) -> None:
        ctx = resolver.prepare("Sara Darren Bristol Bath weekend")

        assert ctx.hint is StrategyHint.BROAD
        assert not ctx.hint_explicit
        assert ctx.tier is ComplexityTier.MODERATE


class TestNotFound:
    @pytest.mark.asyncio
    async def test_stop_words_only(self, resolver: SearchResolver) -> None:
        result = await resolver.resolve("show me all the details")

        assert isinstance(result, NotFoundResult)
        assert result.message == NO_TERMS_MESSAGE.format(
            query="show me all the details"
        )
        assert "Use more distinctive terms" in result.message
        assert result.diagnostics.terms == []
        outcomes = _outcomes(result)
        assert outcomes[Strategy.EXACT_MATCH] is AttemptOutcome.SKIPPED
        assert outcomes[Strategy.WEIGHTED_CLAUSE] is AttemptOutcome.SKIPPED
        assert outcomes[Strategy.SEMANTIC] is AttemptOutcome.SKIPPED

    @pytest.mark.asyncio
    async def test_diagnostics(self, resolver: SearchResolver) -> None:
        result = await resolver.resolve("zzqx platypus")

        assert isinstance(result, NotFoundResult)
        diagnostics = result.diagnostics
        assert diagnostics.normalized_query == "zzqx platypus"
        assert diagnostics.tier is ComplexityTier.SIMPLE
        assert [t.term for t in diagnostics.terms] == ["platypus", "zzqx"]
        assert [t.trip_id for t in diagnostics.recent_trips] == [482, 501, 502]
        assert [c.client_id for c in diagnostics.recent_clients] == [7, 8, 9]
        assert any("fewer terms" in tip for tip in diagnostics.tips)

        outcomes = _outcomes(result)
        assert outcomes[Strategy.REDUCED_SCAN] is AttemptOutcome.SKIPPED
        assert outcomes[Strategy.SEMANTIC] is AttemptOutcome.MISS
        assert len(diagnostics.attempts) == len(resolver.strategies)


class TestErrors:
    @pytest.mark.asyncio
    async def test_blank_query_touches_nothing(self) -> None:
        session_maker = MagicMock()
        resolver = SearchResolver(session_maker)

        with pytest.raises(InvalidInputError):
            await resolver.resolve("   ")

        session_maker.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_recorded(
        self, seeded: async_sessionmaker[AsyncSession], config: ResolverConfig
    ) -> None:
        resolver = SearchResolver(
            seeded, config, repository_factory=BrokenTripsFactory
        )

        with pytest.raises(UnexpectedFailureError) as exc_info:
            await resolver.resolve("trip 482")

        error = exc_info.value
        assert error.session_id.startswith("session_")
        assert "connection reset" not in error.message

        async with seeded() as session:
            rows = await RepositoryFactory(session).errors.find_by_session(
                error.session_id
            )
        assert len(rows) == 1
        assert rows[0]["operation"] == "Search"
        assert rows[0]["error_message"] == "connection reset by peer"
        assert rows[0]["context"]["query"] == "trip 482"

    @pytest.mark.asyncio
    async def test_recording_can_be_disabled(
        self, seeded: async_sessionmaker[AsyncSession]
    ) -> None:
        resolver = SearchResolver(
            seeded,
            ResolverConfig(record_errors=False),
            repository_factory=BrokenTripsFactory,
        )

        with pytest.raises(UnexpectedFailureError) as exc_info:
            await resolver.resolve("trip 482")

        async with seeded() as session:
            rows = await RepositoryFactory(session).errors.find_by_session(
                exc_info.value.session_id
            )
        assert rows == []


class TestDeterminism:
    @pytest.mark.asyncio
    async def test_same_query_same_answer(self, resolver: SearchResolver) -> None:
        first = await resolver.resolve("Sara Darren Bristol")
        second = await resolver.resolve("Sara Darren Bristol")

        assert isinstance(first, ResolvedAnswer)
        assert isinstance(second, ResolvedAnswer)
        assert (first.strategy, first.natural_key) == (
            second.strategy,
            second.natural_key,
        )
        assert [a.natural_key for a in first.alternatives] == [
            a.natural_key for a in second.alternatives
        ]

    @pytest.mark.asyncio
    async def test_spelling_variants_agree(self, resolver: SearchResolver) -> None:
        ampersand = await resolver.resolve("Sara & Darren Anniversary")
        spelled = await resolver.resolve("sara and darren anniversary")

        assert isinstance(ampersand, ResolvedAnswer)
        assert isinstance(spelled, ResolvedAnswer)
        assert ampersand.natural_key == spelled.natural_key
