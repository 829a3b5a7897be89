"""Progressive-fallback resolver.

This module provides the SearchResolver, the single entry point used by the
HTTP API and the CLI to turn a free-text lookup into an answer.

Strategies run sequentially, cheapest and most precise first, and the first
one returning candidates wins. Timeouts and pattern rejections only end the
current strategy; the chain moves on to a simpler one.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tripsearch.config import ResolverConfig
from tripsearch.domain import (
    AttemptOutcome,
    ErrorCode,
    InvalidInputError,
    NotFoundResult,
    Query,
    RecoverableSearchError,
    ResolvedAnswer,
    ResolveOptions,
    SearchError,
    SearchResult,
    UnexpectedFailureError,
)
from tripsearch.domain.exceptions import generate_session_id, human_readable_error
from tripsearch.storage import RepositoryFactory

from .classifier import classify_complexity
from .context import ResolutionContext
from .diagnostics import DiagnosticsComposer
from .guard import TimeoutGuard
from .semantic import ComponentMatcher, TripComponentMatcher
from .strategies import (
    ExactMatchStrategy,
    IdDirectMatchStrategy,
    PartialLikeStrategy,
    ReducedScanStrategy,
    SearchStrategy,
    SemanticStrategy,
    SingleTermWordStrategy,
    SlugDirectMatchStrategy,
    TripSurfaceStrategy,
    WeightedClauseStrategy,
)
from .terms import normalize_search_term, optimize_terms

logger = logging.getLogger(__name__)

OPERATION = "Search"

_TABLE_NAME = re.compile(r"(?:no such table|relation)[:\s]+\"?(\w+)", re.IGNORECASE)

_REMEDIES: tuple[tuple[str, str], ...] = (
    ("no such table", "Run 'tripsearch init-db' to create missing tables"),
    ("does not exist", "Run 'tripsearch init-db' to create missing tables"),
    ("no such column", "The database schema is outdated; recreate the tables"),
    ("database is locked", "Retry the request once other writers finish"),
)


def build_query(raw: str, config: ResolverConfig) -> Query:
    """Normalize, weigh and classify a raw query. No I/O."""
    normalized = normalize_search_term(raw)
    return Query(
        raw=raw,
        normalized=normalized,
        terms=optimize_terms(raw, config),
        tier=classify_complexity(normalized, config),
    )


class SearchResolver:
    """Application service resolving free-text lookups.

    Usage:
        # Created once at app startup
        resolver = SearchResolver(session_maker, ResolverConfig.from_settings(s))

        # Called per request
        result = await resolver.resolve("Sara Darren Bristol")

    Each strategy attempt gets its own session, so an abandoned call never
    leaves state behind for the next strategy.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        config: ResolverConfig | None = None,
        *,
        matcher: ComponentMatcher | None = None,
        repository_factory: Callable[[AsyncSession], RepositoryFactory] = (
            RepositoryFactory
        ),
    ) -> None:
        self._session_maker = session_maker
        self._config = config or ResolverConfig()
        self._repository_factory = repository_factory

        guard = TimeoutGuard(self._config.query_timeout_ms)
        self._guard = guard
        matcher = matcher or TripComponentMatcher(
            session_maker,
            min_score=self._config.semantic_min_score,
            stop_words=self._config.stop_words,
        )
        self._strategies: list[SearchStrategy] = [
            ExactMatchStrategy(guard),
            SlugDirectMatchStrategy(guard),
            IdDirectMatchStrategy(guard),
            WeightedClauseStrategy(guard),
            ReducedScanStrategy(guard),
            PartialLikeStrategy(guard),
            SingleTermWordStrategy(guard),
            TripSurfaceStrategy(guard),
            SemanticStrategy(guard, matcher),
        ]
        self._diagnostics = DiagnosticsComposer(guard, self._config)

    @property
    def config(self) -> ResolverConfig:
        return self._config

    @property
    def strategies(self) -> list[SearchStrategy]:
        return list(self._strategies)

    def prepare(
        self, query: str, options: ResolveOptions | None = None
    ) -> ResolutionContext:
        """Everything decided before the first datastore call.

        Raises:
            InvalidInputError: If the query is missing or blank
        """
        if query is None or not query.strip():
            raise InvalidInputError()
        return ResolutionContext.build(
            build_query(query, self._config),
            options or ResolveOptions(),
            self._config,
        )

    async def resolve(
        self, query: str, options: ResolveOptions | None = None
    ) -> SearchResult:
        """Resolve a free-text lookup.

        Args:
            query: Raw query as typed by the caller
            options: Enrichment flag and strategy hint

        Returns:
            ResolvedAnswer on the first strategy with candidates, otherwise a
            NotFoundResult carrying diagnostics

        Raises:
            InvalidInputError: Missing or blank query; no datastore call is made
            UnexpectedFailureError: Any non-recoverable datastore failure
        """
        ctx = self.prepare(query, options)
        logger.debug(
            "Resolving %r: tier=%s hint=%s terms=%s",
            ctx.query.raw,
            ctx.tier.value,
            ctx.hint.value,
            [(t.term, t.weight, t.reason) for t in ctx.query.terms],
        )

        try:
            answer = await self._run_chain(ctx)
            if answer is not None:
                return answer
            return await self._not_found(ctx)
        except SearchError:
            raise
        except Exception as e:
            raise await self._unexpected_failure(ctx, e) from e

    async def _run_chain(self, ctx: ResolutionContext) -> ResolvedAnswer | None:
        for strategy in self._strategies:
            reason = strategy.skip_reason(ctx)
            if reason is not None:
                ctx.record(strategy.name, AttemptOutcome.SKIPPED, detail=reason)
                continue

            parameters = strategy.describe(ctx)
            try:
                async with self._session_maker() as session:
                    repos = self._repository_factory(session)
                    candidates = await strategy.attempt(ctx, repos)
            except RecoverableSearchError as e:
                outcome = (
                    AttemptOutcome.TIMEOUT
                    if e.code is ErrorCode.QUERY_TIMEOUT
                    else AttemptOutcome.PATTERN_REJECTED
                )
                ctx.record(strategy.name, outcome, parameters, detail=e.message)
                continue

            if not candidates:
                ctx.record(strategy.name, AttemptOutcome.MISS, parameters)
                continue

            ctx.record(strategy.name, AttemptOutcome.HIT, parameters)
            answer = ResolvedAnswer.from_candidates(
                candidates, self._config.max_alternatives, ctx.attempts
            )
            await self._record_access(answer)
            logger.info(
                "Resolved %r via %s: %r (%d alternatives)",
                ctx.query.raw,
                strategy.name.value,
                answer.natural_key,
                len(answer.alternatives),
            )
            return answer
        return None

    async def _record_access(self, answer: ResolvedAnswer) -> None:
        """Bump access metadata of a precomputed answer. Best effort."""
        if not answer.context_type.is_precomputed or answer.record_id is None:
            return
        try:
            async with self._session_maker() as session:
                repos = self._repository_factory(session)
                await self._guard.run(
                    "record_access", repos.answers.touch(answer.record_id)
                )
        except Exception as e:
            logger.warning(
                "Failed to update access metadata for answer %d: %s",
                answer.record_id,
                e,
            )

    async def _not_found(self, ctx: ResolutionContext) -> NotFoundResult:
        async with self._session_maker() as session:
            result = await self._diagnostics.compose(
                ctx, self._repository_factory(session)
            )
        logger.info(
            "No match for %r after %d strategies (tier=%s)",
            ctx.query.raw,
            sum(1 for a in ctx.attempts if a.outcome is not AttemptOutcome.SKIPPED),
            ctx.tier.value,
        )
        return result

    async def _unexpected_failure(
        self, ctx: ResolutionContext, error: Exception
    ) -> UnexpectedFailureError:
        session_id = generate_session_id()
        logger.error(
            "Search failed [%s] for %r: %s",
            session_id,
            ctx.query.raw,
            error,
            exc_info=error,
        )
        if self._config.record_errors:
            await self._record_error(session_id, ctx, error)
        return UnexpectedFailureError(
            OPERATION,
            session_id,
            reason=str(error),
            details={"query": ctx.query.raw, "error_type": type(error).__name__},
        )

    async def _record_error(
        self, session_id: str, ctx: ResolutionContext, error: Exception
    ) -> None:
        message = str(error)
        lowered = message.lower()
        table = _TABLE_NAME.search(message)
        remedy = next((text for marker, text in _REMEDIES if marker in lowered), None)
        try:
            async with self._session_maker() as session:
                await self._repository_factory(session).errors.record(
                    session_id=session_id,
                    operation=OPERATION,
                    error_message=message,
                    safe_message=human_readable_error(message),
                    table_names=table.group(1) if table else None,
                    context={
                        "query": ctx.query.raw,
                        "normalized": ctx.query.normalized,
                        "tier": ctx.tier.value,
                        "attempts": [
                            {"strategy": a.strategy.value, "outcome": a.outcome.value}
                            for a in ctx.attempts
                        ],
                    },
                    suggested_remedy=remedy,
                )
        except Exception as record_error:
            logger.warning(
                "Could not record error %s: %s", session_id, record_error
            )
