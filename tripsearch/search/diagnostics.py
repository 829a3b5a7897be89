"""Not-found responses that help the caller reformulate."""

from __future__ import annotations

import logging

from tripsearch.config import ResolverConfig
from tripsearch.domain import (
    ClientSuggestion,
    ComplexityTier,
    Diagnostics,
    NotFoundResult,
    TripSuggestion,
)
from tripsearch.storage import RepositoryFactory

from .context import ResolutionContext
from .guard import TimeoutGuard
from .terms import search_variations

logger = logging.getLogger(__name__)

NO_TERMS_MESSAGE = (
    "No distinctive search terms found in {query!r}. "
    "Use more distinctive terms such as a client name, email or trip id."
)
NOT_FOUND_MESSAGE = "No trips or clients found matching {query!r}."


class DiagnosticsComposer:
    """Build a NotFoundResult with recent records as suggestions."""

    def __init__(self, guard: TimeoutGuard, config: ResolverConfig):
        self._guard = guard
        self._config = config

    async def compose(
        self, ctx: ResolutionContext, repos: RepositoryFactory
    ) -> NotFoundResult:
        query = ctx.query
        template = NOT_FOUND_MESSAGE if query.has_terms else NO_TERMS_MESSAGE

        diagnostics = Diagnostics(
            original_query=query.raw,
            normalized_query=query.normalized,
            terms=list(query.terms),
            tier=ctx.tier,
            strategy_hint=ctx.hint,
            attempts=list(ctx.attempts),
            recent_trips=await self._recent_trips(repos),
            recent_clients=await self._recent_clients(repos),
            tips=self._tips(ctx),
        )
        return NotFoundResult(
            message=template.format(query=query.raw.strip()),
            diagnostics=diagnostics,
        )

    async def _recent_trips(self, repos: RepositoryFactory) -> list[TripSuggestion]:
        try:
            trips = await self._guard.run(
                "recent_trips", repos.trips.recent(self._config.recent_trips_limit)
            )
        except Exception as e:
            logger.warning("Recent trips unavailable for suggestions: %s", e)
            return []
        return [
            TripSuggestion(
                trip_id=t.trip_id,
                trip_name=t.trip_name,
                status=t.status,
                updated_at=t.updated_at,
            )
            for t in trips
        ]

    async def _recent_clients(
        self, repos: RepositoryFactory
    ) -> list[ClientSuggestion]:
        try:
            clients = await self._guard.run(
                "recent_clients",
                repos.clients.recent(self._config.recent_clients_limit),
            )
        except Exception as e:
            logger.warning("Recent clients unavailable for suggestions: %s", e)
            return []
        return [
            ClientSuggestion(
                client_id=c.client_id, full_name=c.full_name, email=c.email
            )
            for c in clients
        ]

    @staticmethod
    def _tips(ctx: ResolutionContext) -> list[str]:
        query = ctx.query
        tips: list[str] = []

        if not query.has_terms:
            tips.append(
                "Use more distinctive terms: a client name, an email address "
                "or a destination"
            )
        elif len(query.terms) > 1 or ctx.tier is not ComplexityTier.SIMPLE:
            shorter = " ".join(query.term_values[:2])
            tips.append(f"Try fewer terms, e.g. {shorter!r}")

        names = [v for v in search_variations(query.raw) if " " not in v]
        names = [n for n in names if n in query.term_values]
        if len(names) >= 2:
            tips.append(
                "Search for each traveler separately: "
                + ", ".join(repr(n) for n in names)
            )

        tips.append("Combine a client name with a destination, e.g. 'sara bristol'")
        tips.append("Search by client email for an exact match")
        tips.append("Use a trip id ('trip 482') or a trip slug ('acme-retreat-2025')")
        return tips
