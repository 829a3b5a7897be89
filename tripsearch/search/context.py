from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from tripsearch.config import ResolverConfig
from tripsearch.domain import (
    AttemptOutcome,
    AttemptRecord,
    ComplexityTier,
    Query,
    ResolveOptions,
    Strategy,
    StrategyHint,
)

from .shapes import IdentifierShape, detect_identifier, detect_slug
from .terms import derive_strategy_hint, spelling_variants

logger = logging.getLogger(__name__)


@dataclass
class ResolutionContext:
    """State of one resolution call, shared by every strategy it tries."""

    # === Input (immutable for the call) ===
    query: Query
    options: ResolveOptions
    config: ResolverConfig

    # === Derived before any datastore call ===
    hint: StrategyHint = StrategyHint.FUZZY
    hint_explicit: bool = False
    tier: ComplexityTier = ComplexityTier.SIMPLE
    slug: str | None = None
    identifier: IdentifierShape | None = None

    # === Trace ===
    attempts: list[AttemptRecord] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        query: Query,
        options: ResolveOptions,
        config: ResolverConfig,
    ) -> ResolutionContext:
        hint = options.strategy_hint or derive_strategy_hint(query.raw)
        explicit = options.strategy_hint is not None

        # Only a caller-supplied broad hint widens the tier
        tier = query.tier
        if hint is StrategyHint.BROAD and explicit:
            tier = ComplexityTier.COMPLEX

        return cls(
            query=query,
            options=options,
            config=config,
            hint=hint,
            hint_explicit=explicit,
            tier=tier,
            slug=detect_slug(query.raw),
            identifier=detect_identifier(query.raw),
        )

    @property
    def exact_only(self) -> bool:
        """Whether fuzzy strategies are off the table for this query."""
        if self.hint is StrategyHint.EXACT and self.hint_explicit:
            return True
        return not self.query.has_terms

    @property
    def has_shape(self) -> bool:
        return self.slug is not None or self.identifier is not None

    @property
    def exact_variations(self) -> list[str]:
        return spelling_variants(self.query.raw)

    def record(
        self,
        strategy: Strategy,
        outcome: AttemptOutcome,
        parameters: dict[str, Any] | None = None,
        detail: str | None = None,
    ) -> None:
        self.attempts.append(
            AttemptRecord(
                strategy=strategy,
                outcome=outcome,
                parameters=parameters or {},
                detail=detail,
            )
        )
        logger.debug("  %s: %s %s", strategy.value, outcome.value, parameters or "")
