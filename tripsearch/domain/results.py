"""Request-scoped query and result structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from .enums import AttemptOutcome, ComplexityTier, ContextType, Strategy, StrategyHint

TermReason = Literal[
    "identifier",
    "name",
    "location",
    "descriptor",
    "long_word",
    "generic",
]


@dataclass(frozen=True)
class WeightedTerm:
    """A query token annotated with its importance and why it was chosen."""

    term: str
    weight: float
    reason: TermReason
    position: int = 0


@dataclass(frozen=True)
class Query:
    """Normalized view of one raw query, built before any datastore call."""

    raw: str
    normalized: str
    terms: tuple[WeightedTerm, ...]
    tier: ComplexityTier

    @property
    def term_values(self) -> list[str]:
        return [t.term for t in self.terms]

    @property
    def has_terms(self) -> bool:
        return bool(self.terms)


@dataclass(frozen=True)
class ResolveOptions:
    include_everything: bool = True
    strategy_hint: StrategyHint | None = None


@dataclass
class MatchCandidate:
    """One ranked hit produced by a strategy."""

    natural_key: str
    formatted_text: str
    context_type: ContextType
    strategy: Strategy
    score: float = 0.0
    matched_source: str | None = None  # column or index the match came from
    matched_terms: list[str] = field(default_factory=list)
    record_id: int | None = None
    raw_data: dict[str, Any] | None = None


@dataclass(frozen=True)
class AttemptRecord:
    """Diagnostic trace of one strategy attempt."""

    strategy: Strategy
    outcome: AttemptOutcome
    parameters: dict[str, Any] = field(default_factory=dict)
    detail: str | None = None


@dataclass
class ResolvedAnswer:
    """Successful resolution: a primary answer plus bounded alternatives."""

    formatted_text: str
    context_type: ContextType
    natural_key: str
    strategy: Strategy
    matched_terms: list[str]
    alternatives: list[MatchCandidate] = field(default_factory=list)
    record_id: int | None = None
    score: float = 0.0
    attempts: list[AttemptRecord] = field(default_factory=list)

    @classmethod
    def from_candidates(
        cls,
        candidates: list[MatchCandidate],
        max_alternatives: int,
        attempts: list[AttemptRecord] | None = None,
    ) -> ResolvedAnswer:
        primary, *rest = candidates
        return cls(
            formatted_text=primary.formatted_text,
            context_type=primary.context_type,
            natural_key=primary.natural_key,
            strategy=primary.strategy,
            matched_terms=list(primary.matched_terms),
            alternatives=rest[:max_alternatives],
            record_id=primary.record_id,
            score=primary.score,
            attempts=list(attempts or []),
        )


@dataclass(frozen=True)
class TripSuggestion:
    trip_id: int
    trip_name: str
    status: str | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class ClientSuggestion:
    client_id: int
    full_name: str
    email: str | None = None


@dataclass
class Diagnostics:
    """Everything a caller needs to reformulate a failed query."""

    original_query: str
    normalized_query: str
    terms: list[WeightedTerm]
    tier: ComplexityTier
    strategy_hint: StrategyHint
    attempts: list[AttemptRecord] = field(default_factory=list)
    recent_trips: list[TripSuggestion] = field(default_factory=list)
    recent_clients: list[ClientSuggestion] = field(default_factory=list)
    tips: list[str] = field(default_factory=list)


@dataclass
class NotFoundResult:
    message: str
    diagnostics: Diagnostics
    error: Literal["not_found"] = "not_found"


SearchResult = ResolvedAnswer | NotFoundResult
