"""Resolver domain: enums, query/result types and the error taxonomy."""

from .enums import (
    AttemptOutcome,
    ComplexityTier,
    ComponentType,
    ContextType,
    Strategy,
    StrategyHint,
)
from .exceptions import (
    ErrorCode,
    InvalidInputError,
    PatternRejectedError,
    RecoverableSearchError,
    RecoverableTimeoutError,
    SearchError,
    UnexpectedFailureError,
)
from .results import (
    AttemptRecord,
    ClientSuggestion,
    Diagnostics,
    MatchCandidate,
    NotFoundResult,
    Query,
    ResolveOptions,
    ResolvedAnswer,
    SearchResult,
    TripSuggestion,
    WeightedTerm,
)

__all__ = [
    # Enums
    "AttemptOutcome",
    "ComplexityTier",
    "ComponentType",
    "ContextType",
    "Strategy",
    "StrategyHint",
    # Errors
    "ErrorCode",
    "InvalidInputError",
    "PatternRejectedError",
    "RecoverableSearchError",
    "RecoverableTimeoutError",
    "SearchError",
    "UnexpectedFailureError",
    # Results
    "AttemptRecord",
    "ClientSuggestion",
    "Diagnostics",
    "MatchCandidate",
    "NotFoundResult",
    "Query",
    "ResolveOptions",
    "ResolvedAnswer",
    "SearchResult",
    "TripSuggestion",
    "WeightedTerm",
]
