"""Closed enumerations shared by the resolver, storage and API layers."""

from enum import Enum


class ComplexityTier(str, Enum):
    """How risky a query is to run against the datastore's pattern matcher."""

    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"

    @property
    def level(self) -> int:
        return _TIER_LEVELS[self]

    def at_least(self, other: "ComplexityTier") -> bool:
        return self.level >= other.level

    @classmethod
    def highest(cls, *tiers: "ComplexityTier") -> "ComplexityTier":
        return max(tiers, key=lambda tier: tier.level)


_TIER_LEVELS = {
    ComplexityTier.SIMPLE: 0,
    ComplexityTier.MODERATE: 1,
    ComplexityTier.COMPLEX: 2,
}


class StrategyHint(str, Enum):
    """Caller preference for how wide the search may go.

    exact: identifier-style lookups only (natural key, slug, id)
    fuzzy: the full chain for the classified tier
    broad: the full chain, forced onto the reduced-risk complex path
    """

    EXACT = "exact"
    FUZZY = "fuzzy"
    BROAD = "broad"


class Strategy(str, Enum):
    """Every strategy the resolver can report as the source of an answer."""

    EXACT_MATCH = "exact_match"
    SLUG_DIRECT_MATCH = "slug_direct_match"
    ID_DIRECT_MATCH = "id_direct_match"
    WEIGHTED_CLAUSE = "weighted_clause"
    REDUCED_SCAN = "reduced_scan"
    PARTIAL_LIKE = "partial_like"
    SINGLE_TERM_WORD = "single_term_word"
    TRIP_SURFACE = "trip_surface"
    SEMANTIC = "semantic"


class ContextType(str, Enum):
    """Kind of answer returned to the caller."""

    # Precomputed answer rows
    TRIP_FULL = "trip_full"
    CLIENT_PROFILE = "client_profile"
    QUICK_ANSWER = "quick_answer"
    # Answers formatted from live records
    TRIP_SLUG_MATCH = "trip_slug_match"
    TRIP_BY_ID = "trip_by_id"
    CLIENT_BY_ID = "client_by_id"
    TRIP_RECORD = "trip_record"
    CLIENT_RECORD = "client_record"
    TRIP_SEARCH_SURFACE_MATCH = "trip_search_surface_match"
    SEMANTIC_SEARCH_RESULT = "semantic_search_result"

    @property
    def is_precomputed(self) -> bool:
        return self in _PRECOMPUTED_TYPES


_PRECOMPUTED_TYPES = frozenset(
    {ContextType.TRIP_FULL, ContextType.CLIENT_PROFILE, ContextType.QUICK_ANSWER}
)


class AttemptOutcome(str, Enum):
    """What happened when the resolver tried a strategy."""

    HIT = "hit"
    MISS = "miss"
    TIMEOUT = "timeout"
    PATTERN_REJECTED = "pattern_rejected"
    SKIPPED = "skipped"


class ComponentType(str, Enum):
    """Record fragments indexed for semantic component matching."""

    CLIENT = "client"
    DESTINATION = "destination"
    DATE = "date"
    ACTIVITY = "activity"
    COST = "cost"
    DESCRIPTOR = "descriptor"
    STATUS = "status"
