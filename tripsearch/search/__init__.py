"""Progressive-fallback search over trips, clients and precomputed answers."""

from .classifier import classify_complexity
from .context import ResolutionContext
from .guard import TimeoutGuard
from .resolver import SearchResolver, build_query
from .semantic import (
    ComponentMatcher,
    SemanticMatch,
    TripComponentMatcher,
    extract_query_components,
    extract_trip_components,
)
from .shapes import IdentifierShape, detect_identifier, detect_slug
from .strategies import SearchStrategy
from .terms import (
    derive_strategy_hint,
    normalize_search_term,
    search_variations,
    select_weighted_terms,
)

__all__ = [
    "ComponentMatcher",
    "IdentifierShape",
    "ResolutionContext",
    "SearchResolver",
    "SearchStrategy",
    "SemanticMatch",
    "TimeoutGuard",
    "TripComponentMatcher",
    "build_query",
    "classify_complexity",
    "derive_strategy_hint",
    "detect_identifier",
    "detect_slug",
    "extract_query_components",
    "extract_trip_components",
    "normalize_search_term",
    "search_variations",
    "select_weighted_terms",
]
