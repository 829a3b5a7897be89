"""Request and response models for the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from tripsearch.domain import (
    AttemptOutcome,
    ComplexityTier,
    ContextType,
    NotFoundResult,
    ResolvedAnswer,
    Strategy,
    StrategyHint,
)


class ResolveRequest(BaseModel):
    """Closed request body for a resolve call."""

    model_config = ConfigDict(extra="forbid")

    query: str = Field(..., min_length=1, max_length=500)
    include_everything: bool = True
    strategy_hint: StrategyHint | None = None


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class WeightedTermModel(_FromAttributes):
    term: str
    weight: float
    reason: str


class AttemptModel(_FromAttributes):
    strategy: Strategy
    outcome: AttemptOutcome
    parameters: dict[str, Any] = Field(default_factory=dict)
    detail: str | None = None


class AlternativeModel(_FromAttributes):
    natural_key: str
    formatted_text: str
    context_type: ContextType
    strategy: Strategy
    score: float
    matched_terms: list[str] = Field(default_factory=list)
    record_id: int | None = None


class ResolvedResponse(_FromAttributes):
    formatted_text: str
    context_type: ContextType
    natural_key: str
    strategy: Strategy
    matched_terms: list[str]
    alternatives: list[AlternativeModel] = Field(default_factory=list)
    record_id: int | None = None
    score: float = 0.0
    attempts: list[AttemptModel] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ResolvedAnswer) -> ResolvedResponse:
        return cls.model_validate(result)


class TripSuggestionModel(_FromAttributes):
    trip_id: int
    trip_name: str
    status: str | None = None
    updated_at: datetime | None = None


class ClientSuggestionModel(_FromAttributes):
    client_id: int
    full_name: str
    email: str | None = None


class DiagnosticsModel(_FromAttributes):
    original_query: str
    normalized_query: str
    terms: list[WeightedTermModel]
    tier: ComplexityTier
    strategy_hint: StrategyHint
    attempts: list[AttemptModel]
    recent_trips: list[TripSuggestionModel]
    recent_clients: list[ClientSuggestionModel]
    tips: list[str]


class NotFoundResponse(_FromAttributes):
    error: Literal["not_found"] = "not_found"
    message: str
    diagnostics: DiagnosticsModel

    @classmethod
    def from_result(cls, result: NotFoundResult) -> NotFoundResponse:
        return cls.model_validate(result)


class ErrorResponse(BaseModel):
    detail: str
    code: str
    session_id: str | None = None


class HealthResponse(BaseModel):
    status: Literal["ok", "degraded"]
    version: str
    strategies: list[Strategy]
