"""Semantic component model."""

from pydantic import BaseModel, ConfigDict, Field

from tripsearch.domain.enums import ComponentType


class TripComponent(BaseModel):
    """A precomputed fragment of a trip (client name, place, date...)."""

    model_config = ConfigDict(from_attributes=True)

    trip_id: int
    component_type: ComponentType
    component_value: str
    search_weight: float = 1.0
    synonyms: list[str] = Field(default_factory=list)
