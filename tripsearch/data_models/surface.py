"""Trip search surface model."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TripSurfaceRow(BaseModel):
    """One row of the externally maintained fuzzy/phonetic trip index."""

    model_config = ConfigDict(from_attributes=True)

    trip_id: int
    trip_name: str
    trip_slug: str | None = None
    status: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    destinations: str | None = None
    primary_client_name: str | None = None
    primary_client_email: str | None = None
    traveler_names: list[str] = Field(default_factory=list)
    traveler_emails: list[str] = Field(default_factory=list)
    traveler_count: int = 0
    search_tokens: str = ""
    phonetic_tokens: str = ""
    normalized_trip_name: str = ""
    normalized_destinations: str = ""
    normalized_travelers: str = ""
    normalized_emails: str = ""
    last_synced: datetime | None = None

    @field_validator("traveler_names", "traveler_emails", mode="before")
    @classmethod
    def _only_strings(cls, v: object) -> list[str]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, str)]

    @field_validator(
        "search_tokens",
        "phonetic_tokens",
        "normalized_trip_name",
        "normalized_destinations",
        "normalized_travelers",
        "normalized_emails",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, v: str | None) -> str:
        return v or ""

    @field_validator("traveler_count", mode="before")
    @classmethod
    def _none_to_zero(cls, v: int | None) -> int:
        return v or 0
