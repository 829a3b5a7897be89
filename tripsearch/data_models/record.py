"""Trip and client record models.

Records are owned by external writers; the resolver only reads them.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class TripRecord(BaseModel):
    """A trip row."""

    model_config = ConfigDict(from_attributes=True)

    trip_id: int
    trip_name: str
    trip_slug: str | None = None
    status: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    destinations: str | None = None
    total_cost: float | None = None
    notes: str | None = None
    primary_client_email: str | None = None
    workflow_state: dict[str, Any] | None = None
    updated_at: datetime | None = None


class ClientRecord(BaseModel):
    """A client row, keyed naturally by email."""

    model_config = ConfigDict(from_attributes=True)

    client_id: int
    full_name: str
    email: str | None = None
    phone: str | None = None
    home_city: str | None = None
    notes: str | None = None
    updated_at: datetime | None = None
