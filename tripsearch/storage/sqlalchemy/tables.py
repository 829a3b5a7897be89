"""SQLAlchemy table definitions.

These are thin persistence mappings. Read models live in tripsearch.data_models.
"""

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, JSONType, TimestampMixin, utc_now


class TripTable(TimestampMixin, Base):
    """Trip records (written by external collaborators)."""

    __tablename__ = "trips"

    trip_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    trip_name: Mapped[str] = mapped_column(String(255), nullable=False)
    trip_slug: Mapped[str | None] = mapped_column(String(255), unique=True)
    status: Mapped[str | None] = mapped_column(String(50))
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)
    destinations: Mapped[str | None] = mapped_column(Text)
    total_cost: Mapped[float | None] = mapped_column(Float)
    notes: Mapped[str | None] = mapped_column(Text)
    primary_client_email: Mapped[str | None] = mapped_column(String(255))
    workflow_state: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    # Lower-cased concatenation of salient fields
    search_text: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (Index("ix_trips_updated_at", "updated_at"),)


class ClientTable(TimestampMixin, Base):
    """Client records (written by external collaborators)."""

    __tablename__ = "clients"

    client_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True)
    phone: Mapped[str | None] = mapped_column(String(50))
    home_city: Mapped[str | None] = mapped_column(String(255))
    notes: Mapped[str | None] = mapped_column(Text)
    search_text: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (Index("ix_clients_updated_at", "updated_at"),)


class PrecomputedAnswerTable(Base):
    """Precomputed natural-language answers keyed by natural key.

    No unique constraint on (natural_key, context_type): external writers
    may race, so the repository retires duplicates on refresh.
    """

    __tablename__ = "precomputed_answers"

    context_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    natural_key: Mapped[str] = mapped_column(String(255), nullable=False)
    context_type: Mapped[str] = mapped_column(String(32), nullable=False)
    formatted_response: Mapped[str] = mapped_column(Text, nullable=False)
    raw_data: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    search_keywords: Mapped[str | None] = mapped_column(Text)
    relevance_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    access_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_accessed: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("ix_precomputed_answers_key_type", "natural_key", "context_type"),
        Index("ix_precomputed_answers_access", "access_count"),
    )


class TripComponentTable(Base):
    """Semantic components of trips (name, place, date fragments)."""

    __tablename__ = "trip_components"

    component_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    trip_id: Mapped[int] = mapped_column(
        ForeignKey("trips.trip_id", ondelete="CASCADE"), nullable=False, index=True
    )
    component_type: Mapped[str] = mapped_column(String(32), nullable=False)
    component_value: Mapped[str] = mapped_column(String(255), nullable=False)
    search_weight: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    synonyms: Mapped[list[str] | None] = mapped_column(JSONType)

    __table_args__ = (
        Index("ix_trip_components_type_value", "component_type", "component_value"),
    )


class TripSearchSurfaceTable(Base):
    """Fuzzy/phonetic token index per trip, refreshed out-of-band."""

    __tablename__ = "trip_search_surface"

    trip_id: Mapped[int] = mapped_column(
        ForeignKey("trips.trip_id", ondelete="CASCADE"), primary_key=True
    )
    trip_name: Mapped[str] = mapped_column(String(255), nullable=False)
    trip_slug: Mapped[str | None] = mapped_column(String(255))
    status: Mapped[str | None] = mapped_column(String(50))
    start_date: Mapped[date | None] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)
    destinations: Mapped[str | None] = mapped_column(Text)
    primary_client_name: Mapped[str | None] = mapped_column(String(255))
    primary_client_email: Mapped[str | None] = mapped_column(String(255))
    traveler_names: Mapped[list[str] | None] = mapped_column(JSONType)
    traveler_emails: Mapped[list[str] | None] = mapped_column(JSONType)
    traveler_count: Mapped[int | None] = mapped_column(Integer)
    search_tokens: Mapped[str | None] = mapped_column(Text)
    phonetic_tokens: Mapped[str | None] = mapped_column(Text)
    normalized_trip_name: Mapped[str | None] = mapped_column(Text)
    normalized_destinations: Mapped[str | None] = mapped_column(Text)
    normalized_travelers: Mapped[str | None] = mapped_column(Text)
    normalized_emails: Mapped[str | None] = mapped_column(Text)
    last_synced: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class DatabaseErrorTable(Base):
    """Unexpected failures, keyed by the session id returned to callers."""

    __tablename__ = "db_errors"

    error_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    attempted_operation: Mapped[str] = mapped_column(String(100), nullable=False)
    error_message: Mapped[str] = mapped_column(Text, nullable=False)
    safe_message: Mapped[str] = mapped_column(Text, nullable=False)
    table_names: Mapped[str | None] = mapped_column(String(255))
    context: Mapped[dict[str, Any] | None] = mapped_column(JSONType)
    suggested_remedy: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
