"""Pydantic read models for the record and answer stores."""

from .answer import AnswerDraft, PrecomputedAnswer
from .component import TripComponent
from .record import ClientRecord, TripRecord
from .surface import TripSurfaceRow

__all__ = [
    "AnswerDraft",
    "ClientRecord",
    "PrecomputedAnswer",
    "TripComponent",
    "TripRecord",
    "TripSurfaceRow",
]
