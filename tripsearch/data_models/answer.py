"""Precomputed answer model."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tripsearch.domain.enums import ContextType


class PrecomputedAnswer(BaseModel):
    """Cache entry keyed by natural key: a ready-to-return formatted answer."""

    model_config = ConfigDict(from_attributes=True)

    context_id: int
    natural_key: str
    context_type: ContextType
    formatted_response: str
    raw_data: dict[str, Any] | None = None
    search_keywords: str | None = None
    relevance_date: datetime | None = None
    access_count: int = 0
    last_accessed: datetime | None = None
    is_active: bool = True
    expires_at: datetime | None = None

    def client_emails(self) -> list[str]:
        """Client emails referenced by a trip answer's payload."""
        if not self.raw_data:
            return []
        emails: list[str] = []
        for email in self.raw_data.get("client_emails") or []:
            if isinstance(email, str):
                emails.append(email)
        for client in self.raw_data.get("clients") or []:
            if isinstance(client, dict) and isinstance(client.get("email"), str):
                emails.append(client["email"])
        return list(dict.fromkeys(e.strip().lower() for e in emails if e.strip()))


class AnswerDraft(BaseModel):
    """Payload written by external collaborators when a record changes."""

    natural_key: str = Field(..., min_length=1)
    context_type: ContextType
    formatted_response: str
    raw_data: dict[str, Any] | None = None
    search_keywords: str | None = None
    relevance_date: datetime | None = None
    expires_at: datetime | None = None
