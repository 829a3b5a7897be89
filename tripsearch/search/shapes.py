"""Cheap recognizers for identifier-shaped queries.

Detectors never consume part of a query: a query either has the shape as a
whole or it does not.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from tripsearch.config.patterns import IDENTIFIER_QUALIFIERS

_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)+-\d{4}$")
_SLUG_SEPARATORS = re.compile(r"[\s_-]+")
_TOKEN_PATTERN = re.compile(r"[a-z]+|\d+")
_IDENTIFIER_NOISE = re.compile(r"[^\w\s#:.-]")

IdentifierTarget = Literal["trip", "client"]

# Largest primary key the datastore can hold (signed 64-bit)
MAX_RECORD_ID = 2**63 - 1


@dataclass(frozen=True)
class IdentifierShape:
    target: IdentifierTarget
    record_id: int


def detect_slug(query: str) -> str | None:
    """Return the canonical slug when the query is slug-shaped.

    Spaces and hyphens are interchangeable and case is ignored, so
    "Acme Retreat 2025" and "acme-retreat-2025" both yield "acme-retreat-2025".
    """
    candidate = _SLUG_SEPARATORS.sub("-", query.strip().lower()).strip("-")
    if _SLUG_PATTERN.match(candidate):
        return candidate
    return None


def detect_identifier(query: str) -> IdentifierShape | None:
    """Match a bare integer, optionally qualified ("trip id 482", "client #7").

    Any word that is not a qualifier disqualifies the query, so free text that
    happens to contain a number ("bristol 2025 getaway") is left alone.
    """
    tokens = _TOKEN_PATTERN.findall(query.lower())
    numbers = [t for t in tokens if t.isdigit()]
    words = [t for t in tokens if not t.isdigit()]

    if len(numbers) != 1:
        return None
    if not set(words) <= IDENTIFIER_QUALIFIERS:
        return None
    # "#", ":" and friends are fine; anything else means this is not an id
    if _IDENTIFIER_NOISE.search(query):
        return None

    record_id = int(numbers[0])
    if record_id > MAX_RECORD_ID:
        return None

    target: IdentifierTarget = "client" if "client" in words else "trip"
    return IdentifierShape(target=target, record_id=record_id)
