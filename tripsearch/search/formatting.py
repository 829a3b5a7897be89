"""Plain-text rendering of answers built from live records."""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import date
from typing import Any

from tripsearch.data_models import (
    ClientRecord,
    PrecomputedAnswer,
    TripRecord,
    TripSurfaceRow,
)

CLIENT_DETAILS_HEADER = "=== CLIENT DETAILS ==="
DASHBOARD_HEADER = "=== TRIP STATUS ==="

# Standard number of steps in the trip workflow
WORKFLOW_TOTAL_STEPS = 12
# Assumed headroom when a trip carries a cost but no explicit budget
BUDGET_ESTIMATE_FACTOR = 1.2


def _line(label: str, value: object) -> str | None:
    if value is None or value == "":
        return None
    return f"{label}: {value}"


def _join(lines: Sequence[str | None]) -> str:
    return "\n".join(line for line in lines if line)


def _date_range(start: date | None, end: date | None) -> str | None:
    if start and end:
        return f"{start.isoformat()} to {end.isoformat()}"
    if start:
        return f"from {start.isoformat()}"
    return None


def format_trip(trip: TripRecord) -> str:
    cost = f"${trip.total_cost:,.2f}" if trip.total_cost is not None else None
    return _join(
        [
            f"Trip: {trip.trip_name} (ID {trip.trip_id})",
            _line("Slug", trip.trip_slug),
            _line("Status", trip.status),
            _line("Dates", _date_range(trip.start_date, trip.end_date)),
            _line("Destinations", trip.destinations),
            _line("Total cost", cost),
            _line("Primary client", trip.primary_client_email),
            _line("Notes", trip.notes),
        ]
    )


def format_client(client: ClientRecord) -> str:
    return _join(
        [
            f"Client: {client.full_name} (ID {client.client_id})",
            _line("Email", client.email),
            _line("Phone", client.phone),
            _line("Home city", client.home_city),
            _line("Notes", client.notes),
        ]
    )


def format_surface_match(
    row: TripSurfaceRow, score: float, matched_tokens: Sequence[str]
) -> str:
    travelers = ", ".join(row.traveler_names) if row.traveler_names else None
    return _join(
        [
            f"Trip: {row.trip_name} (ID {row.trip_id})",
            _line("Slug", row.trip_slug),
            _line("Status", row.status),
            _line("Dates", _date_range(row.start_date, row.end_date)),
            _line("Destinations", row.destinations),
            _line("Primary client", row.primary_client_name),
            _line("Travelers", travelers),
            f"Match score: {score:g} (matched: {', '.join(matched_tokens)})",
        ]
    )


def format_semantic_match(
    trip: TripRecord, score: float, matched_components: Sequence[str]
) -> str:
    return _join(
        [
            format_trip(trip),
            f"Relevance: {score:.0%} (matched: {', '.join(matched_components)})",
        ]
    )


def append_client_details(text: str, clients: Sequence[PrecomputedAnswer]) -> str:
    """Attach client profiles referenced by a trip answer."""
    if not clients:
        return text
    profiles = "\n\n".join(client.formatted_response for client in clients)
    return f"{text}\n\n{CLIENT_DETAILS_HEADER}\n{profiles}"


def _parse_date(value: Any) -> date | None:
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.replace(",", "").lstrip("$"))
        except ValueError:
            return None
    return None


def build_status_dashboard(
    raw_data: dict[str, Any] | None, today: date | None = None
) -> str | None:
    """Summarize a trip payload: phase progress, budget, countdown, status.

    Returns None unless the payload names the trip and carries at least one of
    workflow state, status, start date or cost.
    """
    if not raw_data:
        return None
    today = today or date.today()

    trip_name = raw_data.get("trip_name") or raw_data.get("natural_key")
    workflow = raw_data.get("workflow_state")
    status = raw_data.get("status")
    start = _parse_date(raw_data.get("start_date"))
    cost = _as_number(raw_data.get("total_cost"))

    if not trip_name or not (isinstance(workflow, dict) or status or start or cost):
        return None

    lines: list[str | None] = [DASHBOARD_HEADER, f"Trip: {trip_name}"]

    if isinstance(workflow, dict) and workflow.get("current_phase"):
        phase = str(workflow["current_phase"]).capitalize()
        step = workflow.get("current_step")
        if isinstance(step, int) and step > 0:
            percent = math.floor(step / WORKFLOW_TOTAL_STEPS * 100)
            lines.append(
                f"Phase: {phase} (step {step}/{WORKFLOW_TOTAL_STEPS}, {percent}%)"
            )
        else:
            lines.append(f"Phase: {phase}")

    if cost:
        budget = _as_number(raw_data.get("budget_limit"))
        budget = budget or cost * BUDGET_ESTIMATE_FACTOR
        percent = math.floor(cost / budget * 100)
        lines.append(f"Budget: ${cost:,.0f} / ${budget:,.0f} ({percent}%)")

    if start:
        days = max((start - today).days, 0)
        if days == 0:
            lines.append("Departure: today")
        elif days == 1:
            lines.append("Departure: tomorrow")
        else:
            lines.append(f"Departure: in {days} days")

    if status:
        lines.append(f"Status: {str(status).replace('_', ' ').capitalize()}")

    return _join(lines)


def with_dashboard(text: str, raw_data: dict[str, Any] | None) -> str:
    dashboard = build_status_dashboard(raw_data)
    return f"{dashboard}\n\n{text}" if dashboard else text
