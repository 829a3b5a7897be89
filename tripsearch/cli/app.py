"""Trip search CLI using Typer.

Resolves lookups from the terminal with the same resolver the HTTP API uses,
and manages the local database.
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tripsearch.api.app import configure_logging
from tripsearch.config import ResolverConfig, get_settings
from tripsearch.domain import (
    NotFoundResult,
    ResolvedAnswer,
    ResolveOptions,
    SearchError,
    SearchResult,
    StrategyHint,
)
from tripsearch.search import SearchResolver, extract_trip_components
from tripsearch.storage import (
    RepositoryFactory,
    create_engine,
    init_database,
    make_session_maker,
)

app = typer.Typer(
    name="tripsearch",
    help="Trip Search - progressive-fallback lookup of trips and clients",
    no_args_is_help=True,
)
console = Console()

EXIT_NOT_FOUND = 1
EXIT_ERROR = 2


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render_answer(answer: ResolvedAnswer) -> None:
    title = f"[bold green]{answer.natural_key}[/bold green]"
    console.print(Panel(answer.formatted_text, title=title, expand=False))
    console.print(
        f"[dim]{answer.context_type.value} via {answer.strategy.value}[/dim]"
    )
    if answer.matched_terms:
        console.print(f"[dim]Matched: {', '.join(answer.matched_terms)}[/dim]")

    if answer.alternatives:
        table = Table(title="Alternatives", show_lines=False)
        table.add_column("Natural key", style="cyan")
        table.add_column("Type")
        table.add_column("Score", justify="right")
        for alt in answer.alternatives:
            table.add_row(alt.natural_key, alt.context_type.value, f"{alt.score:.2f}")
        console.print(table)


def _render_not_found(result: NotFoundResult) -> None:
    diag = result.diagnostics
    console.print(f"\n[bold yellow]{result.message}[/bold yellow]")
    console.print(
        f"[dim]Normalized: {diag.normalized_query!r} | tier: {diag.tier.value} "
        f"| hint: {diag.strategy_hint.value}[/dim]"
    )
    if diag.terms:
        terms = ", ".join(f"{t.term} ({t.reason}, {t.weight:g})" for t in diag.terms)
        console.print(f"[dim]Terms: {terms}[/dim]")

    attempts = Table(title="Strategies tried")
    attempts.add_column("Strategy", style="cyan")
    attempts.add_column("Outcome")
    attempts.add_column("Detail", style="dim")
    for attempt in diag.attempts:
        attempts.add_row(
            attempt.strategy.value, attempt.outcome.value, attempt.detail or ""
        )
    console.print(attempts)

    if diag.recent_trips or diag.recent_clients:
        console.print("\n[bold]Did you mean[/bold]")
        for trip in diag.recent_trips:
            status = f" [dim]({trip.status})[/dim]" if trip.status else ""
            console.print(f"  trip {trip.trip_id}: {trip.trip_name}{status}")
        for client in diag.recent_clients:
            email = f" <{client.email}>" if client.email else ""
            console.print(f"  client {client.client_id}: {client.full_name}{email}")

    for tip in diag.tips:
        console.print(f"[dim]- {tip}[/dim]")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _resolve(query: str, options: ResolveOptions) -> SearchResult:
    settings = get_settings()
    engine = create_engine(settings)
    try:
        await init_database(engine)
        resolver = SearchResolver(
            make_session_maker(engine), ResolverConfig.from_settings(settings)
        )
        return await resolver.resolve(query, options)
    finally:
        await engine.dispose()


@app.command("resolve")
def resolve_command(
    query: str = typer.Argument(..., help="Free-text trip or client lookup"),
    hint: StrategyHint | None = typer.Option(
        None, "--hint", help="Strategy hint: exact, fuzzy or broad"
    ),
    everything: bool = typer.Option(
        True,
        "--everything/--no-everything",
        help="Attach client profiles and the status dashboard to trip answers",
    ),
) -> None:
    """Resolve QUERY and print the answer or reformulation hints."""
    configure_logging()
    options = ResolveOptions(include_everything=everything, strategy_hint=hint)
    try:
        result = asyncio.run(_resolve(query, options))
    except SearchError as e:
        console.print(f"[red]{e.message}[/red] [dim]({e.code.value})[/dim]")
        raise typer.Exit(code=EXIT_ERROR) from e

    if isinstance(result, NotFoundResult):
        _render_not_found(result)
        raise typer.Exit(code=EXIT_NOT_FOUND)
    _render_answer(result)


async def _init_db() -> None:
    engine = create_engine(get_settings())
    try:
        await init_database(engine)
    finally:
        await engine.dispose()


@app.command("init-db")
def init_db_command() -> None:
    """Create all tables that do not exist yet."""
    configure_logging()
    asyncio.run(_init_db())
    url = get_settings().database_url.split("@")[-1]
    console.print(f"[green]Database ready:[/green] {url}")


async def _index_components() -> tuple[int, int]:
    engine = create_engine(get_settings())
    try:
        await init_database(engine)
        async with make_session_maker(engine)() as session:
            repos = RepositoryFactory(session)
            trips = await repos.trips.list_all()
            written = 0
            for trip in trips:
                written += await repos.components.replace_for_trip(
                    trip.trip_id, extract_trip_components(trip)
                )
        return len(trips), written
    finally:
        await engine.dispose()


@app.command("index-components")
def index_components_command() -> None:
    """Rebuild the semantic component index from the trip records."""
    configure_logging()
    trips, components = asyncio.run(_index_components())
    console.print(
        f"[green]Indexed {components} components across {trips} trips[/green]"
    )


def cli() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    cli()
