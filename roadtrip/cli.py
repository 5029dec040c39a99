"""CLI entry point for the Road Trip Planner."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import typer
from rich.console import Console

from roadtrip.ingest.directions import RouteFetcher
from roadtrip.ingest.trip_file import load_trip
from roadtrip.models import PlanningSession
from roadtrip.output.cli_formatter import (
    print_day_plan,
    print_itinerary,
    print_optimize_summary,
    print_trip_header,
    print_violations,
)
from roadtrip.query.planner import generate_day_plan, trip_summary, update_route, validate_rules

app = typer.Typer(help="Road Trip Planner — order stops, estimate drives, plan the days.")
console = Console()


@app.command()
def main(
    trip: Path = typer.Option(..., "--trip", "-t", exists=True, dir_okay=False, help="Trip JSON file"),
    round_trip: bool = typer.Option(False, "--round-trip", help="Return to the first stop at the end"),
    optimize: bool = typer.Option(True, "--optimize/--no-optimize", help="Reorder unlocked stops"),
    day_plan: bool = typer.Option(False, "--day-plan", "-d", help="Print a day-by-day schedule"),
    route: bool = typer.Option(False, "--route", help="Fetch road geometry from Mapbox (needs MAPBOX_TOKEN)"),
    max_drive_hours: float = typer.Option(None, "--max-drive-hours", help="Max driving hours per day"),
    max_leg_hours: float = typer.Option(None, "--max-leg-hours", help="Max hours for a single leg"),
    speed: float = typer.Option(None, "--speed", help="Average speed in mph"),
    no_backtracking: bool = typer.Option(False, "--no-backtracking", help="Penalise direction reversals"),
    month: int = typer.Option(None, "--month", "-m", min=1, max=12, help="Travel month (1-12) for closure checks"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Plan a road trip from a JSON list of stops."""
    # ── Logging setup ─────────────────────────────────────────────────
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # ── Parse inputs ──────────────────────────────────────────────────
    try:
        stops, rules, origin = load_trip(trip)
        overrides = {
            "max_drive_hours_per_day": max_drive_hours,
            "max_single_leg_hours": max_leg_hours,
            "speed_mph": speed,
            "travel_month": month,
        }
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if no_backtracking:
            overrides["no_backtracking"] = True
        rules = dataclasses.replace(rules, **overrides)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    session = PlanningSession(
        stops=stops,
        rules=rules,
        round_trip=round_trip,
        optimize=optimize,
        origin=origin,
    )

    # ── Plan ──────────────────────────────────────────────────────────
    try:
        with console.status("Planning route...", spinner="dots"):
            session = update_route(session, route_provider=RouteFetcher() if route else None)
            if day_plan:
                session = generate_day_plan(session)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)

    # ── Output ────────────────────────────────────────────────────────
    print_trip_header(session, validate_rules(session.rules))
    print_itinerary(session.legs, trip_summary(session.legs, session.rules))
    print_optimize_summary(session.optimize_summary)
    print_violations(session.violations)
    if day_plan:
        print_day_plan(session.day_plan, session.legs, session.dropped_optional)


if __name__ == "__main__":
    app()
