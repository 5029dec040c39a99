"""Rich CLI output for road trip plans."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from roadtrip.clock import fmt, hours_to_label, minutes_to_hhmm
from roadtrip.models import (
    DayPlanEntry,
    Leg,
    OptimizeSummary,
    PlanningSession,
    TripSummary,
    Violation,
)
from roadtrip.query.dayplan import schedule_day

console = Console()


def print_trip_header(session: PlanningSession, warnings: list[str]) -> None:
    """Print a summary panel of the trip settings."""
    rules = session.rules
    lines = [
        f"Stops:    {len(session.stops)}"
        + (f" (from {session.origin.name})" if session.origin else ""),
        f"Mode:     {'Optimized' if session.optimize else 'Manual'}"
        f" | {'Round trip' if session.round_trip else 'One-way'}",
        f"Driving:  {rules.wake_time.strftime('%H:%M')}–{rules.sleep_time.strftime('%H:%M')},"
        f" max {fmt(rules.max_drive_hours_per_day)} hr/day,"
        f" max {fmt(rules.max_single_leg_hours)} hr/leg, {fmt(rules.speed_mph, 0)} mph",
    ]
    for warning in warnings:
        lines.append(f"[yellow]Warning: {warning}[/yellow]")
    console.print(Panel("\n".join(lines), title="Road Trip Planner", border_style="blue"))


def print_itinerary(legs: list[Leg], summary: TripSummary) -> None:
    """Print one row per leg, then the trip totals."""
    if not legs:
        console.print("[dim]Select at least two stops to build a route.[/dim]")
        return

    table = Table(title="Itinerary", show_lines=False)
    table.add_column("#", justify="right")
    table.add_column("Leg")
    table.add_column("Miles", justify="right")
    table.add_column("Drive", justify="right")
    for i, leg in enumerate(legs, 1):
        table.add_row(
            str(i),
            f"{leg.from_name} → {leg.to_name}",
            f"{fmt(leg.miles)} mi",
            hours_to_label(leg.hours),
        )
    console.print(table)

    longest_style = "red" if summary.longest_exceeds_limit else "green"
    console.print(
        f"Total: [bold]{fmt(summary.total_miles)} mi[/bold]"
        f"  |  {fmt(summary.total_hours)} hr driving"
        f"  |  {summary.required_days} day(s)"
        f"  |  Longest leg: [{longest_style}]{fmt(summary.longest_leg_hours)} hr[/{longest_style}]"
    )


def print_optimize_summary(summary: OptimizeSummary | None) -> None:
    if summary is None:
        return
    lines = [
        f"Miles:        {fmt(summary.before_miles)} → {fmt(summary.after_miles)} mi",
        f"Longest leg:  {fmt(summary.before_longest_hours)} → {fmt(summary.after_longest_hours)} hr",
        f"[dim]Before:[/dim] {' → '.join(summary.before_order)}",
        f"[dim]After:[/dim]  {' → '.join(summary.after_order)}",
    ]
    console.print(Panel("\n".join(lines), title="Optimization Summary", border_style="cyan"))


def print_violations(violations: list[Violation]) -> None:
    if not violations:
        console.print("[green]No issues detected based on your rules.[/green]")
        return
    for v in violations:
        console.print(f"[bold yellow]{v.type.value}:[/bold yellow] {v.message}")


def print_day_plan(days: list[DayPlanEntry], legs: list[Leg], dropped: list[str]) -> None:
    """Print a timed card per driving day."""
    if not days:
        console.print("[dim]No day plan — build a route first.[/dim]")
        return

    if dropped:
        plural = "s" if len(dropped) > 1 else ""
        console.print(
            f"[cyan]Optional stop{plural} skipped to fit your driving window:[/cyan] "
            f"[bold]{', '.join(dropped)}[/bold]"
        )

    for d in days:
        parts: list[str] = []
        rows = schedule_day(d, legs)
        if rows:
            first = legs[rows[0].leg_index]
            parts.append(f"{minutes_to_hhmm(rows[0].depart_minutes)}  {first.from_name}")
        for row in rows:
            leg = legs[row.leg_index]
            parts.append(f"   [dim]{fmt(leg.miles)} mi · {fmt(leg.hours)} hr drive[/dim]")
            parts.append(f"{minutes_to_hhmm(row.arrive_minutes)}  {leg.to_name}")
            if row.visit_minutes_after:
                parts.append(f"   [green]Explore ({hours_to_label(row.visit_minutes_after / 60)})[/green]")

        title = (
            f"[bold]Day {d.day}[/bold]  {fmt(d.miles)} mi | {fmt(d.drive_hours)} hr drive"
            f" | {minutes_to_hhmm(d.start_minutes)}–{minutes_to_hhmm(d.end_minutes)}"
        )
        console.print(Panel("\n".join(parts), title=title, border_style="green"))
