"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.table import Table

from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import AvailabilityError
from ..domain.models import Service, SlotResult, SlotStatus, TimeSlot, format_hhmm
from ..domain.presentation import group_by_period
from ..services.availability import create_service

app = typer.Typer(
    name="agendo-slots",
    help="Compute bookable time slots for a service provider",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)

PERIOD_TITLES = {
    "morning": "Morning",
    "afternoon": "Afternoon",
    "evening": "Evening",
}


def _configure_logging(verbose: bool) -> None:
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _resolve_date(date_option: Optional[str], tz: str):
    """Parse ``--date`` or fall back to today in the configured timezone."""
    if not date_option:
        return pendulum.today(tz).date()

    try:
        return pendulum.from_format(date_option, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Could not parse date '{date_option}': {e}[/red]")
        raise typer.Exit(1)


def _render_slot_table(title: str, slots: List[TimeSlot]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan", title_justify="left")
    table.add_column("Time", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Status")

    for slot in slots:
        if not slot.is_available:
            status = f"[dim]{slot.reason}[/dim]"
        elif slot.near_closing:
            status = f"[yellow]{slot.reason}[/yellow]"
        else:
            status = f"[green]{slot.reason}[/green]"
        table.add_row(slot.format_display(), str(slot.score), status)

    return table


def _print_result(result: SlotResult, show_all: bool, ranked: bool) -> None:
    if result.status is SlotStatus.SCHEDULE_NOT_FOUND:
        console.print(
            f"[yellow]⚠ Provider {result.provider_id} has no availability configured.[/yellow]"
        )
        return

    if result.status is SlotStatus.NOT_WORKING_DAY:
        console.print(
            f"[yellow]⚠ Provider {result.provider_id} does not work on "
            f"{result.date.strftime('%A, %Y-%m-%d')}. Please choose another date.[/yellow]"
        )
        return

    available = result.available
    if not available and not show_all:
        console.print(
            "[yellow]⚠ No available time slots on this date.[/yellow]\n"
            "Try another day or a shorter service."
        )
        return

    console.print(
        f"[bold green]✓ {len(available)} of {len(result.slots)} slot(s) available "
        f"on {result.date.isoformat()}[/bold green]\n"
    )

    if ranked:
        console.print(_render_slot_table("Best slots", result.ranked()))
        return

    slots = result.slots if show_all else available
    for period, period_slots in group_by_period(slots).items():
        if period_slots:
            console.print(_render_slot_table(PERIOD_TITLES[period], period_slots))
            console.print()


@app.command()
def slots(
    provider_id: Annotated[str, typer.Argument(help="Provider id")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./agendo_slots.yaml")] = None,
    date: Annotated[Optional[str], typer.Option("--date", help="Date to check (YYYY-MM-DD). Defaults to today")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Service duration in minutes")] = None,
    buffer: Annotated[int, typer.Option("--buffer", "-b", help="Buffer after the service in minutes")] = 0,
    show_all: Annotated[bool, typer.Option("--all", help="Also list unavailable candidates with the reason.")] = False,
    ranked: Annotated[bool, typer.Option("--ranked", help="Order available slots by score instead of time.")] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print the result as JSON.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Show the bookable slots of a provider on a date.

    Examples:

        agendo-slots slots 42 --date 2025-03-10 --duration 60

        agendo-slots slots 42 --all

        agendo-slots slots 42 --ranked --buffer 15
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        day = _resolve_date(date, config.timezone)
        service = Service(
            duration_minutes=duration if duration is not None else config.slots.default_duration_minutes,
            buffer_time=buffer,
        )

        availability = create_service(config)
        result = asyncio.run(
            availability.compute_available_slots(provider_id, day, service)
        )

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except (AvailabilityError, ValueError) as e:
        logger.debug("Slot computation failed", exc_info=True)
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    console.print()
    _print_result(result, show_all=show_all, ranked=ranked)


@app.command()
def week(
    provider_id: Annotated[str, typer.Argument(help="Provider id")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Show the weekly working hours of a provider.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        availability = create_service(config)
        overview = asyncio.run(availability.get_weekly_availability(provider_id))

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except (AvailabilityError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(
        title=f"Weekly availability of provider {provider_id}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Day", style="bold yellow")
    table.add_column("Hours")
    table.add_column("Interval", justify="right")

    for day in overview:
        if day.is_available:
            hours = f"{format_hhmm(day.start_time)} - {format_hhmm(day.end_time)}"
        else:
            hours = "[dim]Closed[/dim]"
        table.add_row(day.day_name, hours, f"{day.interval_minutes} min")

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]agendo-slots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
