"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Dict, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..adapters.google_calendar_client import GoogleCalendarClient
from ..adapters.mock_calendar_client import MockCalendarClient
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import FreeSlotsError
from ..domain.models import AvailabilitySlot, CalendarEvent
from ..services.availability import AvailabilityService
from ..services.presenter import SchedulingMessagePresenter

app = typer.Typer(
    name="freeslots",
    help="Find free meeting slots on your Google Calendar",
    add_completion=False
)

console = Console()

WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
STATUS_STYLES = {
    "available": "[green]Good Availability[/green]",
    "limited": "[yellow]Limited Availability[/yellow]",
    "busy": "[red]Fully Booked[/red]",
}

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use mock calendar data instead of Google Calendar."),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    freeslots - free/busy helper for scheduling coffee chats.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config = AppConfig.load_from_yaml(config_file or get_default_config_path())
    package_logger = logging.getLogger("freeslots")
    if package_logger.getEffectiveLevel() > logging.DEBUG:
        package_logger.setLevel(config.log_level)
    return config


def _build_service(config: AppConfig, mock: bool, announce: bool = True) -> AvailabilityService:
    """Create the availability service backed by the real or the mock calendar."""
    if mock:
        if announce:
            console.print("[yellow]⚠  MOCK MODE: using test calendar data[/yellow]\n")
        source = MockCalendarClient(
            data_file=config.mock_data_file,
            user_email=config.google.user_email,
        )
    else:
        source = _build_google_client(config)

    return AvailabilityService(event_source=source)


def _build_google_client(config: AppConfig) -> GoogleCalendarClient:
    return GoogleCalendarClient(
        access_token=config.google.resolve_access_token(),
        calendar_id=config.google.calendar_id,
        user_email=config.google.user_email,
    )


def _parse_date(value: Optional[str], tz: str):
    if not value:
        return pendulum.now(tz).date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Could not parse date '{value}': {e}[/red]")
        raise typer.Exit(1)


def _render_day(day: str, slots: List[AvailabilitySlot]) -> None:
    status = SchedulingMessagePresenter.availability_status(slots)
    console.print(f"[bold]{pendulum.parse(day).format('dddd, MMM D')}[/bold]  {STATUS_STYLES[status]}")

    if not slots:
        console.print("  [dim]No availability[/dim]")
        return

    for slot in slots:
        duration = SchedulingMessagePresenter.format_duration(slot.duration_minutes)
        console.print(f"  {slot.start.format('h:mm A')} - {slot.end.format('h:mm A')}  [dim]{duration}[/dim]")


@app.command()
def availability(
    date: Annotated[Optional[str], typer.Argument(help="First date (YYYY-MM-DD). Defaults to today.")] = None,
    days: Annotated[int, typer.Option("--days", "-n", help="Number of consecutive days to check.")] = 1,
    as_json: Annotated[bool, typer.Option("--json", help="Print slots as JSON.")] = False,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show free slots for one or more days.

    Examples:

        freeslots availability
        freeslots availability 2024-11-25 --days 5
        freeslots availability --mock --json
    """
    try:
        config = _load_config(config_file)
        preferences = config.scheduling_preferences()
        start_date = _parse_date(date, preferences.timezone)
        service = _build_service(config, mock, announce=not as_json)

        result: Dict[str, List[AvailabilitySlot]] = asyncio.run(
            service.get_availability_for_days(days, preferences, start_date=start_date)
        )
    except (FreeSlotsError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        payload = {day: [slot.to_dict() for slot in slots] for day, slots in result.items()}
        typer.echo(json.dumps(payload, indent=2))
        return

    for day, slots in result.items():
        _render_day(day, slots)
        console.print()


@app.command()
def suggest(
    contact_email: Annotated[str, typer.Argument(help="E-mail address of the contact.")],
    name: Annotated[Optional[str], typer.Option("--name", help="Contact's first name for the greeting.")] = None,
    days: Annotated[int, typer.Option("--days", "-n", help="How many days ahead to search.")] = 7,
    limit: Annotated[int, typer.Option("--limit", help="Maximum number of slots to offer.")] = 3,
    start: Annotated[Optional[str], typer.Option("--start", help="First date (YYYY-MM-DD). Defaults to today.")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Suggest meeting times for a contact and draft the outreach message.
    """
    try:
        config = _load_config(config_file)
        preferences = config.scheduling_preferences()
        start_date = _parse_date(start, preferences.timezone)
        service = _build_service(config, mock)

        suggestion = asyncio.run(
            service.suggest_meeting_times(
                contact_email,
                preferences,
                days_ahead=days,
                limit=limit,
                contact_name=name,
                start_date=start_date,
            )
        )
    except (FreeSlotsError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if suggestion.suggestions:
        console.print(f"[bold green]✓ {len(suggestion.suggestions)} slot(s) for {contact_email}:[/bold green]")
        for slot in suggestion.suggestions:
            console.print(f"  {slot.format_display()}")
    else:
        console.print(f"[yellow]⚠ No free slots found for {contact_email}.[/yellow]")

    console.print()
    console.print(Panel.fit(suggestion.message, title="Message"))


@app.command()
def book(
    start: Annotated[str, typer.Argument(help="Start time, e.g. '2024-11-25 10:00'.")],
    attendees: Annotated[List[str], typer.Argument(help="Attendee e-mail addresses.")],
    summary: Annotated[str, typer.Option("--summary", "-s", help="Event title.")] = "Coffee chat",
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Length in minutes.")] = None,
    location: Annotated[Optional[str], typer.Option("--location", help="Event location.")] = None,
    config_file: ConfigOption = None,
):
    """
    Create a calendar event and invite the attendees.
    """
    try:
        config = _load_config(config_file)
        preferences = config.scheduling_preferences()
        tz = preferences.timezone

        event_start = pendulum.parse(start, tz=tz)
        event_end = event_start.add(minutes=duration or preferences.meeting_duration_minutes)

        client = _build_google_client(config)
        created = client.create_event(
            summary=summary,
            start=event_start,
            end=event_end,
            attendee_emails=attendees,
            timezone=tz,
            location=location,
        )
    except (FreeSlotsError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓ Event created:[/green] {created.get('htmlLink') or created.get('id')}")


@app.command()
def events(
    date: Annotated[Optional[str], typer.Argument(help="First date (YYYY-MM-DD). Defaults to today.")] = None,
    days: Annotated[int, typer.Option("--days", "-n", help="Number of consecutive days to list.")] = 1,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List the events that block time on your calendar.

    Declined, cancelled and "show as free" events are left out.
    """
    try:
        config = _load_config(config_file)
        preferences = config.scheduling_preferences()
        start_date = _parse_date(date, preferences.timezone)
        service = _build_service(config, mock)

        result: Dict[str, List[CalendarEvent]] = asyncio.run(
            service.get_events_for_days(days, preferences, start_date=start_date)
        )
    except (FreeSlotsError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not any(result.values()):
        console.print("[dim]No events[/dim]")
        return

    table = Table(
        title="Calendar Events",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Date", style="bold yellow")
    table.add_column("Time")
    table.add_column("Event")

    for day, day_events in result.items():
        label = pendulum.parse(day).format("ddd, MMM D")
        for event in day_events:
            table.add_row(label, event.format_time(), event.summary)

    console.print()
    console.print(table)
    console.print()


@app.command()
def is_free(
    start: Annotated[str, typer.Argument(help="Start time, e.g. '2024-11-25 10:00'.")],
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Length in minutes.")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Check whether a time range is free on your calendar.
    """
    try:
        config = _load_config(config_file)
        preferences = config.scheduling_preferences()

        range_start = pendulum.parse(start, tz=preferences.timezone)
        range_end = range_start.add(minutes=duration or preferences.meeting_duration_minutes)
        service = _build_service(config, mock)

        free = asyncio.run(service.is_available(range_start, range_end, preferences))
    except (FreeSlotsError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    span = f"{range_start.format('ddd, MMM D h:mm A')} - {range_end.format('h:mm A')}"
    if free:
        console.print(f"[bold green]✓ Free:[/bold green] {span}")
    else:
        console.print(f"[bold red]✗ Busy:[/bold red] {span}")


@app.command()
def check_preferences(
    config_file: ConfigOption = None,
):
    """
    Validate and show the configured scheduling preferences.
    """
    try:
        config = _load_config(config_file)
        preferences = config.scheduling_preferences()
    except FreeSlotsError as e:
        console.print(f"[bold red]Invalid preferences:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(
        title="Scheduling Preferences",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Setting", style="bold yellow")
    table.add_column("Value")

    table.add_row("Timezone", preferences.timezone)
    table.add_row("Working days", ", ".join(WEEKDAY_LABELS[d] for d in sorted(preferences.working_days)))
    table.add_row(
        "Working hours",
        f"{preferences.working_hours_start:%H:%M} - {preferences.working_hours_end:%H:%M}",
    )
    table.add_row("Meeting duration", f"{preferences.meeting_duration_minutes} min")
    table.add_row("Buffer", f"{preferences.buffer_minutes} min")

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]freeslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
