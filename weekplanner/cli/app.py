"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import List, NoReturn, Optional, Annotated

import pendulum
import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.markup import escape

from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import PlannerError
from ..domain.models import CyclicTime, TimeRange, Weekday
from ..domain.policies import available_policies
from ..adapters.yaml_schedule_source import YamlScheduleSource
from ..services.planner import PlannerService
from ..services.schedule_view import render_schedule

app = typer.Typer(
    name="weekplanner",
    help="Plan events in a repeating week and find free slots automatically",
    add_completion=False
)

console = Console()


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _build_planner(config: AppConfig, schedules_file: Optional[Path]) -> PlannerService:
    """Create a planner for the configured week and load the schedule file, if any."""
    planner = PlannerService(anchor=config.anchor(), working_hours=config.working_hours())
    path = schedules_file or config.schedules_file
    if path is not None:
        planner.load(YamlScheduleSource(path))
    return planner


def _next_occurrence(time: CyclicTime, anchor: Weekday) -> TimeRange:
    """Concrete dates of the next time ``time`` comes around."""
    now = pendulum.now()
    today = now.start_of("day")
    week_start = today.subtract(days=(int(today.day_of_week) - int(anchor)) % 7)

    occurrence = time.occurrence(week_start, anchor)
    if occurrence.end <= now:
        occurrence = time.occurrence(week_start.add(weeks=1), anchor)
    return occurrence


def _fail(error: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    raise typer.Exit(1)


@app.command()
def find(
    participants: Annotated[List[str], typer.Argument(help="Participant names or user ids (e.g. 'alice bob')")],
    host: Annotated[Optional[str], typer.Option("--host", help="Host of the event. Defaults to the first participant")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Event duration in minutes")] = None,
    policy: Annotated[Optional[str], typer.Option("--policy", help=f"One of: {', '.join(available_policies())}")] = None,
    name: Annotated[str, typer.Option("--name", help="Event name")] = "Meeting",
    location: Annotated[str, typer.Option("--location", help="Where the event takes place")] = "",
    online: Annotated[bool, typer.Option("--online", help="Mark the event as online")] = False,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    schedules_file: Annotated[Optional[Path], typer.Option("--schedules", "-s", help="YAML file with existing schedules")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Show debug logging")] = False,
):
    """
    Find the earliest slot in the week that fits the participants.

    Examples:

        weekplanner find alice bob

        weekplanner find alice bob --duration 90 --policy unrestricted

        weekplanner find alice bob carol --host bob --policy lenient -s schedules.yaml
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = _load_config(config_file)
        planner = _build_planner(config, schedules_file)

        invitees = config.resolve_participants(participants)
        host_id = config.resolve_participant(host) if host else invitees[0]
        length = duration if duration is not None else config.defaults.duration_minutes
        policy_name = policy or config.defaults.policy.value

        console.print("[bold cyan]Summary:[/bold cyan]")
        console.print(f"   Host: {host_id}")
        console.print(f"   Participants: {', '.join(invitees)}")
        console.print(f"   Duration: {length} minutes")
        console.print(f"   Policy: {policy_name}")
        console.print(f"   Week starts on: {config.anchor().display_name()}")
        console.print()

        event = planner.schedule_event(
            host=host_id,
            name=name,
            duration=length,
            invitees=invitees,
            policy=policy_name,
            location=location,
            is_online=online,
        )
    except (FileNotFoundError, ValueError, PlannerError) as e:
        _fail(e)

    if event is None:
        console.print(
            "[yellow]⚠ No available slot found.[/yellow]\n"
            "Try a shorter duration or a more lenient policy."
        )
        return

    occurrence = _next_occurrence(event.require_time(), planner.anchor)
    console.print(Panel.fit(
        f"[bold green]✓ {escape(event.name)}[/bold green]\n\n"
        f"[bold]When:[/bold] {event.time}\n"
        f"[bold]Next:[/bold] {occurrence}\n"
        f"[bold]Invitees:[/bold] {', '.join(event.invitees)}",
        title="Scheduled"
    ))


@app.command()
def show(
    user: Annotated[str, typer.Argument(help="Participant name or user id")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file")] = None,
    schedules_file: Annotated[Optional[Path], typer.Option("--schedules", "-s", help="YAML file with existing schedules")] = None,
    plain: Annotated[bool, typer.Option("--plain", help="Print as plain text instead of a table")] = False,
):
    """
    Show the schedule of one participant.
    """
    try:
        config = _load_config(config_file)
        planner = _build_planner(config, schedules_file)
        schedule = planner.get_schedule(config.resolve_participant(user))
    except (FileNotFoundError, ValueError, PlannerError) as e:
        _fail(e)

    if plain:
        console.print(render_schedule(schedule, planner.anchor), markup=False, highlight=False, end="")
        return

    table = Table(
        title=f"Schedule of {schedule.owner}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Start", style="bold yellow")
    table.add_column("End")
    table.add_column("Event", style="bold")
    table.add_column("Location", style="dim")
    table.add_column("Invitees")

    for event in schedule.sorted_events(planner.anchor):
        start_day, start, end_day, end = event.require_time().to_fields()
        place = "online" if event.is_online else event.location
        table.add_row(
            f"{start_day} {start}",
            f"{end_day} {end}",
            escape(event.name),
            escape(place),
            ", ".join(event.invitees),
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def at(
    user: Annotated[str, typer.Argument(help="Participant name or user id")],
    day: Annotated[str, typer.Argument(help="Day name, e.g. Monday")],
    time: Annotated[str, typer.Argument(help="Time as HHMM, e.g. 0930")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file")] = None,
    schedules_file: Annotated[Optional[Path], typer.Option("--schedules", "-s", help="YAML file with existing schedules")] = None,
):
    """
    Show which event a participant has at a given day and time.
    """
    try:
        config = _load_config(config_file)
        planner = _build_planner(config, schedules_file)
        user_id = config.resolve_participant(user)
        event = planner.event_at(user_id, day, time)
    except (FileNotFoundError, ValueError, PlannerError) as e:
        _fail(e)

    if event is None:
        console.print(f"[green]{user_id} is free at {Weekday.parse(day).display_name()} {time}.[/green]")
        return

    console.print(f"[bold]{escape(event.name)}[/bold] ({event.time}), hosted by {escape(event.host)}")


@app.command()
def list_participants(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to config file"
    )
):
    """
    List all configured participants.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)

    if not config.participants:
        console.print("[yellow]No participants defined in the config file.[/yellow]")
        return

    table = Table(
        title="Configured participants",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Name (Alias)", style="bold yellow")
    table.add_column("User id", style="dim")

    for participant in config.participants:
        table.add_row(
            participant.name,
            participant.user_id
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]weekplanner[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
