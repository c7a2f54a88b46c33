"""
Main CLI application for TripNav
Provides commands for planning trips, previewing routes and simulating navigation
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from tripnav.config.manager import ConfigManager, ConfigManagerError
from tripnav.config.models import NavigationSettings, TripNavConfig, TripRequest
from tripnav.config.parser import ConfigParser, ConfigParserError
from tripnav.core.formatting import format_distance, format_duration, format_route_info
from tripnav.core.models import NavigationStatus, Trip
from tripnav.directions.client import OSRMDirectionsClient
from tripnav.directions.gateway import DirectionsGateway
from tripnav.directions.offline import StraightLineGateway
from tripnav.navigation.location import ReplayGeolocationSource, TraceError
from tripnav.navigation.session import NavigationSession
from tripnav.navigation.state import NavigationState
from tripnav.planning.optimizer import RouteOptimizer
from tripnav.planning.preview import CompleteRouteCalculator, RouteLegs

# Initialize Typer app
app = typer.Typer(
    name="tripnav",
    help="TripNav - Trip stop ordering, route previews and turn-by-turn navigation",
    add_completion=False,
)

# Console for rich output
console = Console()


def load_config(config_path: Optional[Path]) -> TripNavConfig:
    """Load configuration or exit with a readable error"""
    try:
        return ConfigManager().load_config(config_path)
    except ConfigManagerError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def load_trip_request(trip_file: Path) -> TripRequest:
    """Load a trip request file or exit with a readable error"""
    try:
        return ConfigParser.parse_trip_request(trip_file)
    except ConfigParserError as e:
        console.print(f"[red]Invalid trip file: {e}[/red]")
        raise typer.Exit(1)


def build_gateway(config: TripNavConfig, offline: bool) -> DirectionsGateway:
    """Directions gateway for the configured provider"""
    if offline:
        return StraightLineGateway()
    return OSRMDirectionsClient(
        base_url=config.directions.base_url,
        timeout=config.directions.timeout,
    )


def plan_trip(request: TripRequest, config: TripNavConfig, budget_minutes: Optional[float] = None) -> Trip:
    """Order the requested stops, keeping only those that fit the budget when one is given"""
    optimizer = RouteOptimizer(config.optimizer)
    if budget_minutes is not None:
        return optimizer.optimize_within_budget(
            origin=request.origin,
            stops=request.stops,
            mode=request.mode,
            max_duration=budget_minutes * 60,
            departure_time=request.departure_time,
            origin_address=request.origin_address,
        )
    return optimizer.optimize(
        origin=request.origin,
        stops=request.stops,
        mode=request.mode,
        departure_time=request.departure_time,
        origin_address=request.origin_address,
    )


def render_trip(trip: Trip) -> None:
    """Print the ordered stops table and totals"""
    table = Table(title=f"\nTrip by {trip.mode.value.replace('_', ' ')}")
    table.add_column("#", justify="right", style="cyan", width=3)
    table.add_column("Stop", width=28)
    table.add_column("Category", width=12)
    table.add_column("Leg", justify="right", width=18)
    table.add_column("Arrive", justify="center", width=7)
    table.add_column("Leave", justify="center", width=7)

    for ordered in trip.stops:
        table.add_row(
            str(ordered.sequence_index),
            ordered.stop.name,
            ordered.stop.category,
            format_route_info(ordered.distance_from_previous, ordered.travel_time_from_previous),
            ordered.estimated_arrival_time.strftime("%H:%M"),
            ordered.estimated_departure_time.strftime("%H:%M"),
        )

    console.print(table)
    console.print(f"Start: {trip.origin_address or trip.origin}")
    console.print(f"Total distance: {format_distance(trip.total_distance)}")
    console.print(f"Travel time: {format_duration(trip.total_travel_time)}")
    console.print(f"Total duration: {format_duration(trip.estimated_duration)}")


def render_legs(trip: Trip, route_legs: RouteLegs) -> None:
    """Print the resolved legs, marking failures"""
    names = [trip.origin_address or "Start"] + [ordered.stop.name for ordered in trip.stops]

    table = Table(title="\nRoute preview")
    table.add_column("Leg", justify="right", style="cyan", width=4)
    table.add_column("From", width=24)
    table.add_column("To", width=24)
    table.add_column("Route", justify="right", width=18)
    table.add_column("Steps", justify="right", width=6)

    for index, leg in enumerate(route_legs.legs):
        if leg is None:
            route = f"[red]failed: {route_legs.failed_legs.get(index, 'unknown')}[/red]"
            steps = "-"
        else:
            route = format_route_info(leg.distance, leg.duration)
            steps = str(len(leg.steps))
        table.add_row(str(index + 1), names[index], names[index + 1], route, steps)

    console.print(table)

    label = "Partial total" if route_legs.is_partial else "Total"
    console.print(f"{label}: {format_route_info(route_legs.total_distance, route_legs.total_duration)}")
    if route_legs.is_partial:
        failed = ", ".join(str(i + 1) for i in sorted(route_legs.failed_legs))
        console.print(f"[yellow]⚠ Legs without directions: {failed}[/yellow]")


@app.command()
def plan(
    trip_file: Path = typer.Argument(..., help="Trip request file (YAML/JSON)"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Configuration file"),
    two_opt: bool = typer.Option(False, "--two-opt", help="Refine stop order with 2-opt"),
    budget: Optional[float] = typer.Option(
        None, "--budget", min=0, help="Time budget in minutes; stops that do not fit are left out"
    ),
):
    """
    Order the stops of a trip and estimate timing

    Examples:
        tripnav plan paris.yaml
        tripnav plan paris.yaml --two-opt
        tripnav plan paris.yaml --budget 120
    """
    config = load_config(config_path)
    if two_opt:
        config.optimizer.two_opt = True

    request = load_trip_request(trip_file)
    trip = plan_trip(request, config, budget_minutes=budget)

    if budget is not None and len(trip.stops) < len(request.stops):
        console.print(
            f"[yellow]{len(request.stops) - len(trip.stops)} stop(s) left out to fit {format_duration(budget * 60)}[/yellow]"
        )

    if not trip.stops:
        console.print("[yellow]Trip has no stops[/yellow]")
        return

    render_trip(trip)


@app.command()
def preview(
    trip_file: Path = typer.Argument(..., help="Trip request file (YAML/JSON)"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Configuration file"),
    offline: bool = typer.Option(False, "--offline", help="Use straight-line legs instead of OSRM"),
    refresh: bool = typer.Option(True, "--refresh/--no-refresh", help="Update timing with routed legs"),
):
    """
    Resolve every leg of a trip for a full-route preview

    Examples:
        tripnav preview paris.yaml
        tripnav preview paris.yaml --offline
    """
    config = load_config(config_path)
    request = load_trip_request(trip_file)
    trip = plan_trip(request, config)

    if not trip.stops:
        console.print("[yellow]Trip has no stops[/yellow]")
        return

    calculator = CompleteRouteCalculator(build_gateway(config, offline), config.preview)

    try:
        with console.status("Resolving route legs..."):
            route_legs = asyncio.run(calculator.calculate_full_route(trip))
    except KeyboardInterrupt:
        console.print("\n[yellow]Preview cancelled by user[/yellow]")
        raise typer.Exit(0)

    if refresh:
        trip = RouteOptimizer(config.optimizer).apply_routed_legs(trip, route_legs.legs)

    render_trip(trip)
    render_legs(trip, route_legs)


@app.command()
def simulate(
    trip_file: Path = typer.Argument(..., help="Trip request file (YAML/JSON)"),
    trace_file: Path = typer.Argument(..., help="Recorded location trace (JSON)"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Configuration file"),
    offline: bool = typer.Option(False, "--offline", help="Use straight-line legs instead of OSRM"),
    speed: float = typer.Option(0.0, "--speed", help="Playback speed multiplier (0 = no waiting)"),
    locale: Optional[str] = typer.Option(None, "--locale", help="Instruction locale (en/fr/de)"),
):
    """
    Replay a location trace through a navigation session

    Examples:
        tripnav simulate paris.yaml walk.json --offline
        tripnav simulate paris.yaml walk.json --speed 4 --locale fr
    """
    config = load_config(config_path)
    if locale:
        try:
            config.navigation = NavigationSettings(**{**config.navigation.model_dump(), "locale": locale})
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

    request = load_trip_request(trip_file)
    trip = plan_trip(request, config)

    try:
        source = ReplayGeolocationSource.from_file(trace_file, speed=speed)
    except TraceError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    try:
        final_state = asyncio.run(run_simulation(trip, source, build_gateway(config, offline), config))
    except KeyboardInterrupt:
        console.print("\n[yellow]Simulation cancelled by user[/yellow]")
        raise typer.Exit(0)

    if final_state.status == NavigationStatus.COMPLETED:
        console.print("[green]✓ All stops visited[/green]")
    else:
        console.print(
            f"[yellow]Trace ended in state {final_state.status.value} "
            f"at stop {final_state.current_destination_index + 1} of {final_state.stop_count}[/yellow]"
        )


async def run_simulation(
    trip: Trip,
    source: ReplayGeolocationSource,
    gateway: DirectionsGateway,
    config: TripNavConfig,
) -> NavigationState:
    """Drive a session with a replayed trace, printing status and instruction changes"""
    last_line = None

    def show(state: NavigationState) -> None:
        nonlocal last_line
        parts = [f"[cyan]{state.status.value:<20}[/cyan]"]
        if state.destination is not None:
            parts.append(f"→ {state.destination.name}")
        if state.current_instruction:
            parts.append(f"| {state.current_instruction}")
        if state.distance_to_next_step is not None:
            parts.append(f"({format_distance(state.distance_to_next_step)})")
        if state.error is not None:
            parts.append(f"[red]{state.error}[/red]")
        line = " ".join(parts)
        if line != last_line:
            console.print(line)
            last_line = line

    async with NavigationSession(gateway, config.navigation) as session:
        session.subscribe(show)
        session.start(trip)
        await session.settle()

        await source.start()
        try:
            async for fix in source.fixes():
                session.on_location_update(fix)
                await session.settle()
                if session.status in (NavigationStatus.COMPLETED, NavigationStatus.ROUTING_FAILED):
                    break
        finally:
            await source.stop()

        return session.state


@app.command(name="init-config")
def init_config(
    overwrite: bool = typer.Option(False, "--overwrite", help="Replace an existing configuration"),
):
    """Write the default configuration file"""
    manager = ConfigManager()
    try:
        path = manager.create_default_config(overwrite=overwrite)
    except ConfigManagerError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Configuration written to {path}[/green]")


@app.command(name="show-config")
def show_config(
    config_path: Optional[Path] = typer.Option(None, "--config", help="Configuration file"),
):
    """Display the effective configuration"""
    config = load_config(config_path)

    for section_name in ("navigation", "optimizer", "preview", "directions"):
        section = getattr(config, section_name)
        table = Table(title=f"\n{section_name.title()}")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", justify="right")
        for key, value in section.model_dump().items():
            table.add_row(key, "-" if value is None else str(value))
        console.print(table)


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """
    TripNav - Trip planning and navigation engine

    Orders trip stops, previews complete routes and replays navigation sessions.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main():
    """Main entry point for CLI"""
    # Load environment variables
    from dotenv import load_dotenv
    load_dotenv()

    app()


if __name__ == "__main__":
    main()
