"""Command-line entry point for the road trip planner.

Usage:
    python main.py                        # Interactive mode
    python main.py request.json           # Plan a request stored as JSON
    python main.py request.json --json    # Print the summary as JSON
    python main.py request.json --gpx     # Also write a GPX file of the stops
    python main.py --verbose              # INFO-level logging
"""

import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import FloatPrompt, Prompt
from rich.table import Table

from roadtrip.config import settings
from roadtrip.errors import InputError
from roadtrip.models import PlanningRequest, TripSummary, build_request
from roadtrip.pipeline import plan_trip
from roadtrip.utils.gpx import create_gpx_from_trip, save_gpx_file


console = Console()


def setup_logging(verbose: bool) -> None:
    level = logging.INFO if verbose else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def prompt_request() -> PlanningRequest:
    """Ask for every request field interactively."""
    origin = Prompt.ask("[bold]Origin[/bold]")
    destination = Prompt.ask("[bold]Destination[/bold]")
    stops = Prompt.ask("Intermediate stops (comma separated)", default="")
    start = Prompt.ask("Start date (YYYY-MM-DD)", default=date.today().isoformat())
    end = Prompt.ask("Return date (YYYY-MM-DD)", default=start)
    max_km = FloatPrompt.ask("Maximum km per day", default=settings.default_max_daily_distance_km)
    consumption = FloatPrompt.ask(
        "Fuel consumption (L/100 km)", default=settings.default_fuel_consumption_per_100km
    )
    price = FloatPrompt.ask("Fuel price per liter", default=settings.default_fuel_price_per_liter)

    return build_request(
        origin=origin,
        destination=destination,
        waypoints=stops.split(","),
        start_date=start,
        return_date=end,
        max_daily_distance_km=max_km,
        fuel_consumption_per_100km=consumption,
        fuel_price_per_liter=price,
    )


def load_request(path: Path) -> PlanningRequest:
    """Read a request from a JSON file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise InputError(f"Could not read request file {path}: {e}") from e
    return build_request(**data)


def render_summary(summary: TripSummary) -> None:
    """Print the itinerary table and the trip totals."""
    table = Table(title="Daily Itinerary", show_lines=False)
    table.add_column("Day", justify="right")
    table.add_column("Date")
    table.add_column("From")
    table.add_column("To")
    table.add_column("km", justify="right")
    table.add_column("Notes", style="yellow")

    for entry in summary.daily_itinerary:
        if entry.is_driving:
            table.add_row(
                str(entry.day),
                entry.date.strftime("%d/%m/%Y"),
                entry.from_label,
                entry.to_label,
                f"{entry.distance_km:.0f}",
                entry.warning or "",
            )
        else:
            table.add_row(
                str(entry.day),
                entry.date.strftime("%d/%m/%Y"),
                f"[dim]Stay in {entry.to_label}[/dim]",
                "",
                "",
                "",
            )

    console.print(table)
    console.print(Panel(
        f"[bold]Total distance:[/bold] {summary.distance_km:.0f} km\n"
        f"[bold]Days:[/bold] {summary.total_days} "
        f"({len(summary.driving_days)} driving entries, {len(summary.stay_days)} stay days)\n"
        f"[bold]Fuel:[/bold] {summary.fuel_liters:.0f} L\n"
        f"[bold]Approx. cost:[/bold] {summary.total_cost:.2f} €"
        + (f"\n\n[bold]Map:[/bold] {summary.map_url}" if summary.map_url else ""),
        title="Trip Summary",
        border_style="blue",
    ))


def write_gpx(summary: TripSummary, request: PlanningRequest) -> Path:
    settings.output_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{request.origin}_{request.destination}_{request.start_date.isoformat()}.gpx"
    path = settings.output_dir / filename.replace(" ", "_").replace("/", "-")
    save_gpx_file(create_gpx_from_trip(summary, f"{request.origin} → {request.destination}"), path)
    return path


async def run(request: PlanningRequest, as_json: bool, gpx: bool) -> int:
    console.print(f"\n[dim]Planning {request.origin} → {request.destination}...[/dim]")
    summary = await plan_trip(request)

    if as_json:
        console.print_json(summary.model_dump_json(by_alias=True))
    elif summary.ok:
        render_summary(summary)

    if not summary.ok:
        console.print(f"[red]❌ {summary.error}[/red]")
        return 1

    if gpx:
        path = write_gpx(summary, request)
        console.print(f"[green]✓[/green] GPX written to {path}")
    return 0


def main() -> None:
    """Main entry point."""
    load_dotenv()

    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    flags = {a for a in sys.argv[1:] if a.startswith("--")}
    setup_logging("--verbose" in flags)

    missing = settings.validate_required()
    if missing:
        console.print(Panel(
            "[red]Missing required configuration:[/red]\n" +
            "\n".join(f"  • {m}" for m in missing) +
            "\n\n[dim]Copy .env.example to .env and fill in your API keys.[/dim]",
            title="Configuration Error",
            border_style="red",
        ))
        sys.exit(1)

    try:
        if args:
            request = load_request(Path(args[0]))
        else:
            console.print("\n[bold blue]🚗 Road Trip Planner[/bold blue]\n")
            request = prompt_request()
    except InputError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n\n[dim]Session interrupted. Goodbye![/dim]\n")
        sys.exit(130)

    sys.exit(asyncio.run(run(request, "--json" in flags, "--gpx" in flags)))


if __name__ == "__main__":
    main()
