"""
Main CLI application using Typer.
"""

from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.table import Table

from ..adapters.mock_store import MockReservationStore
from ..adapters.supabase_store import SupabaseStore
from ..config import AppConfig, load_config
from ..domain.exceptions import RentalCoreError
from ..domain.models import DayCountConvention
from ..logging_config import configure_logging, get_logger
from ..services.booking_service import BookingService
from ..services.rental_service import RentalService

app = typer.Typer(
    name="rentalcore",
    help="Rental pricing, platform fees, equipment availability and booking slots",
    add_completion=False
)

console = Console()
logger = get_logger(__name__)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
TierOption = Annotated[
    Optional[str],
    typer.Option("--tier", "-t", help="Subscription tier (Free, Professional, Teams)"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use bundled sample data instead of the hosted store."),
]
DataOption = Annotated[
    Optional[Path],
    typer.Option("--data", help="JSON file with mock tables (implies --mock)."),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Rental core command line tools.
    """
    configure_logging(verbose=verbose)


def _load(config_file: Optional[Path]) -> AppConfig:
    try:
        return load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _build_store(config: AppConfig, mock: bool, data_file: Optional[Path]):
    """Pick the mock store or the hosted store from configuration."""
    timezone = config.scheduling.timezone

    if mock or data_file:
        logger.debug("Using mock store, data file %s", data_file)
        console.print("[yellow]⚠  MOCK MODE: using sample data[/yellow]\n")
        return MockReservationStore(data_file=data_file, timezone=timezone)

    if not config.storage.is_configured():
        console.print(
            "[bold red]Error:[/bold red] storage.url and storage.api_key are not configured. "
            "Use --mock to run against sample data."
        )
        raise typer.Exit(1)

    return SupabaseStore(
        url=config.storage.url,
        api_key=config.storage.api_key,
        timeout=config.storage.timeout_seconds,
        timezone=timezone,
    )


def _money(value: float) -> str:
    return f"${value:,.2f}"


@app.command()
def fee(
    amount: Annotated[float, typer.Argument(help="Transaction amount")],
    tier: TierOption = None,
    config_file: ConfigOption = None,
):
    """
    Show the platform fee and net payout for an amount.
    """
    config = _load(config_file)
    calculator = config.build_fee_calculator()
    breakdown = calculator.payout_breakdown(amount, tier)

    table = Table(title="Platform fee", show_header=True, header_style="bold cyan")
    table.add_column("Tier", style="bold yellow")
    table.add_column("Rate", justify="right")
    table.add_column("Amount", justify="right")
    table.add_column("Fee", justify="right")
    table.add_column("Net payout", justify="right", style="green")
    table.add_row(
        breakdown.tier,
        f"{calculator.rate_for(breakdown.tier):.2%}",
        _money(breakdown.gross_amount),
        _money(breakdown.platform_fee),
        _money(breakdown.net_amount),
    )

    console.print()
    console.print(table)
    console.print()


@app.command()
def quote(
    rate: Annotated[float, typer.Option("--rate", "-r", help="Daily rental rate")],
    start: Annotated[str, typer.Option("--start", help="First rental day (YYYY-MM-DD)")],
    end: Annotated[str, typer.Option("--end", help="Last rental day (YYYY-MM-DD)")],
    deposit: Annotated[float, typer.Option("--deposit", help="Security deposit")] = 0.0,
    tier: TierOption = None,
    convention: Annotated[
        Optional[DayCountConvention],
        typer.Option("--convention", help="Override the configured day count."),
    ] = None,
    config_file: ConfigOption = None,
):
    """
    Price a rental from a daily rate and a date range.

    Examples:

        rentalcore quote --rate 50 --start 2024-01-01 --end 2024-01-03 --deposit 20
    """
    config = _load(config_file)
    if convention is not None:
        config.pricing.day_count = convention

    engine = config.build_pricing_engine()
    result = engine.quote(rate, start, end, deposit_amount=deposit, tier=tier)

    if result is None:
        console.print(
            "[yellow]⚠ No quote: the end date must be after the start date.[/yellow]"
        )
        raise typer.Exit(1)

    table = Table(title="Rental quote", show_header=False)
    table.add_column("Item", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Daily rate", _money(result.daily_rate))
    table.add_row("Days", str(result.total_days))
    table.add_row("Subtotal", _money(result.subtotal))
    table.add_row("Deposit", _money(result.deposit_amount))
    table.add_row("[bold]Total due[/bold]", f"[bold]{_money(result.total_due)}[/bold]")
    table.add_row("[dim]Platform fee (internal)[/dim]", f"[dim]{_money(result.platform_fee)}[/dim]")
    table.add_row("[dim]Organization payout[/dim]", f"[dim]{_money(result.net_payout)}[/dim]")

    console.print()
    console.print(table)
    console.print()


@app.command()
def availability(
    equipment_id: Annotated[str, typer.Argument(help="Equipment id")],
    start: Annotated[str, typer.Option("--start", help="First rental day (YYYY-MM-DD)")],
    end: Annotated[str, typer.Option("--end", help="Last rental day (YYYY-MM-DD)")],
    exclude: Annotated[
        Optional[str],
        typer.Option("--exclude", help="Rental id being edited, ignored in the check."),
    ] = None,
    mock: MockOption = False,
    data_file: DataOption = None,
    config_file: ConfigOption = None,
):
    """
    Check if equipment is free for a date range and show its quote.
    """
    config = _load(config_file)
    store = _build_store(config, mock, data_file)
    service = RentalService(
        store=store,
        pricing_engine=config.build_pricing_engine(),
        availability_checker=config.build_availability_checker(),
    )

    try:
        result = service.check_availability(
            equipment_id, start, end, exclude_reservation_id=exclude
        )
        rental_quote = service.quote_rental(equipment_id, start, end)
    except RentalCoreError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if result.available:
        console.print(f"[bold green]✓ {equipment_id} is available {start} - {end}[/bold green]")
    else:
        console.print(f"[bold red]✗ {equipment_id} is not available {start} - {end}[/bold red]")
        for reservation in result.conflicts:
            console.print(
                f"  conflicts with {reservation.id} ({reservation.status}): "
                f"{reservation.start_date} - {reservation.end_date}"
            )

    if rental_quote is not None:
        console.print(
            f"  {rental_quote.total_days} day(s), total due {_money(rental_quote.total_due)}"
        )
    console.print()


@app.command()
def slots(
    resource_id: Annotated[str, typer.Argument(help="Organization or service id")],
    date: Annotated[
        Optional[str],
        typer.Option("--date", help="Day to resolve (YYYY-MM-DD). Defaults to today."),
    ] = None,
    duration: Annotated[
        Optional[int],
        typer.Option("--duration", "-d", help="Appointment duration in minutes"),
    ] = None,
    mock: MockOption = False,
    data_file: DataOption = None,
    config_file: ConfigOption = None,
):
    """
    List the open appointment slots of a service on a day.
    """
    config = _load(config_file)
    tz = config.scheduling.timezone
    day = date or pendulum.today(tz).to_date_string()
    minutes = duration if duration is not None else config.scheduling.default_duration_minutes

    store = _build_store(config, mock, data_file)
    service = BookingService(store=store, slot_resolver=config.build_slot_resolver())

    try:
        open_slots = service.open_slots(
            resource_id=resource_id,
            date=day,
            duration_minutes=minutes,
            operating_hours=config.operating_hours.to_operating_hours(),
        )
    except RentalCoreError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not open_slots:
        console.print(f"[yellow]⚠ No open slots on {day}.[/yellow]\n")
        return

    console.print(f"[bold green]✓ {len(open_slots)} open slot(s):[/bold green]\n")
    for slot in open_slots:
        console.print(f"  {slot.format_display()}")
    console.print()


@app.command()
def tiers(config_file: ConfigOption = None):
    """
    List the configured fee rate per subscription tier.
    """
    config = _load(config_file)

    table = Table(
        title="Platform fee rates",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Tier", style="bold yellow")
    table.add_column("Rate", justify="right")

    for tier_name, rate in config.pricing.tier_rates.items():
        marker = " (default)" if tier_name == config.pricing.default_tier else ""
        table.add_row(f"{tier_name}{marker}", f"{rate:.2%}")

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]rentalcore[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
