"""CLI entry point for Market Health, a market breadth and instrument health tool.

Provides the ``market-health`` command with subcommands for the indicators
of an instrument, its health-check protocol, and market statistics over a
set of instruments, each read from CSV files.

This is the ONLY module where ``print()`` is allowed. All other modules use
``logging``. The async scan pipeline is bridged to typer's synchronous
interface via ``asyncio.run()``.
"""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table

from Market_Health.analysis.protocol import (
    ProtocolBuilder,
    ProtocolConverter,
    health_event_number,
)
from Market_Health.config import load_config
from Market_Health.data.csv_loader import CsvQuotationProvider, load_history
from Market_Health.indicators.snapshots import (
    compute_moving_averages,
    indicator_snapshot,
    relative_strength_snapshot,
)
from Market_Health.logging_config import configure_logging
from Market_Health.models import (
    HealthCheckProfile,
    InstrumentList,
    InstrumentType,
    Scan,
    Statistic,
)
from Market_Health.scan import (
    CancelFlag,
    ScanComplete,
    ScanProgress,
    ScanStateMachine,
    ScanWorkspace,
    run_scan,
)
from Market_Health.utils.exceptions import MarketHealthError

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(name="market-health", help="Market breadth and instrument health tool")

# Rich console for formatted output
console = Console()

# ---------------------------------------------------------------------------
# Default constants
# ---------------------------------------------------------------------------

DEFAULT_LOOKBACK: int = 15
DEFAULT_STATISTIC_DAYS: int = 10
CLI_SCAN_ID: int = 1
CLI_LIST_ID: int = 1

# ---------------------------------------------------------------------------
# Scan cancellation via Ctrl+C
# ---------------------------------------------------------------------------

_cancel_flag = CancelFlag()


def _handle_sigint(signum: int, frame: object) -> None:
    """Handle SIGINT (Ctrl+C) by setting the cancellation flag.

    The pipeline checks the flag between instruments and finishes the scan
    as incomplete.
    """
    _cancel_flag.set()
    console.print("\n[yellow]Cancellation requested. Finishing current instrument...[/yellow]")


def _fail(exc: MarketHealthError) -> typer.Exit:
    console.print(f"[red]{exc}[/red]")
    return typer.Exit(code=1)


# ---------------------------------------------------------------------------
# indicators command
# ---------------------------------------------------------------------------


@app.command()
def indicators(
    csv_file: Annotated[
        Path, typer.Argument(exists=True, dir_okay=False, help="CSV file of one instrument")
    ],
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Suppress info logging")] = False,
) -> None:
    """Show the moving averages and indicators of the newest quotation."""
    configure_logging(verbose=verbose, quiet=quiet)
    config = load_config()

    try:
        history = load_history(csv_file)
    except MarketHealthError as exc:
        raise _fail(exc) from exc

    quotations = history.quotations
    newest = quotations[0]
    moving_averages = compute_moving_averages(quotations, config.moving_averages)

    rows: list[tuple[str, str]] = [("Date", newest.date.isoformat()), ("Close", str(newest.close))]
    snapshot = moving_averages.get(newest)
    if snapshot is not None:
        rows.extend((name, str(value)) for name, value in snapshot)
    for derived in (
        relative_strength_snapshot(newest, quotations, config),
        indicator_snapshot(newest, quotations, config),
    ):
        rows.extend((name, str(value)) for name, value in derived)

    table = Table(title=f"Indicators: {history.instrument.symbol}")
    table.add_column("Indicator", style="bold")
    table.add_column("Value", justify="right")
    for name, value in rows:
        table.add_row(name, value)
    console.print(table)


# ---------------------------------------------------------------------------
# health command
# ---------------------------------------------------------------------------


@app.command()
def health(
    csv_file: Annotated[
        Path, typer.Argument(exists=True, dir_okay=False, help="CSV file of one instrument")
    ],
    profile: Annotated[
        HealthCheckProfile, typer.Option(help="Health check profile")
    ] = HealthCheckProfile.ALL,
    lookback: Annotated[
        int, typer.Option(min=1, help="Number of trading days to check")
    ] = DEFAULT_LOOKBACK,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Suppress info logging")] = False,
) -> None:
    """Show the health-check protocol of an instrument, newest date first."""
    configure_logging(verbose=verbose, quiet=quiet)
    config = load_config()

    try:
        history = load_history(csv_file)
        moving_averages = compute_moving_averages(history.quotations, config.moving_averages)
        protocol = ProtocolBuilder(config).build_for_lookback(
            history.quotations,
            moving_averages,
            lookback,
            profile,
            symbol=history.instrument.symbol,
        )
    except MarketHealthError as exc:
        raise _fail(exc) from exc

    date_entries = ProtocolConverter.to_date_based(protocol)
    if not date_entries:
        console.print("[yellow]No health check findings in the lookback period.[/yellow]")
        return

    table = Table(title=f"Health protocol: {history.instrument.symbol} ({profile})")
    table.add_column("Date", style="dim")
    table.add_column("Score", justify="right")
    table.add_column("Conf. %", justify="right", style="green")
    table.add_column("Viol. %", justify="right", style="red")
    table.add_column("Unc. %", justify="right", style="yellow")
    table.add_column("Findings")
    for entry in date_entries:
        table.add_row(
            entry.date.isoformat(),
            str(health_event_number(protocol, profile, entry.date)),
            str(entry.confirmation_percentage),
            str(entry.violation_percentage),
            str(entry.uncertain_percentage),
            "\n".join(finding.text for finding in entry.entries),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# statistics command
# ---------------------------------------------------------------------------


@app.command()
def statistics(
    csv_files: Annotated[
        list[Path],
        typer.Argument(exists=True, dir_okay=False, help="CSV files, one per instrument"),
    ],
    instrument_type: Annotated[
        InstrumentType, typer.Option("--type", help="Instrument type of all files")
    ] = InstrumentType.STOCK,
    days: Annotated[
        int, typer.Option(min=1, help="Number of most recent dates to show")
    ] = DEFAULT_STATISTIC_DAYS,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Suppress info logging")] = False,
) -> None:
    """Scan a set of instruments and show the market statistics."""
    configure_logging(verbose=verbose, quiet=quiet)

    # Install SIGINT handler for clean abort
    original_handler = signal.getsignal(signal.SIGINT)
    signal.signal(signal.SIGINT, _handle_sigint)
    try:
        statistics_of_type = asyncio.run(
            _statistics_async(csv_files=csv_files, instrument_type=instrument_type)
        )
    except MarketHealthError as exc:
        raise _fail(exc) from exc
    finally:
        signal.signal(signal.SIGINT, original_handler)

    _render_statistics(statistics_of_type[:days], instrument_type)


async def _statistics_async(
    *, csv_files: list[Path], instrument_type: InstrumentType
) -> list[Statistic]:
    """Run the scan pipeline over the CSV files and return the stored statistics."""
    _cancel_flag.reset()
    provider = CsvQuotationProvider.from_paths(csv_files, instrument_type)
    workspace = ScanWorkspace(provider=provider, config=load_config())
    instrument_list = InstrumentList(
        id=CLI_LIST_ID, name="command line", instrument_ids=provider.instrument_ids
    )
    machine = ScanStateMachine(
        [Scan(id=CLI_SCAN_ID, name="command line", list_ids=(instrument_list.id,))]
    )

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
    ) as progress:
        task = progress.add_task("Scanning instruments...", total=100)
        async for event in run_scan(
            machine,
            CLI_SCAN_ID,
            {instrument_list.id: instrument_list},
            workspace,
            cancelled=_cancel_flag,
        ):
            if isinstance(event, ScanProgress):
                progress.update(
                    task,
                    completed=event.progress,
                    description=f"Instrument {event.current}/{event.total}",
                )
            elif isinstance(event, ScanComplete):
                progress.update(task, completed=100, description="Scan complete")
                if event.scan.incomplete_instrument_ids:
                    console.print(
                        f"[yellow]{len(event.scan.incomplete_instrument_ids)} instruments "
                        "could not be processed.[/yellow]"
                    )

    return workspace.statistics.for_type(instrument_type)


def _format_percent(value: int) -> str:
    return f"{value}%"


def _render_statistics(statistics: list[Statistic], instrument_type: InstrumentType) -> None:
    """Render market statistics as a rich table, newest date first."""
    if not statistics:
        console.print("[yellow]No statistics to display.[/yellow]")
        return

    table = Table(title=f"Market statistics: {instrument_type}", show_lines=False)
    table.add_column("Date", style="dim")
    table.add_column("Instr.", justify="right")
    table.add_column("A/D", justify="right")
    table.add_column("> SMA50", justify="right")
    table.add_column("> SMA200", justify="right")
    table.add_column("Ritter", justify="right")
    table.add_column("Up vol.", justify="right", style="green")
    table.add_column("Down vol.", justify="right", style="red")
    table.add_column("Rev. +/-", justify="right")
    table.add_column("Churn", justify="right")

    for statistic in statistics:
        advance_decline = statistic.advance_decline_number
        ad_style = "green" if advance_decline > 0 else "red" if advance_decline < 0 else "dim"
        table.add_row(
            statistic.date.isoformat(),
            str(statistic.number_of_instruments),
            f"[{ad_style}]{advance_decline}[/{ad_style}]",
            _format_percent(statistic.percent_above_sma50),
            _format_percent(statistic.percent_above_sma200),
            str(statistic.number_ritter_market_trend),
            str(statistic.number_up_on_volume),
            str(statistic.number_down_on_volume),
            f"{statistic.number_bullish_reversal}/{statistic.number_bearish_reversal}",
            str(statistic.number_churning),
        )

    console.print(table)
