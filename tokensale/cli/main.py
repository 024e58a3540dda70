"""CLI entry point for the Token Sale Ledger.

Usage:
    token-sale simulate scenarios/capped_sale.yaml
    token-sale simulate scenarios/capped_sale.yaml --output json --save results/capped.json
    token-sale show-config --config sale.yaml
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..core.config import reload_config
from ..core.exceptions import TokenSaleError
from ..output.event_trail import EventTrailFormatter
from ..output.formatters import JSONFormatter, TableFormatter
from ..scenario import ScenarioRunner, load_scenario
from ..storage.json_store import ReportStore

# Initialize app
app = typer.Typer(
    name="token-sale",
    help="Token Sale Ledger - run and inspect token sale scenarios",
    add_completion=False,
)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
    )


@app.command()
def simulate(
    scenario_file: Path = typer.Argument(..., help="YAML scenario file"),
    output: str = typer.Option(
        "table",
        "--output", "-o",
        help="Output format: table, json",
    ),
    save: Optional[Path] = typer.Option(
        None,
        "--save", "-s",
        help="Save output to file",
    ),
    store_dir: Optional[Path] = typer.Option(
        None,
        "--store",
        help="Also keep the JSON report in this report store directory",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to sale settings YAML file",
    ),
    events: bool = typer.Option(
        False,
        "--events", "-e",
        help="Print the event trail after the report",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Run a scenario against a fresh token and sale.

    Exits with code 1 if any step did not behave as the scenario expected.
    """
    setup_logging(verbose)

    output_lower = output.lower()
    if output_lower not in ("table", "json"):
        console.print(f"[red]Invalid output format: {output}[/]")
        raise typer.Exit(1)

    try:
        settings = reload_config(config)
        scenario = load_scenario(scenario_file)
        report = ScenarioRunner(settings).run(scenario)
    except TokenSaleError as e:
        console.print(f"[red]Error: {escape(e.message)}[/]")
        raise typer.Exit(1)

    formatter = JSONFormatter() if output_lower == "json" else TableFormatter()

    if output_lower == "table":
        console.print(formatter.format(report))
    else:
        print(formatter.format(report))

    if events:
        console.print(EventTrailFormatter().format_summary(report))

    if save:
        save.parent.mkdir(parents=True, exist_ok=True)
        save_path = save.with_suffix(".json" if output_lower == "json" else ".txt")
        formatter.format_to_file(report, str(save_path))
        console.print(f"[green]Saved to {save_path}[/]")

    if store_dir:
        path = ReportStore(store_dir).save(report)
        console.print(f"[green]Stored report at {path}[/]")

    unexpected = report.unexpected_steps
    if unexpected:
        console.print(f"[red]{len(unexpected)} step(s) did not behave as expected[/]")
        raise typer.Exit(1)


@app.command()
def reports(
    store_dir: Path = typer.Argument(Path("data/reports"), help="Report store directory"),
) -> None:
    """List stored simulation reports."""
    summary = ReportStore(store_dir).get_summary()
    if not summary["count"]:
        console.print("No reports stored yet.")
        return

    table = Table(title=f"Reports ({summary['count']})")
    table.add_column("Scenario", style="cyan")
    table.add_column("Stage")
    table.add_column("Raised", justify="right")
    table.add_column("Steps", justify="right")
    table.add_column("Unexpected", justify="right")
    for r in summary["reports"]:
        table.add_row(
            r["scenario"], str(r["stage"]), f"{r['wei_raised']:,}", str(r["steps"]), str(r["unexpected"])
        )
    console.print(table)


@app.command()
def show_config(
    config: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to sale settings YAML file",
    ),
) -> None:
    """Show the effective sale settings."""
    try:
        settings = reload_config(config)
    except TokenSaleError as e:
        console.print(f"[red]Error: {escape(e.message)}[/]")
        raise typer.Exit(1)

    table = Table(title="Sale Settings", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for name, value in vars(settings).items():
        table.add_row(name, f"{value:,}" if isinstance(value, int) else str(value))
    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    from .. import __version__
    console.print(f"Token Sale Ledger v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
