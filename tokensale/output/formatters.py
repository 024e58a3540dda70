"""Output formatters for simulation reports.

Provides two output formats:
- JSON: Machine-readable, complete data
- Table: Human-readable CLI output
"""

import json
import logging
from abc import ABC, abstractmethod
from io import StringIO

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..core.models import SimulationReport

logger = logging.getLogger(__name__)


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format(self, report: SimulationReport) -> str:
        """Format the report as a string."""
        pass

    def format_to_file(self, report: SimulationReport, filepath: str) -> None:
        """Write the formatted report to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.format(report))
        logger.debug(f"Wrote {type(self).__name__} output to {filepath}")


class JSONFormatter(OutputFormatter):
    """Formats reports as JSON."""

    def __init__(self, indent: int = 2, include_events: bool = True):
        """
        Initialize JSON formatter.

        Args:
            indent: JSON indentation level
            include_events: Include the full event log in output
        """
        self.indent = indent
        self.include_events = include_events

    def format(self, report: SimulationReport) -> str:
        exclude = None if self.include_events else {"events"}
        data = report.model_dump(mode="json", exclude=exclude)
        return json.dumps(data, indent=self.indent)


class TableFormatter(OutputFormatter):
    """Formats reports as tables for CLI output."""

    def __init__(self, width: int = 100, color: bool = True):
        self.width = width
        self.color = color

    def format(self, report: SimulationReport) -> str:
        output = StringIO()
        console = Console(
            file=output,
            force_terminal=self.color,
            no_color=not self.color,
            width=self.width,
        )

        token = report.token
        console.print(Panel(
            f"[bold cyan]{token.symbol}[/] - {token.name}\n"
            f"[dim]Token: {token.address}[/]",
            title=f"Scenario: {report.scenario}",
            expand=False,
        ))

        token_table = Table(title="Token", show_header=False)
        token_table.add_column("Field", style="cyan")
        token_table.add_column("Value", style="green")
        token_table.add_row("Total supply", f"{token.total_supply:,}")
        token_table.add_row("Transfers enabled", "yes" if token.transfer_enabled else "no")
        token_table.add_row("Admin", token.admin)
        token_table.add_row("Sale allowance", f"{token.sale_allowance:,}")
        console.print(token_table)

        if report.sale:
            sale = report.sale
            sale_table = Table(title="Sale", show_header=False)
            sale_table.add_column("Field", style="cyan")
            sale_table.add_column("Value", style="green")
            sale_table.add_row("Stage", sale.stage.display_name)
            sale_table.add_row("Paused", "yes" if sale.paused else "no")
            sale_table.add_row("Rate", f"{sale.rate:,}")
            sale_table.add_row("Raised", f"{sale.wei_raised:,} / {sale.limits.hard_cap:,}")
            sale_table.add_row("Filled", f"{sale.percent_filled:.1f}%")
            sale_table.add_row("Participants", str(sale.participants))
            sale_table.add_row("Window", f"{sale.start_time} - {sale.end_time}")
            sale_table.add_row("Held value", f"{sale.held_value:,}")
            console.print(sale_table)

        if report.steps:
            steps_table = Table(title="Steps")
            steps_table.add_column("#", justify="right", style="dim")
            steps_table.add_column("Action", style="cyan")
            steps_table.add_column("Caller")
            steps_table.add_column("Time", justify="right", style="dim")
            steps_table.add_column("Result")
            for step in report.steps:
                if step.success:
                    result = "[green]ok[/]"
                else:
                    result = f"failed: {step.failure_reason or step.error_message}"
                    result = f"[yellow]{result}[/]" if step.expected_failure else f"[red]{result}[/]"
                if not step.as_expected:
                    result += " [bold red](unexpected)[/]"
                steps_table.add_row(
                    str(step.index), step.action, step.caller, str(step.timestamp), result
                )
            console.print(steps_table)

        if token.balances:
            balance_table = Table(title="Token Balances")
            balance_table.add_column("Address", style="cyan")
            balance_table.add_column("Balance", justify="right", style="green")
            for address, balance in sorted(token.balances.items(), key=lambda kv: -kv[1]):
                balance_table.add_row(address, f"{balance:,}")
            console.print(balance_table)

        return output.getvalue()

    def format_to_file(self, report: SimulationReport, filepath: str) -> None:
        """Write plain (uncolored) tables to a file."""
        plain = TableFormatter(width=self.width, color=False)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(plain.format(report))
