"""Event trail formatter.

Renders everything the contracts emitted during a run, in emission order,
followed by a per-event-type count.
"""

import logging
from collections import Counter
from typing import Any

from ..core.models import SimulationReport

logger = logging.getLogger(__name__)

_BOOKKEEPING = ("sequence", "name", "emitter")


class EventTrailFormatter:
    """Formats the event log of a simulation report."""

    def format_summary(self, report: SimulationReport) -> str:
        """
        Format the event trail.

        Args:
            report: SimulationReport with recorded events

        Returns:
            Formatted string summary
        """
        lines = []
        lines.append("=" * 70)
        lines.append("EVENT TRAIL")
        lines.append("=" * 70)
        lines.append("")
        lines.append(f"Scenario: {report.scenario}")
        lines.append(f"Generated: {report.generated_at.isoformat()}")
        lines.append(f"Tool Version: {report.tool_version}")
        lines.append("")

        lines.append("EVENTS")
        lines.append("-" * 40)
        if not report.events:
            lines.append("  (none)")
        for event in report.events:
            lines.append(f"  #{event['sequence']:<4} {event['name']:<20} {self._format_payload(event)}")
            lines.append(f"        emitter: {event['emitter']}")
        lines.append("")

        lines.append("COUNTS")
        lines.append("-" * 40)
        for name, count in sorted(self.count_by_name(report).items()):
            lines.append(f"  {name}: {count}")
        lines.append("")

        failed = [s for s in report.steps if not s.success]
        if failed:
            lines.append("REJECTED STEPS")
            lines.append("-" * 40)
            for step in failed:
                marker = "expected" if step.expected_failure else "UNEXPECTED"
                lines.append(f"  [{marker}] #{step.index} {step.action} by {step.caller}")
                lines.append(f"    Reason: {step.failure_reason or 'n/a'}")
                if step.error_message:
                    lines.append(f"    Error: {step.error_message}")
            lines.append("")

        lines.append("=" * 70)
        lines.append("END OF EVENT TRAIL")
        lines.append("=" * 70)

        return "\n".join(lines)

    def count_by_name(self, report: SimulationReport) -> dict[str, int]:
        return dict(Counter(e["name"] for e in report.events))

    def _format_payload(self, event: dict[str, Any]) -> str:
        return ", ".join(f"{k}={v}" for k, v in event.items() if k not in _BOOKKEEPING)

    def format_to_file(self, report: SimulationReport, filepath: str) -> None:
        """Write event trail to file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.format_summary(report))
