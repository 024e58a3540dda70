"""
JSON-based storage for simulation reports.

Simple, file-based storage that persists reports as JSON files.
Each scenario gets its own file in data/reports/{scenario}.json
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, List, Optional

from ..core.models import SimulationReport

logger = logging.getLogger(__name__)


class ReportStore:
    """
    JSON-based storage for simulation reports.

    Usage:
        store = ReportStore()

        # Save report
        store.save(report)

        # Load report
        report = store.load("capped-sale")

        # List all
        names = store.list_all()
    """

    def __init__(self, data_dir: Optional[Path] = None):
        """Initialize store with data directory."""
        if data_dir is None:
            data_dir = Path.cwd() / "data" / "reports"

        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _get_path(self, name: str) -> Path:
        """Get file path for a scenario name."""
        slug = re.sub(r"[^a-z0-9_-]+", "-", name.lower()).strip("-") or "scenario"
        return self.data_dir / f"{slug}.json"

    def save(self, report: SimulationReport) -> Path:
        """
        Save a report to JSON file.

        Returns the path to the saved file.
        """
        path = self._get_path(report.scenario)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(report.model_dump(mode="json"), f, indent=2, ensure_ascii=False)

        logger.info(f"Saved report '{report.scenario}' to {path}")
        return path

    def load(self, name: str) -> Optional[SimulationReport]:
        """
        Load a report from JSON file.

        Returns None if file doesn't exist.
        """
        path = self._get_path(name)

        if not path.exists():
            return None

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return SimulationReport.model_validate(data)

    def exists(self, name: str) -> bool:
        return self._get_path(name).exists()

    def delete(self, name: str) -> bool:
        """Delete report file. Returns True if deleted."""
        path = self._get_path(name)
        if path.exists():
            path.unlink()
            return True
        return False

    def list_all(self) -> List[str]:
        """List all stored report names."""
        return sorted(p.stem for p in self.data_dir.glob("*.json"))

    def get_summary(self) -> dict[str, Any]:
        """Get summary of all stored reports."""
        reports = [r for r in (self.load(name) for name in self.list_all()) if r is not None]

        summary: dict[str, Any] = {"count": len(reports), "reports": []}
        for r in reports:
            summary["reports"].append({
                "scenario": r.scenario,
                "stage": r.sale.stage.value if r.sale else None,
                "wei_raised": r.sale.wei_raised if r.sale else 0,
                "steps": len(r.steps),
                "unexpected": len(r.unexpected_steps),
            })

        return summary
