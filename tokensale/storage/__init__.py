"""Storage module for simulation reports."""

from .json_store import ReportStore

__all__ = ["ReportStore"]
