"""Sale state machine module."""

from .sale import Sale

__all__ = ["Sale"]
