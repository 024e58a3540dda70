"""Token ledger module."""

from .ledger import Ledger
from .token import GatedToken

__all__ = ["Ledger", "GatedToken"]
