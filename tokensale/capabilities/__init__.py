"""Access-control capabilities composed into contracts."""

from .ownable import Ownable
from .pausable import Pausable
from .set_once import SetOnce

__all__ = ["Ownable", "Pausable", "SetOnce"]
