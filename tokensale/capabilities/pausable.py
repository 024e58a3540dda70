"""On/off switch that gates designated operations."""

import logging

from ..core.guards import require
from ..core.models import CallContext, Paused, Unpaused
from ..core.types import FailureReason
from .ownable import Ownable

logger = logging.getLogger(__name__)


class Pausable:
    """Pause flag controlled by the owner of the composing contract."""

    def __init__(self, ownable: Ownable):
        self._ownable = ownable
        self.paused = False

    def when_not_paused(self) -> FailureReason | None:
        if self.paused:
            return FailureReason.PAUSED
        return None

    def when_paused(self) -> FailureReason | None:
        if not self.paused:
            return FailureReason.NOT_PAUSED
        return None

    def pause(self, ctx: CallContext) -> Paused:
        require(self._ownable.only_owner(ctx), self.when_not_paused())
        self.paused = True
        logger.info("Paused")
        return Paused()

    def unpause(self, ctx: CallContext) -> Unpaused:
        require(self._ownable.only_owner(ctx), self.when_paused())
        self.paused = False
        logger.info("Unpaused")
        return Unpaused()
