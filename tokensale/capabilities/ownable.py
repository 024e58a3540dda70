"""Owner identity with transferable ownership."""

import logging

from ..core.guards import non_zero_address, require
from ..core.models import CallContext, OwnershipTransferred
from ..core.types import Address, FailureReason

logger = logging.getLogger(__name__)


class Ownable:
    """Holds the owner of a contract and guards owner-only operations."""

    def __init__(self, owner: Address):
        require(non_zero_address(owner))
        self.owner = owner

    def only_owner(self, ctx: CallContext) -> FailureReason | None:
        if ctx.caller != self.owner:
            return FailureReason.NOT_OWNER
        return None

    def transfer_ownership(self, ctx: CallContext, new_owner: Address) -> OwnershipTransferred:
        """Hand the contract to ``new_owner``; returns the event to emit."""
        require(self.only_owner(ctx), non_zero_address(new_owner))
        previous = self.owner
        self.owner = new_owner
        logger.info(f"Ownership transferred from {previous} to {new_owner}")
        return OwnershipTransferred(previous_owner=previous, new_owner=new_owner)
