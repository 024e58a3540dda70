"""Staged, capped, whitelisted token sale.

Stages only move forward:

    SETUP -> SALE_STARTED -> SALE_ENDED -> REFUNDING

Every transition is owner-triggered, except that a purchase which brings
``wei_raised`` up to the hard cap ends the sale inside the same call.
Pausing blocks ``buy`` and ``withdraw_refund`` but no administrative call.

Purchases deliver tokens by spending the allowance the token's admin gave
this contract, then forward the paid value to the beneficiary. All counters
are updated before any value leaves the contract.
"""

import logging

from ..capabilities import Ownable, Pausable
from ..core import arithmetic
from ..core.config import get_config
from ..core.exceptions import ConfigurationError
from ..core.guards import (
    at_most,
    at_stage,
    first_failure,
    non_zero_address,
    positive,
    require,
    within_window,
)
from ..core.models import (
    CallContext,
    RefundingStarted,
    SaleCloses,
    SaleLimits,
    SaleOpens,
    SaleSnapshot,
    TokenPurchase,
)
from ..core.types import Address, FailureReason, SaleStage, TokenAmount, Wei
from ..ledger.token import GatedToken
from ..runtime import Contract, Runtime, external

logger = logging.getLogger(__name__)


class Sale(Contract):
    """Fundraising state machine selling a GatedToken for native value."""

    def __init__(
        self,
        runtime: Runtime,
        address: Address,
        ctx: CallContext,
        rate: int,
        beneficiary: Address,
        token_address: Address,
        limits: SaleLimits | None = None,
    ):
        super().__init__(runtime, address)
        require(
            positive(rate, FailureReason.INVALID_RATE),
            non_zero_address(beneficiary),
            non_zero_address(token_address),
        )
        if not isinstance(runtime.get(token_address), GatedToken):
            raise ConfigurationError("token_address", f"{token_address} is not a GatedToken")

        self.ownable = Ownable(ctx.caller)
        self.pausable = Pausable(self.ownable)
        self.token_address = token_address
        self.beneficiary = beneficiary
        self.rate = rate
        self.limits = limits or get_config().limits

        self.stage = SaleStage.SETUP
        self.start_time = 0
        self.end_time = 0
        self.wei_raised: Wei = 0
        self.contributions: dict[Address, Wei] = {}
        self.whitelist: set[Address] = set()

        logger.info(
            f"Sale created at {address}: rate {rate}, hard cap {self.limits.hard_cap}, "
            f"beneficiary {beneficiary}"
        )

    # -- views --------------------------------------------------------------

    @property
    def owner(self) -> Address:
        return self.ownable.owner

    @property
    def paused(self) -> bool:
        return self.pausable.paused

    @property
    def token(self) -> GatedToken:
        return self.runtime.get(self.token_address)

    def is_whitelisted(self, address: Address) -> bool:
        return address in self.whitelist

    def contribution_of(self, address: Address) -> Wei:
        return self.contributions.get(address, 0)

    def remaining_cap(self) -> Wei:
        return arithmetic.sub(self.limits.hard_cap, self.wei_raised)

    def tokens_for(self, value: Wei) -> TokenAmount:
        return arithmetic.mul(value, self.rate)

    def snapshot(self) -> SaleSnapshot:
        return SaleSnapshot(
            address=self.address,
            token_address=self.token_address,
            owner=self.owner,
            beneficiary=self.beneficiary,
            stage=self.stage,
            paused=self.paused,
            rate=self.rate,
            start_time=self.start_time,
            end_time=self.end_time,
            wei_raised=self.wei_raised,
            limits=self.limits,
            held_value=self.value_balance(),
            contributions=dict(self.contributions),
            whitelist=sorted(self.whitelist),
        )

    # -- purchase -----------------------------------------------------------

    def purchase_failure(self, ctx: CallContext) -> FailureReason | None:
        """First reason ``buy`` would reject this context, in check order."""
        return first_failure(
            self.pausable.when_not_paused(),
            at_stage(self.stage, SaleStage.SALE_STARTED),
            within_window(ctx.timestamp, self.start_time, self.end_time),
            non_zero_address(ctx.caller),
            at_most(self.limits.min_contribution, ctx.value, FailureReason.BELOW_MINIMUM),
            at_most(
                self.wei_raised + ctx.value,
                self.limits.hard_cap,
                FailureReason.HARD_CAP_EXCEEDED,
            ),
            at_most(
                self.contribution_of(ctx.caller) + ctx.value,
                self.limits.participant_cap,
                FailureReason.PARTICIPANT_CAP_EXCEEDED,
            ),
            None if self.is_whitelisted(ctx.caller) else FailureReason.NOT_WHITELISTED,
        )

    @external(payable=True)
    def buy(self, ctx: CallContext) -> TokenAmount:
        """Buy tokens with the attached value; returns the tokens delivered."""
        require(self.purchase_failure(ctx))

        value = ctx.value
        tokens = self.tokens_for(value)
        self.call(
            self.token_address, "transfer_from", ctx, self.token.admin, ctx.caller, tokens
        )

        self.wei_raised = arithmetic.add(self.wei_raised, value)
        self.contributions[ctx.caller] = arithmetic.add(self.contribution_of(ctx.caller), value)
        self.emit(TokenPurchase(purchaser=ctx.caller, value=value, tokens=tokens))
        logger.info(f"{ctx.caller} bought {tokens} tokens for {value}")

        if self.wei_raised >= self.limits.hard_cap:
            logger.info("Hard cap reached")
            self._close(ctx)

        self.send_value(ctx, self.beneficiary, value)
        return tokens

    @external(payable=True)
    def fund_refunds(self, ctx: CallContext) -> Wei:
        """Accept value into the contract (e.g. returned by the beneficiary)."""
        require(positive(ctx.value))
        logger.info(f"{ctx.caller} funded the sale with {ctx.value}")
        return self.value_balance()

    # -- stage transitions --------------------------------------------------

    @external
    def start_sale(self, ctx: CallContext) -> None:
        require(self.ownable.only_owner(ctx), at_stage(self.stage, SaleStage.SETUP))
        self.stage = SaleStage.SALE_STARTED
        self.start_time = ctx.timestamp
        self.end_time = arithmetic.add(ctx.timestamp, self.limits.duration)
        self.emit(SaleOpens(start_time=self.start_time, end_time=self.end_time))
        logger.info(f"Sale opened from {self.start_time} to {self.end_time}")

    @external
    def end_sale(self, ctx: CallContext) -> None:
        require(self.ownable.only_owner(ctx), at_stage(self.stage, SaleStage.SALE_STARTED))
        self._close(ctx)

    def _close(self, ctx: CallContext) -> None:
        self.stage = SaleStage.SALE_ENDED
        self.end_time = ctx.timestamp
        self.emit(SaleCloses(end_time=self.end_time, total_raised=self.wei_raised))
        logger.info(f"Sale closed at {self.end_time} having raised {self.wei_raised}")

    @external
    def enable_refunds(self, ctx: CallContext) -> None:
        require(self.ownable.only_owner(ctx), at_stage(self.stage, SaleStage.SALE_ENDED))
        self.stage = SaleStage.REFUNDING
        # start_time is reused as the moment refunding began
        self.start_time = ctx.timestamp
        self.emit(RefundingStarted(start_time=self.start_time))
        logger.info(f"Refunding started at {self.start_time}")

    # -- refunds ------------------------------------------------------------

    @external
    def withdraw_refund(self, ctx: CallContext) -> bool:
        """Pay the caller back their whole contribution."""
        require(
            self.pausable.when_not_paused(),
            at_stage(self.stage, SaleStage.SALE_ENDED),
        )
        amount = self.contribution_of(ctx.caller)
        self.contributions[ctx.caller] = 0
        logger.info(f"Refunding {amount} to {ctx.caller}")
        self.send_value(ctx, ctx.caller, amount)
        return True

    @external
    def owner_safe_withdrawal(self, ctx: CallContext) -> Wei:
        """Sweep everything the contract holds to the beneficiary.

        Ignores stage and pending refunds.
        """
        require(self.ownable.only_owner(ctx))
        amount = self.value_balance()
        logger.warning(f"Owner sweeping {amount} to {self.beneficiary}")
        self.send_value(ctx, self.beneficiary, amount)
        return amount

    # -- configuration ------------------------------------------------------

    @external
    def add_to_whitelist(self, ctx: CallContext, addresses: list[Address]) -> None:
        require(self.ownable.only_owner(ctx), at_stage(self.stage, SaleStage.SETUP))
        self.whitelist.update(addresses)
        logger.info(f"Whitelisted {len(addresses)} addresses ({len(self.whitelist)} total)")

    @external
    def update_rate(self, ctx: CallContext, rate: int) -> None:
        require(
            self.ownable.only_owner(ctx),
            at_stage(self.stage, SaleStage.SETUP),
            positive(rate, FailureReason.INVALID_RATE),
        )
        logger.info(f"Rate updated from {self.rate} to {rate}")
        self.rate = rate

    @external
    def pause(self, ctx: CallContext) -> None:
        self.emit(self.pausable.pause(ctx))

    @external
    def unpause(self, ctx: CallContext) -> None:
        self.emit(self.pausable.unpause(ctx))

    @external
    def transfer_ownership(self, ctx: CallContext, new_owner: Address) -> None:
        self.emit(self.ownable.transfer_ownership(ctx, new_owner))
