"""Fixed-supply token with a transfer gate.

Until the owner calls ``enable_transfer`` only three privileged addresses
may move tokens: the owner, the admin (who holds the initial supply) and
the sale contract (which spends the admin's tokens through a standing
allowance). Enabling transfers is one-way and revokes whatever is left of
the sale's allowance.
"""

import logging

from ..capabilities import Ownable, SetOnce
from ..core.config import SaleSettings, get_config
from ..core.guards import Check, at_most, non_zero_address, not_in, require, sufficient
from ..core.models import CallContext, TokenSnapshot
from ..core.types import Address, FailureReason, TokenAmount
from ..runtime import Contract, Runtime, external
from .ledger import Ledger

logger = logging.getLogger(__name__)


class GatedToken(Contract):
    """ERC20-style token composed from Ownable, Ledger and a set-once sale address."""

    def __init__(
        self,
        runtime: Runtime,
        address: Address,
        ctx: CallContext,
        admin: Address,
        settings: SaleSettings | None = None,
    ):
        super().__init__(runtime, address)
        settings = settings or get_config()
        require(non_zero_address(admin))

        self.name = settings.token_name
        self.symbol = settings.token_symbol
        self.decimals = settings.decimals
        self.sale_allocation: TokenAmount = settings.sale_allocation

        self.ownable = Ownable(ctx.caller)
        self.ledger = Ledger()
        self.admin = admin
        self.token_sale = SetOnce[Address]()
        self.transfer_enabled = False

        self.emit(self.ledger.mint(admin, settings.initial_supply))
        logger.info(
            f"Token {self.symbol} created with supply {settings.initial_supply} held by {admin}"
        )

    # -- views --------------------------------------------------------------

    @property
    def owner(self) -> Address:
        return self.ownable.owner

    @property
    def total_supply(self) -> TokenAmount:
        return self.ledger.total_supply

    @property
    def token_sale_address(self) -> Address | None:
        return self.token_sale.get()

    def balance_of(self, owner: Address) -> TokenAmount:
        return self.ledger.balance_of(owner)

    def allowance(self, owner: Address, spender: Address) -> TokenAmount:
        return self.ledger.allowance(owner, spender)

    def snapshot(self) -> TokenSnapshot:
        sale = self.token_sale_address
        return TokenSnapshot(
            address=self.address,
            name=self.name,
            symbol=self.symbol,
            decimals=self.decimals,
            owner=self.owner,
            admin=self.admin,
            token_sale_address=sale,
            total_supply=self.total_supply,
            transfer_enabled=self.transfer_enabled,
            sale_allowance=self.allowance(self.admin, sale) if sale else 0,
            balances=self.ledger.balances(),
        )

    # -- guards -------------------------------------------------------------

    def _privileged(self) -> tuple[Address | None, ...]:
        return (self.owner, self.admin, self.token_sale_address)

    def can_transfer(self, ctx: CallContext) -> Check:
        if self.transfer_enabled or ctx.caller in self._privileged():
            return None
        return FailureReason.TRANSFER_DISABLED

    def valid_destination(self, to: Address) -> Check:
        return non_zero_address(to) or not_in(to, (self.address, *self._privileged()))

    # -- transfers ----------------------------------------------------------

    @external
    def transfer(self, ctx: CallContext, to: Address, value: TokenAmount) -> bool:
        require(self.can_transfer(ctx), self.valid_destination(to))
        self.emit(self.ledger.transfer(ctx.caller, to, value))
        return True

    @external
    def transfer_from(
        self, ctx: CallContext, sender: Address, to: Address, value: TokenAmount
    ) -> bool:
        require(self.can_transfer(ctx), self.valid_destination(to))
        self.emit(self.ledger.transfer_from(ctx.caller, sender, to, value))
        return True

    @external
    def burn(self, ctx: CallContext, value: TokenAmount) -> bool:
        for event in self.ledger.burn(ctx.caller, value):
            self.emit(event)
        logger.info(f"{ctx.caller} burned {value}, supply now {self.total_supply}")
        return True

    # -- allowances ---------------------------------------------------------

    @external
    def approve(self, ctx: CallContext, spender: Address, value: TokenAmount) -> bool:
        self.emit(self.ledger.approve(ctx.caller, spender, value))
        return True

    @external
    def increase_approval(self, ctx: CallContext, spender: Address, added: TokenAmount) -> bool:
        self.emit(self.ledger.increase_approval(ctx.caller, spender, added))
        return True

    @external
    def decrease_approval(
        self, ctx: CallContext, spender: Address, subtracted: TokenAmount
    ) -> bool:
        self.emit(self.ledger.decrease_approval(ctx.caller, spender, subtracted))
        return True

    # -- administration -----------------------------------------------------

    @external
    def set_token_sale(
        self, ctx: CallContext, sale: Address, amount: TokenAmount | None = None
    ) -> None:
        """Register the sale contract and grant it ``amount`` of the admin's tokens."""
        amount = self.sale_allocation if amount is None else amount
        require(
            self.ownable.only_owner(ctx),
            FailureReason.ALREADY_SET if self.token_sale.is_set else None,
            FailureReason.ALREADY_ENABLED if self.transfer_enabled else None,
            non_zero_address(sale),
            not_in(sale, (self.address, self.admin, self.owner)),
            sufficient(self.balance_of(self.admin), amount, FailureReason.INSUFFICIENT_BALANCE),
            at_most(amount, self.sale_allocation, FailureReason.INVALID_AMOUNT),
        )
        self.token_sale.set(sale)
        self.emit(self.ledger.approve(self.admin, sale, amount))
        logger.info(f"Token sale set to {sale} with allowance {amount}")

    @external
    def enable_transfer(self, ctx: CallContext) -> None:
        require(
            self.ownable.only_owner(ctx),
            FailureReason.ALREADY_ENABLED if self.transfer_enabled else None,
        )
        self.transfer_enabled = True
        sale = self.token_sale_address
        if sale:
            self.emit(self.ledger.approve(self.admin, sale, 0))
        logger.info(f"Transfers enabled for {self.symbol}")

    @external
    def transfer_ownership(self, ctx: CallContext, new_owner: Address) -> None:
        self.emit(self.ownable.transfer_ownership(ctx, new_owner))
