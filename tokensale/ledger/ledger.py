"""Balance and allowance bookkeeping.

The ledger is a plain capability: it takes explicit owner/spender addresses
and returns the events a composing contract should emit. It knows nothing
about callers, gates or privileged addresses.

Known non-atomicity of ``approve``: it overwrites the allowance, so a
spender watching for the change can spend the old allowance and then the
new one. Callers should set the allowance to zero before setting a new
non-zero value, or use increase_approval / decrease_approval.
"""

import logging

from ..core import arithmetic
from ..core.guards import non_negative, non_zero_address, require, sufficient
from ..core.models import Approval, Burn, Event, Transfer
from ..core.types import Address, FailureReason, TokenAmount, ZERO_ADDRESS

logger = logging.getLogger(__name__)


class Ledger:
    """Balances plus an owner -> spender allowance table."""

    def __init__(self) -> None:
        self.total_supply: TokenAmount = 0
        self._balances: dict[Address, TokenAmount] = {}
        self._allowances: dict[Address, dict[Address, TokenAmount]] = {}

    # -- queries ------------------------------------------------------------

    def balance_of(self, owner: Address) -> TokenAmount:
        return self._balances.get(owner, 0)

    def allowance(self, owner: Address, spender: Address) -> TokenAmount:
        return self._allowances.get(owner, {}).get(spender, 0)

    def balances(self) -> dict[Address, TokenAmount]:
        """All non-zero balances."""
        return {a: v for a, v in self._balances.items() if v > 0}

    # -- supply -------------------------------------------------------------

    def mint(self, to: Address, value: TokenAmount) -> Transfer:
        """Create ``value`` tokens for ``to``. Only used to seed supply."""
        require(non_zero_address(to))
        self.total_supply = arithmetic.add(self.total_supply, value)
        self._balances[to] = arithmetic.add(self.balance_of(to), value)
        return Transfer(sender=ZERO_ADDRESS, recipient=to, value=value)

    def burn(self, burner: Address, value: TokenAmount) -> list[Event]:
        require(
            non_negative(value),
            sufficient(self.balance_of(burner), value, FailureReason.INSUFFICIENT_BALANCE),
        )
        self._balances[burner] = arithmetic.sub(self.balance_of(burner), value)
        self.total_supply = arithmetic.sub(self.total_supply, value)
        logger.debug(f"Burned {value} from {burner}")
        return [
            Burn(burner=burner, value=value),
            Transfer(sender=burner, recipient=ZERO_ADDRESS, value=value),
        ]

    # -- transfers ----------------------------------------------------------

    def transfer(self, sender: Address, to: Address, value: TokenAmount) -> Transfer:
        require(
            non_negative(value),
            non_zero_address(to),
            sufficient(self.balance_of(sender), value, FailureReason.INSUFFICIENT_BALANCE),
        )
        self._move(sender, to, value)
        return Transfer(sender=sender, recipient=to, value=value)

    def transfer_from(
        self,
        spender: Address,
        owner: Address,
        to: Address,
        value: TokenAmount,
    ) -> Transfer:
        require(
            non_negative(value),
            non_zero_address(to),
            sufficient(self.balance_of(owner), value, FailureReason.INSUFFICIENT_BALANCE),
            sufficient(self.allowance(owner, spender), value, FailureReason.INSUFFICIENT_ALLOWANCE),
        )
        self._set_allowance(owner, spender, arithmetic.sub(self.allowance(owner, spender), value))
        self._move(owner, to, value)
        return Transfer(sender=owner, recipient=to, value=value)

    def _move(self, sender: Address, to: Address, value: TokenAmount) -> None:
        self._balances[sender] = arithmetic.sub(self.balance_of(sender), value)
        self._balances[to] = arithmetic.add(self.balance_of(to), value)
        logger.debug(f"Moved {value} from {sender} to {to}")

    # -- allowances ---------------------------------------------------------

    def approve(self, owner: Address, spender: Address, value: TokenAmount) -> Approval:
        """Set (not add to) the allowance of ``spender`` over ``owner``'s balance."""
        require(non_zero_address(spender), non_negative(value))
        self._set_allowance(owner, spender, value)
        return Approval(owner=owner, spender=spender, value=value)

    def increase_approval(self, owner: Address, spender: Address, added: TokenAmount) -> Approval:
        require(non_zero_address(spender), non_negative(added))
        value = arithmetic.add(self.allowance(owner, spender), added)
        self._set_allowance(owner, spender, value)
        return Approval(owner=owner, spender=spender, value=value)

    def decrease_approval(
        self, owner: Address, spender: Address, subtracted: TokenAmount
    ) -> Approval:
        """Lower an allowance, stopping at zero instead of underflowing."""
        require(non_zero_address(spender), non_negative(subtracted))
        current = self.allowance(owner, spender)
        value = 0 if subtracted > current else arithmetic.sub(current, subtracted)
        self._set_allowance(owner, spender, value)
        return Approval(owner=owner, spender=spender, value=value)

    def _set_allowance(self, owner: Address, spender: Address, value: TokenAmount) -> None:
        if value < 0:
            raise ValueError(f"Allowance must be non-negative, got {value}")
        self._allowances.setdefault(owner, {})[spender] = value
