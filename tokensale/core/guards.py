"""Composable precondition checks.

Each guard returns ``None`` when the condition holds and a FailureReason
when it does not. ``require`` evaluates them in order and raises on the
first failure, so a call site reads as a flat list of conditions:

    require(
        self.ownable.only_owner(ctx),
        at_stage(self.stage, SaleStage.SETUP),
    )

Arguments are evaluated eagerly by Python; guards must be side-effect free.
"""

from collections.abc import Iterable

from .exceptions import PreconditionError
from .types import Address, FailureReason, SaleStage, ZERO_ADDRESS

Check = FailureReason | None


def require(*checks: Check) -> None:
    """Raise PreconditionError for the first failed check."""
    for check in checks:
        if check is not None:
            raise PreconditionError(check)


def first_failure(*checks: Check) -> Check:
    """Return the first failed check without raising."""
    for check in checks:
        if check is not None:
            return check
    return None


def non_zero_address(address: Address | None) -> Check:
    if not address or address == ZERO_ADDRESS:
        return FailureReason.ZERO_ADDRESS
    return None


def positive(value: int, reason: FailureReason = FailureReason.INVALID_AMOUNT) -> Check:
    if value <= 0:
        return reason
    return None


def sufficient(available: int, needed: int, reason: FailureReason) -> Check:
    if available < needed:
        return reason
    return None


def not_in(address: Address, forbidden: Iterable[Address | None]) -> Check:
    """Reject an address that matches any of the (set) forbidden ones."""
    if address in {a for a in forbidden if a}:
        return FailureReason.INVALID_DESTINATION
    return None


def at_stage(current: SaleStage, expected: SaleStage) -> Check:
    if current != expected:
        return FailureReason.WRONG_STAGE
    return None


def within_window(now: int, start: int, end: int) -> Check:
    if now < start or now > end:
        return FailureReason.OUTSIDE_WINDOW
    return None


def at_most(value: int, limit: int, reason: FailureReason) -> Check:
    if value > limit:
        return reason
    return None


def non_negative(value: int) -> Check:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return FailureReason.INVALID_AMOUNT
    return None
