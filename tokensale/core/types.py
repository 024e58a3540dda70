"""Type definitions and enums for the token sale engine."""

from enum import Enum


class SaleStage(str, Enum):
    """Lifecycle stages of a sale, in the only order they may occur."""

    SETUP = "setup"
    SALE_STARTED = "sale_started"
    SALE_ENDED = "sale_ended"
    REFUNDING = "refunding"

    @property
    def display_name(self) -> str:
        """Human-readable display name."""
        names = {
            self.SETUP: "Setup",
            self.SALE_STARTED: "Sale Started",
            self.SALE_ENDED: "Sale Ended",
            self.REFUNDING: "Refunding",
        }
        return names.get(self, self.value)


class FailureReason(str, Enum):
    """Why a precondition check rejected an operation."""

    # Access control
    NOT_OWNER = "not_owner"
    PAUSED = "paused"
    NOT_PAUSED = "not_paused"

    # Addresses and amounts
    ZERO_ADDRESS = "zero_address"
    INVALID_DESTINATION = "invalid_destination"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_RATE = "invalid_rate"
    NOT_PAYABLE = "not_payable"

    # Ledger
    INSUFFICIENT_BALANCE = "insufficient_balance"
    INSUFFICIENT_ALLOWANCE = "insufficient_allowance"
    TRANSFER_DISABLED = "transfer_disabled"
    ALREADY_ENABLED = "already_enabled"
    ALREADY_SET = "already_set"

    # Sale
    WRONG_STAGE = "wrong_stage"
    OUTSIDE_WINDOW = "outside_window"
    BELOW_MINIMUM = "below_minimum"
    HARD_CAP_EXCEEDED = "hard_cap_exceeded"
    PARTICIPANT_CAP_EXCEEDED = "participant_cap_exceeded"
    NOT_WHITELISTED = "not_whitelisted"


class ArithmeticOperation(str, Enum):
    """Checked arithmetic operations."""

    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"


# Type aliases for common patterns
Address = str   # 0x-prefixed, 40 hex chars
Wei = int       # Native value in its smallest unit
TokenAmount = int  # Token base units
Timestamp = int    # Unix timestamp in seconds

ZERO_ADDRESS: Address = "0x" + "0" * 40
