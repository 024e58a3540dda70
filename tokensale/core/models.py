"""Pydantic data models for the token sale engine.

Call contexts, events and snapshots are immutable (frozen) after creation
so that nothing recorded in the event log can be altered afterwards.
"""

from datetime import datetime, timezone
from typing import Any, ClassVar

from pydantic import BaseModel, Field, field_validator

from .types import Address, SaleStage, Timestamp, TokenAmount, Wei, ZERO_ADDRESS


class CallContext(BaseModel):
    """Who is calling, when, and with how much attached value."""

    caller: Address
    timestamp: Timestamp = 0
    value: Wei = 0

    model_config = {"frozen": True}

    @field_validator("timestamp", "value")
    @classmethod
    def validate_unsigned(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Must be non-negative, got {v}")
        return v

    def nested(self, caller: Address, value: Wei = 0) -> "CallContext":
        """Context for a call made by a contract on behalf of this one."""
        return CallContext(caller=caller, timestamp=self.timestamp, value=value)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class Event(BaseModel):
    """Base class for everything a contract emits."""

    name: ClassVar[str] = "Event"

    emitter: Address = ZERO_ADDRESS
    sequence: int = 0

    model_config = {"frozen": True}

    @property
    def subject(self) -> Address | None:
        """The indexed address this event is about."""
        return None

    def payload(self) -> dict[str, Any]:
        """Event fields without the bookkeeping ones."""
        return self.model_dump(mode="json", exclude={"emitter", "sequence"})


class Transfer(Event):
    name: ClassVar[str] = "Transfer"

    sender: Address
    recipient: Address
    value: TokenAmount

    @property
    def subject(self) -> Address:
        return self.sender


class Approval(Event):
    name: ClassVar[str] = "Approval"

    owner: Address
    spender: Address
    value: TokenAmount

    @property
    def subject(self) -> Address:
        return self.owner


class Burn(Event):
    name: ClassVar[str] = "Burn"

    burner: Address
    value: TokenAmount

    @property
    def subject(self) -> Address:
        return self.burner


class SaleOpens(Event):
    name: ClassVar[str] = "SaleOpens"

    start_time: Timestamp
    end_time: Timestamp


class SaleCloses(Event):
    name: ClassVar[str] = "SaleCloses"

    end_time: Timestamp
    total_raised: Wei


class RefundingStarted(Event):
    name: ClassVar[str] = "RefundingStarted"

    start_time: Timestamp


class TokenPurchase(Event):
    name: ClassVar[str] = "TokenPurchase"

    purchaser: Address
    value: Wei
    tokens: TokenAmount

    @property
    def subject(self) -> Address:
        return self.purchaser


class OwnershipTransferred(Event):
    name: ClassVar[str] = "OwnershipTransferred"

    previous_owner: Address
    new_owner: Address

    @property
    def subject(self) -> Address:
        return self.previous_owner


class Paused(Event):
    name: ClassVar[str] = "Pause"


class Unpaused(Event):
    name: ClassVar[str] = "Unpause"


class ValueTransfer(Event):
    """Native value moved between two addresses."""

    name: ClassVar[str] = "ValueTransfer"

    sender: Address
    recipient: Address
    value: Wei

    @property
    def subject(self) -> Address:
        return self.recipient


# ---------------------------------------------------------------------------
# Configuration and snapshots
# ---------------------------------------------------------------------------


class SaleLimits(BaseModel):
    """Contribution limits and duration of a sale."""

    min_contribution: Wei
    hard_cap: Wei
    participant_cap: Wei
    duration: int  # seconds

    model_config = {"frozen": True}

    @field_validator("min_contribution", "hard_cap", "participant_cap", "duration")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Must be positive, got {v}")
        return v


class TokenSnapshot(BaseModel):
    """Read-only view of a token."""

    address: Address
    name: str
    symbol: str
    decimals: int
    owner: Address
    admin: Address
    token_sale_address: Address | None = None
    total_supply: TokenAmount
    transfer_enabled: bool
    sale_allowance: TokenAmount = 0
    balances: dict[Address, TokenAmount] = Field(default_factory=dict)

    model_config = {"frozen": True}


class SaleSnapshot(BaseModel):
    """Read-only view of a sale."""

    address: Address
    token_address: Address
    owner: Address
    beneficiary: Address
    stage: SaleStage
    paused: bool
    rate: int
    start_time: Timestamp
    end_time: Timestamp
    wei_raised: Wei
    limits: SaleLimits
    held_value: Wei = 0
    contributions: dict[Address, Wei] = Field(default_factory=dict)
    whitelist: list[Address] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def percent_filled(self) -> float:
        """Share of the hard cap raised so far, 0-100."""
        return self.wei_raised * 100 / self.limits.hard_cap

    @property
    def participants(self) -> int:
        return sum(1 for v in self.contributions.values() if v > 0)


class StepOutcome(BaseModel):
    """Result of a single scenario step."""

    index: int
    action: str
    caller: Address
    timestamp: Timestamp
    success: bool
    expected_failure: bool = False
    error_message: str | None = None
    failure_reason: str | None = None
    events: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def as_expected(self) -> bool:
        return self.success != self.expected_failure


class SimulationReport(BaseModel):
    """Complete result of running a scenario."""

    scenario: str
    token: TokenSnapshot
    sale: SaleSnapshot | None = None
    steps: list[StepOutcome] = Field(default_factory=list)
    events: list[dict[str, Any]] = Field(default_factory=list)
    value_balances: dict[Address, Wei] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    tool_version: str = "0.1.0"

    model_config = {"frozen": True}

    @property
    def unexpected_steps(self) -> list[StepOutcome]:
        return [s for s in self.steps if not s.as_expected]
