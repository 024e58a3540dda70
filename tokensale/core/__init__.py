"""Core module - data models, types, exceptions and primitives."""

from .models import (
    CallContext,
    Event,
    Transfer,
    Approval,
    Burn,
    SaleOpens,
    SaleCloses,
    RefundingStarted,
    TokenPurchase,
    OwnershipTransferred,
    Paused,
    Unpaused,
    ValueTransfer,
    SaleLimits,
    TokenSnapshot,
    SaleSnapshot,
    StepOutcome,
    SimulationReport,
)
from .types import (
    SaleStage,
    FailureReason,
    ArithmeticOperation,
    ZERO_ADDRESS,
)
from .exceptions import (
    TokenSaleError,
    PreconditionError,
    ArithmeticFault,
    NestedCallError,
    UnknownContractError,
    ConfigurationError,
)

__all__ = [
    # Models
    "CallContext",
    "Event",
    "Transfer",
    "Approval",
    "Burn",
    "SaleOpens",
    "SaleCloses",
    "RefundingStarted",
    "TokenPurchase",
    "OwnershipTransferred",
    "Paused",
    "Unpaused",
    "ValueTransfer",
    "SaleLimits",
    "TokenSnapshot",
    "SaleSnapshot",
    "StepOutcome",
    "SimulationReport",
    # Types
    "SaleStage",
    "FailureReason",
    "ArithmeticOperation",
    "ZERO_ADDRESS",
    # Exceptions
    "TokenSaleError",
    "PreconditionError",
    "ArithmeticFault",
    "NestedCallError",
    "UnknownContractError",
    "ConfigurationError",
]
