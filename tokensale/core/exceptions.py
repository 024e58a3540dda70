"""Custom exceptions for the token sale engine."""

from .types import Address, ArithmeticOperation, FailureReason


class TokenSaleError(Exception):
    """Base exception for all token sale engine errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class PreconditionError(TokenSaleError):
    """Raised when an operation is rejected before any state is touched."""

    def __init__(self, reason: FailureReason, message: str | None = None):
        full_message = f"Precondition failed: {reason.value}"
        if message:
            full_message += f" ({message})"
        super().__init__(full_message, {"reason": reason.value})
        self.reason = reason


class ArithmeticFault(TokenSaleError):
    """Raised on overflow, underflow or an inconsistent division.

    Signals a broken invariant rather than bad user input, so callers are
    not expected to recover from it.
    """

    def __init__(self, operation: ArithmeticOperation, a: int, b: int, message: str):
        full_message = f"Arithmetic fault in {operation.value}({a}, {b}): {message}"
        super().__init__(
            full_message,
            {"operation": operation.value, "a": a, "b": b},
        )
        self.operation = operation
        self.a = a
        self.b = b


class NestedCallError(TokenSaleError):
    """Raised when a call into another contract fails mid-operation."""

    def __init__(self, target: Address, cause: TokenSaleError):
        full_message = f"Nested call to {target} failed: {cause.message}"
        super().__init__(full_message, {"target": target, "cause": cause.details})
        self.target = target
        self.cause = cause

    @property
    def reason(self) -> FailureReason | None:
        """Failure reason of the innermost precondition, if there was one."""
        cause = self.cause
        while isinstance(cause, NestedCallError):
            cause = cause.cause
        return getattr(cause, "reason", None)


class UnknownContractError(TokenSaleError):
    """Raised when no contract is deployed at an address."""

    def __init__(self, address: Address):
        super().__init__(f"No contract deployed at {address}", {"address": address})
        self.address = address


class ConfigurationError(TokenSaleError):
    """Raised when configuration or a scenario file is invalid."""

    def __init__(self, config_key: str, message: str):
        full_message = f"Configuration error [{config_key}]: {message}"
        super().__init__(full_message, {"config_key": config_key})
        self.config_key = config_key
