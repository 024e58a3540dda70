"""Host execution environment for contracts.

The runtime owns everything contracts share: the registry of deployed
contracts, native value balances and the event log. Every external call
runs inside ``Runtime.transaction()``:

- a re-entrant lock gives all calls a single serialization order
- the outermost frame snapshots all state before the call
- any exception escaping the outermost frame restores that snapshot

Nested calls (contract to contract, value payouts into receive hooks) join
the transaction already open on the thread, so a failure anywhere in the
chain unwinds the whole external call.
"""

import copy
import functools
import hashlib
import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from .core.exceptions import (
    ArithmeticFault,
    NestedCallError,
    TokenSaleError,
    UnknownContractError,
)
from .core.guards import non_zero_address, require, sufficient
from .core import arithmetic
from .core.models import CallContext, Event, ValueTransfer
from .core.types import Address, FailureReason, Timestamp, Wei, ZERO_ADDRESS

logger = logging.getLogger(__name__)

ReceiveHook = Callable[[CallContext], None]
C = TypeVar("C", bound="Contract")


def derive_address(deployer: Address, nonce: int) -> Address:
    """Deterministic contract address from deployer and deploy count."""
    digest = hashlib.sha3_256(f"{deployer.lower()}:{nonce}".encode("utf-8")).hexdigest()
    return "0x" + digest[-40:]


class NativeBank:
    """Native value balances of every address."""

    def __init__(self) -> None:
        self._balances: dict[Address, Wei] = {}

    def balance_of(self, address: Address) -> Wei:
        return self._balances.get(address, 0)

    def balances(self) -> dict[Address, Wei]:
        return {a: v for a, v in self._balances.items() if v > 0}

    def mint(self, address: Address, amount: Wei) -> None:
        """Credit value out of thin air (genesis funding)."""
        require(non_zero_address(address))
        self._balances[address] = arithmetic.add(self.balance_of(address), amount)

    def move(self, sender: Address, recipient: Address, amount: Wei) -> None:
        require(
            non_zero_address(recipient),
            sufficient(self.balance_of(sender), amount, FailureReason.INSUFFICIENT_BALANCE),
        )
        self._balances[sender] = arithmetic.sub(self.balance_of(sender), amount)
        self._balances[recipient] = arithmetic.add(self.balance_of(recipient), amount)

    def snapshot(self) -> dict[Address, Wei]:
        return dict(self._balances)

    def restore(self, state: dict[Address, Wei]) -> None:
        self._balances = dict(state)


class EventLog:
    """Append-only record of emitted events."""

    def __init__(self) -> None:
        self._events: list[Event] = []

    def __len__(self) -> int:
        return len(self._events)

    def emit(self, event: Event, emitter: Address) -> Event:
        recorded = event.model_copy(update={"emitter": emitter, "sequence": len(self._events)})
        self._events.append(recorded)
        logger.debug(f"{recorded.name} from {emitter}: {recorded.payload()}")
        return recorded

    def all(self) -> list[Event]:
        return list(self._events)

    def since(self, position: int) -> list[Event]:
        return self._events[position:]

    def filter(
        self,
        event_type: type[Event] | None = None,
        emitter: Address | None = None,
        **fields: Any,
    ) -> list[Event]:
        """Events matching a type, an emitter and exact field values."""
        matches = []
        for event in self._events:
            if event_type is not None and not isinstance(event, event_type):
                continue
            if emitter is not None and event.emitter != emitter:
                continue
            if any(getattr(event, k, None) != v for k, v in fields.items()):
                continue
            matches.append(event)
        return matches

    def truncate(self, length: int) -> None:
        del self._events[length:]


class Runtime:
    """Registry, value bank and transaction manager for a set of contracts."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._depth = 0
        self._contracts: dict[Address, "Contract"] = {}
        self._nonces: dict[Address, int] = {}
        self._receivers: dict[Address, ReceiveHook] = {}
        self.bank = NativeBank()
        self.events = EventLog()

    # -- registry -----------------------------------------------------------

    def get(self, address: Address) -> "Contract":
        try:
            return self._contracts[address]
        except KeyError:
            raise UnknownContractError(address)

    def contracts(self) -> list["Contract"]:
        return list(self._contracts.values())

    def is_contract(self, address: Address) -> bool:
        return address in self._contracts

    def deploy(self, contract_cls: type[C], ctx: CallContext, *args: Any, **kwargs: Any) -> C:
        """Create a contract at a fresh address; the deployer is ``ctx.caller``."""
        with self.transaction():
            require(
                non_zero_address(ctx.caller),
                FailureReason.NOT_PAYABLE if ctx.value else None,
            )
            nonce = self._nonces.get(ctx.caller, 0)
            self._nonces[ctx.caller] = nonce + 1
            address = derive_address(ctx.caller, nonce)
            contract = contract_cls(self, address, ctx, *args, **kwargs)
            self._contracts[address] = contract
            logger.info(f"Deployed {contract_cls.__name__} at {address}")
            return contract

    # -- value --------------------------------------------------------------

    def register_receiver(self, address: Address, hook: ReceiveHook) -> None:
        """Run ``hook`` whenever ``address`` is paid (simulates receiving code)."""
        self._receivers[address] = hook

    def unregister_receiver(self, address: Address) -> None:
        self._receivers.pop(address, None)

    def send(self, sender: Address, recipient: Address, amount: Wei, timestamp: Timestamp) -> None:
        """Pay ``amount`` and hand control to the recipient's receive hook."""
        with self.transaction():
            self.bank.move(sender, recipient, amount)
            self.events.emit(
                ValueTransfer(sender=sender, recipient=recipient, value=amount), sender
            )
            hook = self._receivers.get(recipient)
            if hook is None:
                return
            try:
                hook(CallContext(caller=sender, timestamp=timestamp, value=amount))
            except ArithmeticFault:
                raise
            except TokenSaleError as e:
                raise NestedCallError(recipient, e) from e

    # -- transactions -------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed block atomically; nested blocks join the outer one."""
        with self._lock:
            outermost = self._depth == 0
            saved = self._snapshot() if outermost else None
            self._depth += 1
            try:
                yield
            except BaseException:
                if outermost:
                    self._restore(saved)
                    logger.debug("Transaction rolled back")
                raise
            finally:
                self._depth -= 1

    def _snapshot(self) -> dict[str, Any]:
        return {
            "contracts": {a: (c, c.snapshot_state()) for a, c in self._contracts.items()},
            "nonces": dict(self._nonces),
            "bank": self.bank.snapshot(),
            "events": len(self.events),
        }

    def _restore(self, saved: dict[str, Any]) -> None:
        self._contracts = {}
        for address, (contract, state) in saved["contracts"].items():
            contract.restore_state(state)
            self._contracts[address] = contract
        self._nonces = saved["nonces"]
        self.bank.restore(saved["bank"])
        self.events.truncate(saved["events"])


class Contract:
    """Base for anything deployed on a Runtime.

    Subclasses keep references to other contracts as addresses and resolve
    them through the runtime, so that a state snapshot only covers the
    contract's own fields.
    """

    _UNSNAPSHOTTED = ("runtime", "address")

    def __init__(self, runtime: Runtime, address: Address):
        self.runtime = runtime
        self.address = address

    def emit(self, event: Event) -> Event:
        return self.runtime.events.emit(event, self.address)

    def value_balance(self) -> Wei:
        return self.runtime.bank.balance_of(self.address)

    def call(self, target: Address, method: str, ctx: CallContext, *args: Any, **kwargs: Any) -> Any:
        """Invoke ``method`` on another contract with this contract as caller."""
        contract = self.runtime.get(target)
        try:
            return getattr(contract, method)(ctx.nested(self.address), *args, **kwargs)
        except ArithmeticFault:
            raise
        except TokenSaleError as e:
            raise NestedCallError(target, e) from e

    def send_value(self, ctx: CallContext, recipient: Address, amount: Wei) -> None:
        self.runtime.send(self.address, recipient, amount, ctx.timestamp)

    def snapshot_state(self) -> dict[str, Any]:
        return copy.deepcopy(
            {k: v for k, v in vars(self).items() if k not in self._UNSNAPSHOTTED}
        )

    def restore_state(self, state: dict[str, Any]) -> None:
        for key in [k for k in vars(self) if k not in self._UNSNAPSHOTTED]:
            delattr(self, key)
        for key, value in copy.deepcopy(state).items():
            setattr(self, key, value)


def external(fn: Callable | None = None, *, payable: bool = False) -> Callable:
    """Mark a contract method as an externally callable, atomic operation.

    The first argument after ``self`` must be the CallContext. For payable
    methods the attached value is moved from the caller to the contract
    before the body runs; other methods reject attached value.
    """

    def decorator(method: Callable) -> Callable:
        @functools.wraps(method)
        def wrapper(self: Contract, ctx: CallContext, *args: Any, **kwargs: Any) -> Any:
            with self.runtime.transaction():
                if ctx.value:
                    require(None if payable else FailureReason.NOT_PAYABLE)
                    self.runtime.bank.move(ctx.caller, self.address, ctx.value)
                return method(self, ctx, *args, **kwargs)

        wrapper.payable = payable  # type: ignore[attr-defined]
        return wrapper

    if fn is not None:
        return decorator(fn)
    return decorator


__all__ = [
    "Contract",
    "EventLog",
    "NativeBank",
    "Runtime",
    "ZERO_ADDRESS",
    "derive_address",
    "external",
]
