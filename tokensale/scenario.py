"""Scenario runner.

Deploys a token and a sale on a fresh Runtime, then plays a scripted list
of steps against them and collects a SimulationReport.

Scenario files are YAML:

    name: capped-sale
    rate: 1000
    settings:               # optional SaleSettings overrides
      hard_cap: 10
      participant_cap: 5
      min_contribution: 1
    accounts:               # native value funding
      alice: 10
    steps:
      - {action: add_to_whitelist, caller: owner, addresses: [alice]}
      - {action: start_sale, caller: owner, at: 1000}
      - {action: buy, caller: alice, value: 3}
      - {action: buy, caller: alice, value: 3, expect_failure: true}

Account names are mapped to stable addresses; ``owner``, ``admin`` and
``beneficiary`` always exist, and ``token`` / ``sale`` name the deployed
contracts.
"""

import hashlib
import logging
from pathlib import Path
from typing import Any, Callable

import yaml
from pydantic import ValidationError

from .core.config import SaleSettings, get_config
from .core.exceptions import ConfigurationError, TokenSaleError
from .core.models import CallContext, SimulationReport, StepOutcome
from .core.types import Address
from .ledger.token import GatedToken
from .runtime import Runtime
from .sale.sale import Sale

logger = logging.getLogger(__name__)

DEFAULT_START_TIME = 1_700_000_000

# action -> step keys passed as positional arguments, in order
SALE_ACTIONS: dict[str, tuple[str, ...]] = {
    "buy": (),
    "fund_refunds": (),
    "start_sale": (),
    "end_sale": (),
    "enable_refunds": (),
    "withdraw_refund": (),
    "owner_safe_withdrawal": (),
    "pause": (),
    "unpause": (),
    "add_to_whitelist": ("addresses",),
    "update_rate": ("rate",),
    "transfer_ownership": ("new_owner",),
}
TOKEN_ACTIONS: dict[str, tuple[str, ...]] = {
    "transfer": ("to", "amount"),
    "transfer_from": ("from", "to", "amount"),
    "approve": ("spender", "amount"),
    "increase_approval": ("spender", "amount"),
    "decrease_approval": ("spender", "amount"),
    "burn": ("amount",),
    "enable_transfer": (),
    "transfer_token_ownership": ("new_owner",),
}
ADDRESS_KEYS = {"to", "from", "spender", "new_owner"}


def account_address(name: str) -> Address:
    """Stable address for a named account; real addresses pass through."""
    if name.startswith("0x") and len(name) == 42:
        return name.lower()
    return "0x" + hashlib.sha3_256(f"account:{name}".encode("utf-8")).hexdigest()[-40:]


def _as_int(value: Any, key: str, where: str) -> int:
    """Scenario numbers may be written as strings; anything else is an error."""
    if isinstance(value, bool):
        raise ConfigurationError(where, f"'{key}' must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(where, f"'{key}' must be an integer, got {value!r}")


def load_scenario(path: Path | str) -> dict[str, Any]:
    """Read a scenario file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            scenario = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(str(path), "scenario file not found")
    except yaml.YAMLError as e:
        raise ConfigurationError(str(path), f"invalid YAML: {e}")

    if not isinstance(scenario, dict) or not isinstance(scenario.get("steps", []), list):
        raise ConfigurationError(str(path), "expected a mapping with a 'steps' list")
    scenario.setdefault("name", path.stem)
    logger.info(f"Loaded scenario '{scenario['name']}' with {len(scenario.get('steps', []))} steps")
    return scenario


class ScenarioRunner:
    """Plays scenario steps against a freshly deployed token and sale."""

    def __init__(self, settings: SaleSettings | None = None):
        self.base_settings = settings or get_config()

    def run(self, scenario: dict[str, Any]) -> SimulationReport:
        """
        Run a scenario.

        Args:
            scenario: Parsed scenario mapping (see module docstring)

        Returns:
            SimulationReport with final snapshots, step outcomes and events
        """
        settings = self.base_settings.with_overrides(scenario.get("settings") or {})
        self.runtime = Runtime()
        self.clock = _as_int(scenario.get("start_at", DEFAULT_START_TIME), "start_at", "scenario")
        self.names: dict[str, Address] = {}

        for name, amount in (scenario.get("accounts") or {}).items():
            self.runtime.bank.mint(self._resolve(name), _as_int(amount, name, "accounts"))

        owner = self._resolve("owner")
        deploy_ctx = CallContext(caller=owner, timestamp=self.clock)
        self.token = self.runtime.deploy(
            GatedToken, deploy_ctx, admin=self._resolve("admin"), settings=settings
        )
        self.sale = self.runtime.deploy(
            Sale,
            deploy_ctx,
            rate=_as_int(scenario.get("rate", 1), "rate", "scenario"),
            beneficiary=self._resolve("beneficiary"),
            token_address=self.token.address,
            limits=settings.limits,
        )
        self.names["token"] = self.token.address
        self.names["sale"] = self.sale.address

        allowance = scenario.get("sale_allowance")
        if allowance is not None:
            allowance = _as_int(allowance, "sale_allowance", "scenario")
        self.token.set_token_sale(deploy_ctx, self.sale.address, allowance)

        steps = [self._run_step(i, step) for i, step in enumerate(scenario.get("steps") or [])]

        return SimulationReport(
            scenario=str(scenario.get("name", "scenario")),
            token=self.token.snapshot(),
            sale=self.sale.snapshot(),
            steps=steps,
            events=[
                {"sequence": e.sequence, "name": e.name, "emitter": e.emitter, **e.payload()}
                for e in self.runtime.events.all()
            ],
            value_balances=self.runtime.bank.balances(),
        )

    def _resolve(self, name: str) -> Address:
        name = str(name)
        if name not in self.names:
            self.names[name] = account_address(name)
        return self.names[name]

    def _bind(self, action: str, step: dict[str, Any]) -> Callable[[CallContext], Any]:
        if action in SALE_ACTIONS:
            target, keys = self.sale, SALE_ACTIONS[action]
        elif action in TOKEN_ACTIONS:
            target, keys = self.token, TOKEN_ACTIONS[action]
        else:
            raise ConfigurationError(action, "unknown scenario action")

        args: list[Any] = []
        for key in keys:
            if key not in step:
                raise ConfigurationError(action, f"missing '{key}'")
            value = step[key]
            if key in ADDRESS_KEYS:
                value = self._resolve(value)
            elif key == "addresses":
                if not isinstance(value, list):
                    raise ConfigurationError(action, "'addresses' must be a list")
                value = [self._resolve(a) for a in value]
            else:
                value = _as_int(value, key, action)
            args.append(value)

        method_name = "transfer_ownership" if action == "transfer_token_ownership" else action
        method = getattr(target, method_name)
        return lambda ctx: method(ctx, *args)

    def _run_step(self, index: int, step: dict[str, Any]) -> StepOutcome:
        action = str(step.get("action", ""))
        caller_name = str(step.get("caller", "owner"))
        if "at" in step:
            self.clock = _as_int(step["at"], "at", action)
        elif "advance" in step:
            self.clock += _as_int(step["advance"], "advance", action)

        try:
            ctx = CallContext(
                caller=self._resolve(caller_name),
                timestamp=self.clock,
                value=_as_int(step.get("value", 0), "value", action),
            )
        except ValidationError as e:
            raise ConfigurationError(action, f"invalid call context in step {index}: {e}")
        expected_failure = bool(step.get("expect_failure", False))
        call = self._bind(action, step)
        events_before = len(self.runtime.events)

        try:
            call(ctx)
        except TokenSaleError as e:
            reason = getattr(e, "reason", None)
            log = logger.info if expected_failure else logger.warning
            log(f"Step {index} ({action} by {caller_name}) failed: {e.message}")
            return StepOutcome(
                index=index,
                action=action,
                caller=caller_name,
                timestamp=self.clock,
                success=False,
                expected_failure=expected_failure,
                error_message=e.message,
                failure_reason=reason.value if reason is not None else None,
            )

        if expected_failure:
            logger.warning(f"Step {index} ({action} by {caller_name}) succeeded unexpectedly")
        return StepOutcome(
            index=index,
            action=action,
            caller=caller_name,
            timestamp=self.clock,
            success=True,
            expected_failure=expected_failure,
            events=[e.name for e in self.runtime.events.since(events_before)],
        )
