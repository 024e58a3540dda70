"""Pytest configuration and fixtures for token sale tests."""

from pathlib import Path

import pytest

from tokensale.core.config import SaleSettings
from tokensale.core.models import CallContext
from tokensale.ledger.token import GatedToken
from tokensale.runtime import Runtime
from tokensale.sale.sale import Sale
from tokensale.scenario import account_address

T0 = 1_000_000
RATE = 1000


@pytest.fixture
def scenarios_dir() -> Path:
    """Return path to the bundled scenario files."""
    return Path(__file__).parent.parent / "scenarios"


@pytest.fixture
def settings() -> SaleSettings:
    """Small limits matching the worked examples: hard cap 10, 5 per participant."""
    return SaleSettings(
        token_name="Test Token",
        token_symbol="TST",
        decimals=18,
        initial_supply=1_000_000,
        sale_allocation=500_000,
        min_contribution=1,
        hard_cap=10,
        participant_cap=5,
        duration=3600,
    )


@pytest.fixture
def owner() -> str:
    return account_address("owner")


@pytest.fixture
def admin() -> str:
    return account_address("admin")


@pytest.fixture
def beneficiary() -> str:
    return account_address("beneficiary")


@pytest.fixture
def alice() -> str:
    return account_address("alice")


@pytest.fixture
def bob() -> str:
    return account_address("bob")


@pytest.fixture
def carol() -> str:
    return account_address("carol")


@pytest.fixture
def runtime(alice: str, bob: str, carol: str) -> Runtime:
    """Runtime with three funded buyers."""
    runtime = Runtime()
    for buyer in (alice, bob, carol):
        runtime.bank.mint(buyer, 100)
    return runtime


@pytest.fixture
def token(runtime: Runtime, owner: str, admin: str, settings: SaleSettings) -> GatedToken:
    return runtime.deploy(
        GatedToken, CallContext(caller=owner, timestamp=T0), admin=admin, settings=settings
    )


@pytest.fixture
def sale(
    runtime: Runtime,
    token: GatedToken,
    owner: str,
    beneficiary: str,
    settings: SaleSettings,
) -> Sale:
    """Sale in Setup stage, registered with the token."""
    ctx = CallContext(caller=owner, timestamp=T0)
    sale = runtime.deploy(
        Sale,
        ctx,
        rate=RATE,
        beneficiary=beneficiary,
        token_address=token.address,
        limits=settings.limits,
    )
    token.set_token_sale(ctx, sale.address)
    return sale


@pytest.fixture
def started_sale(sale: Sale, owner: str, alice: str, bob: str) -> Sale:
    """Sale with alice and bob whitelisted, opened at T0."""
    sale.add_to_whitelist(CallContext(caller=owner, timestamp=T0), [alice, bob])
    sale.start_sale(CallContext(caller=owner, timestamp=T0))
    return sale


def ctx(caller: str, timestamp: int = T0 + 10, value: int = 0) -> CallContext:
    """Shorthand for building call contexts in tests."""
    return CallContext(caller=caller, timestamp=timestamp, value=value)
