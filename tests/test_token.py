"""Tests for the gated token."""

import pytest

from tokensale.core.exceptions import PreconditionError
from tokensale.core.models import Approval, CallContext, OwnershipTransferred, Transfer
from tokensale.core.types import FailureReason, ZERO_ADDRESS
from tokensale.ledger.token import GatedToken

from conftest import T0, ctx


class TestConstruction:
    """Tests for token deployment."""

    def test_initial_supply_held_by_admin(self, token, owner, admin):
        assert token.total_supply == 1_000_000
        assert token.balance_of(admin) == 1_000_000
        assert token.owner == owner
        assert not token.transfer_enabled
        assert token.token_sale_address is None

    def test_mint_event_emitted(self, runtime, token, admin):
        (event,) = runtime.events.filter(Transfer, emitter=token.address)
        assert event.sender == ZERO_ADDRESS
        assert event.recipient == admin
        assert event.value == 1_000_000

    def test_zero_admin_rejected(self, runtime, owner, settings):
        with pytest.raises(PreconditionError) as exc:
            runtime.deploy(
                GatedToken, CallContext(caller=owner), admin=ZERO_ADDRESS, settings=settings
            )
        assert exc.value.reason == FailureReason.ZERO_ADDRESS
        assert runtime.contracts() == []


class TestTokenSale:
    """Tests for set_token_sale."""

    def test_grants_default_allocation(self, sale, token, admin):
        assert token.token_sale_address == sale.address
        assert token.allowance(admin, sale.address) == 500_000

    def test_custom_amount(self, token, owner, admin, bob):
        token.set_token_sale(ctx(owner), bob, 1234)
        assert token.allowance(admin, bob) == 1234

    def test_only_once(self, sale, token, owner, bob):
        with pytest.raises(PreconditionError) as exc:
            token.set_token_sale(ctx(owner), bob)
        assert exc.value.reason == FailureReason.ALREADY_SET
        assert token.token_sale_address == sale.address

    def test_only_owner(self, token, alice, bob):
        with pytest.raises(PreconditionError) as exc:
            token.set_token_sale(ctx(alice), bob)
        assert exc.value.reason == FailureReason.NOT_OWNER
        assert token.token_sale_address is None

    def test_amount_above_admin_balance(self, token, owner, bob):
        with pytest.raises(PreconditionError) as exc:
            token.set_token_sale(ctx(owner), bob, 1_000_001)
        assert exc.value.reason == FailureReason.INSUFFICIENT_BALANCE

    def test_amount_above_sale_allocation(self, token, owner, admin, bob):
        with pytest.raises(PreconditionError) as exc:
            token.set_token_sale(ctx(owner), bob, 500_001)
        assert exc.value.reason == FailureReason.INVALID_AMOUNT
        assert token.token_sale_address is None
        assert token.allowance(admin, bob) == 0

    def test_not_after_enable_transfer(self, token, owner, admin, bob):
        token.enable_transfer(ctx(owner))
        with pytest.raises(PreconditionError) as exc:
            token.set_token_sale(ctx(owner), bob)
        assert exc.value.reason == FailureReason.ALREADY_ENABLED
        assert token.token_sale_address is None
        assert token.allowance(admin, bob) == 0


class TestTransferGate:
    """Transfers before and after enable_transfer."""

    def test_admin_can_transfer_before_enable(self, token, admin, alice):
        assert token.transfer(ctx(admin), alice, 100)
        assert token.balance_of(alice) == 100

    def test_holder_cannot_transfer_before_enable(self, token, admin, alice, bob):
        token.transfer(ctx(admin), alice, 100)
        with pytest.raises(PreconditionError) as exc:
            token.transfer(ctx(alice), bob, 10)
        assert exc.value.reason == FailureReason.TRANSFER_DISABLED
        assert token.balance_of(alice) == 100

    def test_holder_cannot_transfer_from_before_enable(self, token, admin, alice, bob):
        token.approve(ctx(admin), alice, 50)
        with pytest.raises(PreconditionError) as exc:
            token.transfer_from(ctx(alice), admin, bob, 10)
        assert exc.value.reason == FailureReason.TRANSFER_DISABLED

    def test_owner_can_transfer_before_enable(self, token, owner, admin, alice):
        token.approve(ctx(admin), owner, 50)
        token.transfer_from(ctx(owner), admin, alice, 50)
        assert token.balance_of(alice) == 50
        assert token.allowance(admin, owner) == 0

    def test_any_holder_can_transfer_after_enable(self, token, owner, admin, alice, bob):
        token.transfer(ctx(admin), alice, 100)
        token.enable_transfer(ctx(owner))
        token.transfer(ctx(alice), bob, 40)
        assert token.balance_of(bob) == 40

    def test_enable_revokes_sale_allowance(self, sale, token, owner, admin):
        token.enable_transfer(ctx(owner))
        assert token.transfer_enabled
        assert token.allowance(admin, sale.address) == 0
        assert token.snapshot().sale_allowance == 0

    def test_enable_is_one_way_and_owner_only(self, token, owner, alice):
        with pytest.raises(PreconditionError):
            token.enable_transfer(ctx(alice))
        token.enable_transfer(ctx(owner))
        with pytest.raises(PreconditionError) as exc:
            token.enable_transfer(ctx(owner))
        assert exc.value.reason == FailureReason.ALREADY_ENABLED
        assert token.transfer_enabled

    @pytest.mark.parametrize("target", ["zero", "token", "owner", "admin", "sale"])
    def test_forbidden_destinations(self, sale, token, owner, admin, target):
        destinations = {
            "zero": ZERO_ADDRESS,
            "token": token.address,
            "owner": owner,
            "admin": admin,
            "sale": sale.address,
        }
        token.enable_transfer(ctx(owner))
        with pytest.raises(PreconditionError) as exc:
            token.transfer(ctx(admin), destinations[target], 1)
        assert exc.value.reason in (FailureReason.ZERO_ADDRESS, FailureReason.INVALID_DESTINATION)
        assert token.balance_of(admin) == 1_000_000


class TestApprovalsAndBurn:
    """Allowance helpers and burn through the token."""

    def test_approve_emits_event(self, runtime, token, admin, alice):
        token.approve(ctx(admin), alice, 10)
        event = runtime.events.filter(Approval, owner=admin, spender=alice)[-1]
        assert event.value == 10
        assert event.emitter == token.address

    def test_incremental_approvals(self, token, admin, alice):
        token.increase_approval(ctx(admin), alice, 10)
        token.increase_approval(ctx(admin), alice, 5)
        token.decrease_approval(ctx(admin), alice, 100)
        assert token.allowance(admin, alice) == 0

    def test_burn(self, token, admin):
        token.burn(ctx(admin), 1_000)
        assert token.total_supply == 999_000
        assert sum(token.snapshot().balances.values()) == token.total_supply

    def test_non_payable(self, token, admin, alice):
        with pytest.raises(PreconditionError) as exc:
            token.transfer(ctx(alice, value=1), admin, 0)
        assert exc.value.reason == FailureReason.NOT_PAYABLE

    def test_transfer_ownership(self, runtime, token, owner, alice):
        token.transfer_ownership(ctx(owner), alice)
        assert token.owner == alice
        assert runtime.events.filter(OwnershipTransferred, new_owner=alice)
