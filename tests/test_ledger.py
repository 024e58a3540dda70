"""Tests for balance and allowance bookkeeping."""

import random

import pytest

from tokensale.core.exceptions import PreconditionError
from tokensale.core.models import Approval, Burn, Transfer
from tokensale.core.types import FailureReason, ZERO_ADDRESS
from tokensale.ledger.ledger import Ledger

HOLDERS = ["0x" + f"{i:040x}" for i in range(1, 6)]


@pytest.fixture
def ledger() -> Ledger:
    ledger = Ledger()
    ledger.mint(HOLDERS[0], 1_000)
    return ledger


class TestTransfers:
    """Tests for transfer and transfer_from."""

    def test_transfer_moves_balance(self, ledger):
        event = ledger.transfer(HOLDERS[0], HOLDERS[1], 250)
        assert event == Transfer(sender=HOLDERS[0], recipient=HOLDERS[1], value=250)
        assert ledger.balance_of(HOLDERS[0]) == 750
        assert ledger.balance_of(HOLDERS[1]) == 250

    def test_transfer_rejects_zero_destination(self, ledger):
        with pytest.raises(PreconditionError) as exc:
            ledger.transfer(HOLDERS[0], ZERO_ADDRESS, 1)
        assert exc.value.reason == FailureReason.ZERO_ADDRESS

    def test_transfer_rejects_insufficient_balance(self, ledger):
        with pytest.raises(PreconditionError) as exc:
            ledger.transfer(HOLDERS[1], HOLDERS[2], 1)
        assert exc.value.reason == FailureReason.INSUFFICIENT_BALANCE
        assert ledger.balance_of(HOLDERS[2]) == 0

    def test_transfer_rejects_negative_value(self, ledger):
        with pytest.raises(PreconditionError) as exc:
            ledger.transfer(HOLDERS[0], HOLDERS[1], -5)
        assert exc.value.reason == FailureReason.INVALID_AMOUNT

    def test_transfer_from_spends_allowance(self, ledger):
        ledger.approve(HOLDERS[0], HOLDERS[1], 300)
        ledger.transfer_from(HOLDERS[1], HOLDERS[0], HOLDERS[2], 200)
        assert ledger.allowance(HOLDERS[0], HOLDERS[1]) == 100
        assert ledger.balance_of(HOLDERS[2]) == 200

    def test_transfer_from_rejects_excess_over_allowance(self, ledger):
        ledger.approve(HOLDERS[0], HOLDERS[1], 100)
        with pytest.raises(PreconditionError) as exc:
            ledger.transfer_from(HOLDERS[1], HOLDERS[0], HOLDERS[2], 101)
        assert exc.value.reason == FailureReason.INSUFFICIENT_ALLOWANCE
        assert ledger.allowance(HOLDERS[0], HOLDERS[1]) == 100
        assert ledger.balance_of(HOLDERS[0]) == 1_000


class TestApprovals:
    """Tests for approve and incremental approvals."""

    def test_approve_sets_absolute_value(self, ledger):
        ledger.approve(HOLDERS[0], HOLDERS[1], 100)
        event = ledger.approve(HOLDERS[0], HOLDERS[1], 40)
        assert event == Approval(owner=HOLDERS[0], spender=HOLDERS[1], value=40)
        assert ledger.allowance(HOLDERS[0], HOLDERS[1]) == 40

    def test_approve_race_is_not_prevented(self, ledger):
        # Spender front-runs a reduction from 100 to 40 and ends up moving 140.
        ledger.approve(HOLDERS[0], HOLDERS[1], 100)
        ledger.transfer_from(HOLDERS[1], HOLDERS[0], HOLDERS[1], 100)
        ledger.approve(HOLDERS[0], HOLDERS[1], 40)
        ledger.transfer_from(HOLDERS[1], HOLDERS[0], HOLDERS[1], 40)
        assert ledger.balance_of(HOLDERS[1]) == 140

    def test_increase_and_decrease(self, ledger):
        ledger.increase_approval(HOLDERS[0], HOLDERS[1], 70)
        ledger.increase_approval(HOLDERS[0], HOLDERS[1], 30)
        assert ledger.allowance(HOLDERS[0], HOLDERS[1]) == 100
        event = ledger.decrease_approval(HOLDERS[0], HOLDERS[1], 25)
        assert event.value == 75

    def test_decrease_clamps_to_zero(self, ledger):
        ledger.approve(HOLDERS[0], HOLDERS[1], 10)
        event = ledger.decrease_approval(HOLDERS[0], HOLDERS[1], 11)
        assert event.value == 0
        assert ledger.allowance(HOLDERS[0], HOLDERS[1]) == 0


class TestBurn:
    """Tests for burn."""

    def test_burn_reduces_balance_and_supply(self, ledger):
        events = ledger.burn(HOLDERS[0], 400)
        assert events[0] == Burn(burner=HOLDERS[0], value=400)
        assert events[1] == Transfer(sender=HOLDERS[0], recipient=ZERO_ADDRESS, value=400)
        assert ledger.balance_of(HOLDERS[0]) == 600
        assert ledger.total_supply == 600

    def test_burn_more_than_balance_fails(self, ledger):
        with pytest.raises(PreconditionError) as exc:
            ledger.burn(HOLDERS[0], 1_001)
        assert exc.value.reason == FailureReason.INSUFFICIENT_BALANCE
        assert ledger.total_supply == 1_000


class TestConservation:
    """Supply equals the sum of balances after any sequence of operations."""

    @pytest.mark.parametrize("seed", range(5))
    def test_random_sequences_conserve_supply(self, seed):
        rng = random.Random(seed)
        ledger = Ledger()
        ledger.mint(HOLDERS[0], 10_000)
        burned = 0

        for _ in range(300):
            sender, receiver = rng.sample(HOLDERS, 2)
            amount = rng.randint(0, 3_000)
            op = rng.choice(["transfer", "approve", "transfer_from", "burn"])
            try:
                if op == "transfer":
                    ledger.transfer(sender, receiver, amount)
                elif op == "approve":
                    ledger.approve(sender, receiver, amount)
                elif op == "transfer_from":
                    ledger.transfer_from(receiver, sender, receiver, amount)
                else:
                    ledger.burn(sender, amount)
                    burned += amount
            except PreconditionError:
                pass

            assert sum(ledger.balances().values()) == ledger.total_supply
            assert ledger.total_supply == 10_000 - burned
            assert all(
                ledger.allowance(o, s) >= 0 for o in HOLDERS for s in HOLDERS
            )
