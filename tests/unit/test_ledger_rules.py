"""Unit tests for debt ledger arithmetic"""

import pytest
from datetime import date, timedelta
from majubersama_pos.domain.ledger import (
    aggregate_by_village,
    available_credit,
    derive_status,
    ensure_within_limit,
    is_forward_transition,
    is_overdue,
    outstanding_total,
    reduce_balance,
    remaining_amount,
    validate_debt_amount,
    validate_payment_amount,
)
from majubersama_pos.domain.models import OutstandingDebt
from majubersama_pos.domain.exceptions import DebtLimitExceededError, InvalidAmountError


def test_derive_status_transitions():
    """Status follows how much of the principal has been paid"""
    assert derive_status(500_000, 0) == "pending"
    assert derive_status(500_000, 1) == "partial"
    assert derive_status(500_000, 499_999) == "partial"
    assert derive_status(500_000, 500_000) == "paid"


def test_status_never_moves_backwards():
    assert is_forward_transition("pending", "partial")
    assert is_forward_transition("partial", "paid")
    assert is_forward_transition("partial", "partial")
    assert not is_forward_transition("paid", "partial")
    assert not is_forward_transition("partial", "pending")


def test_remaining_amount_floored_at_zero():
    assert remaining_amount(100, 30) == 70
    assert remaining_amount(100, 150) == 0


@pytest.mark.parametrize("amount", [0, -1, -500_000])
def test_validate_debt_amount_rejects_non_positive(amount):
    with pytest.raises(InvalidAmountError):
        validate_debt_amount(amount)


@pytest.mark.parametrize("amount", [1.5, "1000", True, None])
def test_validate_debt_amount_rejects_non_integer(amount):
    with pytest.raises(InvalidAmountError):
        validate_debt_amount(amount)


def test_validate_payment_amount():
    validate_payment_amount(400_000, 400_000)
    validate_payment_amount(1, 400_000)

    with pytest.raises(InvalidAmountError) as exc_info:
        validate_payment_amount(500_000, 400_000)
    assert exc_info.value.details == {"amount": 500_000, "remaining_amount": 400_000}

    with pytest.raises(InvalidAmountError):
        validate_payment_amount(0, 400_000)


def test_ensure_within_limit():
    """Reaching the limit exactly is allowed, going past it is not"""
    ensure_within_limit(600_000, 1_000_000, 400_000)

    with pytest.raises(DebtLimitExceededError) as exc_info:
        ensure_within_limit(600_000, 1_000_000, 400_001)
    assert exc_info.value.details["debt_limit"] == 1_000_000


def test_zero_limit_means_no_ceiling():
    ensure_within_limit(50_000_000, 0, 10_000_000)
    assert available_credit(50_000_000, 0) is None


def test_available_credit():
    assert available_credit(400_000, 1_000_000) == 600_000
    assert available_credit(1_200_000, 1_000_000) == 0


def test_reduce_balance_floored_at_zero():
    assert reduce_balance(400_000, 100_000) == 300_000
    assert reduce_balance(50_000, 100_000) == 0


def test_is_overdue():
    as_of = date(2024, 6, 10)
    yesterday = as_of - timedelta(days=1)

    assert is_overdue("pending", yesterday, as_of)
    assert is_overdue("partial", yesterday, as_of)
    assert not is_overdue("paid", yesterday, as_of)
    assert not is_overdue("pending", as_of, as_of)  # due today is not late yet
    assert not is_overdue("pending", None, as_of)
    assert not is_overdue("pending", yesterday, as_of, grace_days=1)
    assert is_overdue("pending", yesterday - timedelta(days=1), as_of, grace_days=1)


def test_aggregate_by_village():
    """Paid debts are ignored; villages sorted by outstanding, largest first"""
    debts = [
        OutstandingDebt(debt_id=1, customer_id=1, village="Sukamaju", remaining_amount=300_000, status="partial"),
        OutstandingDebt(debt_id=2, customer_id=1, village="Sukamaju", remaining_amount=200_000, status="pending"),
        OutstandingDebt(debt_id=3, customer_id=2, village="Sukamaju", remaining_amount=100_000, status="pending"),
        OutstandingDebt(debt_id=4, customer_id=3, village="Sidorejo", remaining_amount=900_000, status="pending"),
        OutstandingDebt(debt_id=5, customer_id=4, village="Sidorejo", remaining_amount=0, status="paid"),
        OutstandingDebt(debt_id=6, customer_id=5, village=" ", remaining_amount=50_000, status="pending"),
    ]

    rollup = aggregate_by_village(debts)

    assert [v.village for v in rollup] == ["Sidorejo", "Sukamaju", ""]
    sidorejo, sukamaju, unknown = rollup
    assert (sidorejo.outstanding, sidorejo.debt_count, sidorejo.customer_count) == (900_000, 1, 1)
    assert (sukamaju.outstanding, sukamaju.debt_count, sukamaju.customer_count) == (600_000, 3, 2)
    assert unknown.outstanding == 50_000
    assert outstanding_total(debts) == 1_550_000


def test_aggregate_by_village_empty():
    assert aggregate_by_village([]) == []
