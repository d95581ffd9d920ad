"""Debt ledger arithmetic - core business rules for customer credit"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Set

from majubersama_pos.domain.exceptions import DebtLimitExceededError, InvalidAmountError
from majubersama_pos.domain.models import (
    STATUS_PAID,
    STATUS_PARTIAL,
    STATUS_PENDING,
    OutstandingDebt,
    VillageDebt,
)

_STATUS_ORDER = {STATUS_PENDING: 0, STATUS_PARTIAL: 1, STATUS_PAID: 2}


def derive_status(amount: int, paid_amount: int) -> str:
    """
    Settlement status from principal and amount paid so far.

    - pending: nothing paid yet
    - partial: something paid, something still owed
    - paid:    paid amount reached the principal
    """
    if paid_amount >= amount:
        return STATUS_PAID
    if paid_amount > 0:
        return STATUS_PARTIAL
    return STATUS_PENDING


def remaining_amount(amount: int, paid_amount: int) -> int:
    return max(amount - paid_amount, 0)


def is_forward_transition(old_status: str, new_status: str) -> bool:
    """Status only moves pending -> partial -> paid"""
    return _STATUS_ORDER[new_status] >= _STATUS_ORDER[old_status]


def validate_debt_amount(amount: int) -> None:
    """
    Raises:
        InvalidAmountError: amount is not a positive whole rupiah value
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(f"Debt amount must be a whole rupiah value, got {amount!r}")
    if amount <= 0:
        raise InvalidAmountError("Debt amount must be greater than 0")


def validate_payment_amount(amount: int, remaining: int) -> None:
    """
    Check a payment against what is still owed.

    Raises:
        InvalidAmountError: amount <= 0 or amount > remaining
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(f"Payment amount must be a whole rupiah value, got {amount!r}")
    if amount <= 0:
        raise InvalidAmountError("Payment amount must be greater than 0")
    if amount > remaining:
        raise InvalidAmountError(
            f"Payment of {amount} exceeds remaining amount {remaining}",
            details={"amount": amount, "remaining_amount": remaining},
        )


def available_credit(current_debt: int, debt_limit: int) -> Optional[int]:
    """Credit left under the limit; None when the customer has no limit configured"""
    if debt_limit <= 0:
        return None
    return max(debt_limit - current_debt, 0)


def ensure_within_limit(current_debt: int, debt_limit: int, amount: int) -> None:
    """
    A debt_limit of 0 means no ceiling has been configured for the customer.

    Raises:
        DebtLimitExceededError: current_debt + amount would exceed debt_limit
    """
    if debt_limit <= 0:
        return
    if current_debt + amount > debt_limit:
        raise DebtLimitExceededError(
            f"Debt of {amount} would raise total debt to {current_debt + amount}, limit is {debt_limit}",
            details={
                "current_debt": current_debt,
                "debt_limit": debt_limit,
                "requested": amount,
            },
        )


def reduce_balance(balance: int, amount: int) -> int:
    """Decrement a cached balance, floored at 0"""
    return max(balance - amount, 0)


def is_overdue(status: str, due_date: Optional[date], as_of: date, grace_days: int = 0) -> bool:
    if status == STATUS_PAID or due_date is None:
        return False
    return due_date + timedelta(days=grace_days) < as_of


def outstanding_total(debts: Iterable[OutstandingDebt]) -> int:
    return sum(d.remaining_amount for d in debts if d.status != STATUS_PAID)


def aggregate_by_village(debts: Iterable[OutstandingDebt]) -> List[VillageDebt]:
    """
    Roll up unpaid remaining amounts per customer village.

    Customers without a village are grouped under an empty string.
    Result is ordered by outstanding amount, largest first.
    """
    outstanding: Dict[str, int] = defaultdict(int)
    counts: Dict[str, int] = defaultdict(int)
    customers: Dict[str, Set[int]] = defaultdict(set)

    for debt in debts:
        if debt.status == STATUS_PAID:
            continue
        village = (debt.village or "").strip()
        outstanding[village] += debt.remaining_amount
        counts[village] += 1
        customers[village].add(debt.customer_id)

    rollup = [
        VillageDebt(
            village=village,
            outstanding=outstanding[village],
            debt_count=counts[village],
            customer_count=len(customers[village]),
        )
        for village in outstanding
    ]
    return sorted(rollup, key=lambda v: (-v.outstanding, v.village))
