"""Customer debt ledger - keeps cached customer debt in step with debt records"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from majubersama_pos.config import settings
from majubersama_pos.domain import ledger as rules
from majubersama_pos.domain.exceptions import (
    ConflictError,
    DebtLimitExceededError,
    InvalidAmountError,
    NotFoundError,
    ValidationError,
)
from majubersama_pos.domain.models import (
    ENTRY_DEBT,
    ENTRY_DEBT_PAYMENT,
    STATUS_PENDING,
    CustomerBalance,
    VillageDebt,
)
from majubersama_pos.infrastructure.database.models import Customer, DebtPayment, DebtRecord
from majubersama_pos.infrastructure.database.repositories import (
    CustomerRepository,
    DebtRepository,
    LedgerEntryRepository,
    SaleRepository,
)
from majubersama_pos.infrastructure.observability.logging import log_debt_event
from majubersama_pos.infrastructure.observability.metrics import (
    debt_limit_rejections_counter,
    debt_payment_counter,
    record_debt,
)
from majubersama_pos.services.locks import EntityLocks, customer_key, unit_of_work
from majubersama_pos.utils.date_utils import today

logger = logging.getLogger(__name__)


class LedgerAccount:
    """
    Customer credit (piutang) bookkeeping.

    Every mutation runs under the owning customer's lock and commits before
    returning, keeping this invariant after each call:

        customer.current_debt == sum(d.remaining_amount for unpaid debts d)

    Args:
        db: Session used as the storage handle
        locks: Per-entity lock registry shared by the process
        enforce_debt_limit: Refuse debts that push a customer past debt_limit
    """

    def __init__(
        self,
        db: Session,
        locks: EntityLocks,
        enforce_debt_limit: Optional[bool] = None,
        request_id: Optional[str] = None,
    ):
        self.db = db
        self.locks = locks
        self.enforce_debt_limit = settings.enforce_debt_limit if enforce_debt_limit is None else enforce_debt_limit
        self.request_id = request_id
        self.customers = CustomerRepository(db)
        self.debts = DebtRepository(db)
        self.entries = LedgerEntryRepository(db)
        self.sales = SaleRepository(db)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def record_debt(
        self,
        customer_id: int,
        amount: int,
        due_date: Optional[date] = None,
        transaction_id: Optional[int] = None,
        note: str = "",
    ) -> DebtRecord:
        """
        Create a debt record for a customer and raise their current debt.

        Raises:
            InvalidAmountError: amount is not a positive whole rupiah value
            NotFoundError: customer or referenced sale does not exist
            ConflictError: the referenced sale already has a debt record
            ValidationError: the referenced sale belongs to another customer
            DebtLimitExceededError: limit enforcement is on and would be breached
        """
        try:
            with unit_of_work(self.db, self.locks, customer_key(customer_id)):
                debt = self.stage_debt(customer_id, amount, due_date, transaction_id, note)
        except IntegrityError:
            if transaction_id is None:
                raise
            raise ConflictError(
                f"Sale {transaction_id} already has a debt record",
                error_code="SALE_ALREADY_ON_CREDIT",
                details={"transaction_id": transaction_id},
            )
        return debt

    def stage_debt(
        self,
        customer_id: int,
        amount: int,
        due_date: Optional[date] = None,
        transaction_id: Optional[int] = None,
        note: str = "",
    ) -> DebtRecord:
        """
        Same as record_debt without locking or committing.

        The caller must hold the customer's lock and commit, which lets
        checkout store the sale and its debt atomically.
        """
        rules.validate_debt_amount(amount)

        customer = self.customers.get(customer_id, for_update=True)
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found", details={"customer_id": customer_id})

        if transaction_id is not None:
            self._check_sale_reference(transaction_id, customer.id)

        if self.enforce_debt_limit:
            try:
                rules.ensure_within_limit(customer.current_debt, customer.debt_limit, amount)
            except DebtLimitExceededError:
                debt_limit_rejections_counter.inc()
                logger.warning(
                    "Debt limit exceeded",
                    extra={"request_id": self.request_id, "customer_id": customer_id, "amount": amount},
                )
                raise

        debt = self.debts.add(
            DebtRecord(
                transaction_id=transaction_id,
                customer_id=customer.id,
                amount=amount,
                paid_amount=0,
                remaining_amount=amount,
                status=STATUS_PENDING,
                due_date=due_date,
                note=note or "",
            )
        )
        customer.current_debt = customer.current_debt + amount

        self.entries.record(
            ENTRY_DEBT,
            "customer",
            customer.id,
            customer.name,
            amount,
            reference_id=debt.id,
            note=note or (f"Hutang transaksi {transaction_id}" if transaction_id else ""),
        )

        record_debt(amount)
        log_debt_event("debt_recorded", debt.id, customer.id, amount, debt.remaining_amount, debt.status, self.request_id)
        return debt

    def apply_payment(self, debt_id: int, amount: int, note: str = "") -> DebtRecord:
        """
        Apply a payment to one debt record.

        Raises:
            NotFoundError: debt record does not exist
            InvalidAmountError: amount <= 0 or amount > remaining_amount
        """
        debt = self.debts.get(debt_id)
        if debt is None:
            raise NotFoundError(f"Debt {debt_id} not found", details={"debt_id": debt_id})

        # customer_id never changes, so it is safe to pick the lock key before locking
        with unit_of_work(self.db, self.locks, customer_key(debt.customer_id)):
            debt = self.debts.get(debt_id, for_update=True)
            try:
                rules.validate_payment_amount(amount, debt.remaining_amount)
            except InvalidAmountError:
                debt_payment_counter.labels(outcome="rejected").inc()
                raise

            customer = self.customers.get(debt.customer_id, for_update=True)
            previous_status = debt.status

            self.debts.add_payment(DebtPayment(debt_id=debt.id, amount=amount, note=note or ""))
            debt.paid_amount = debt.paid_amount + amount
            debt.remaining_amount = rules.remaining_amount(debt.amount, debt.paid_amount)
            debt.status = rules.derive_status(debt.amount, debt.paid_amount)
            if not rules.is_forward_transition(previous_status, debt.status):
                raise ConflictError(
                    f"Debt {debt.id} cannot move from {previous_status} back to {debt.status}",
                    error_code="STATUS_REGRESSION",
                    details={"debt_id": debt.id, "status": previous_status},
                )

            customer.current_debt = rules.reduce_balance(customer.current_debt, amount)

            self.entries.record(
                ENTRY_DEBT_PAYMENT,
                "customer",
                customer.id,
                customer.name,
                amount,
                reference_id=debt.id,
                note=note or f"Pembayaran hutang entry {debt.id}",
            )

        debt_payment_counter.labels(outcome="applied").inc()
        log_debt_event("payment_applied", debt.id, debt.customer_id, amount, debt.remaining_amount, debt.status, self.request_id)
        return debt

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_debt(self, debt_id: int) -> DebtRecord:
        debt = self.debts.get(debt_id)
        if debt is None:
            raise NotFoundError(f"Debt {debt_id} not found", details={"debt_id": debt_id})
        return debt

    def list_by_customer(self, customer_id: int) -> List[DebtRecord]:
        self._require_customer(customer_id)
        return self.debts.by_customer(customer_id)

    def list_overdue(self, as_of: Optional[date] = None, grace_days: Optional[int] = None) -> List[DebtRecord]:
        """Unpaid debts with due_date (+ grace days) strictly before as_of"""
        as_of = as_of or today()
        grace = settings.overdue_grace_days if grace_days is None else grace_days
        candidates = self.debts.unpaid_due_before(as_of)
        return [d for d in candidates if rules.is_overdue(d.status, d.due_date, as_of, grace)]

    def aggregate_by_village(self) -> List[VillageDebt]:
        return rules.aggregate_by_village(self.debts.outstanding())

    def total_outstanding(self) -> int:
        return rules.outstanding_total(self.debts.outstanding())

    def balance(self, customer_id: int) -> CustomerBalance:
        """Cached debt next to the amount recomputed from the records"""
        customer = self._require_customer(customer_id)
        recomputed = rules.outstanding_total(self.debts.outstanding(customer_id))
        available = rules.available_credit(customer.current_debt, customer.debt_limit)
        return CustomerBalance(
            customer_id=customer.id,
            current_debt=customer.current_debt,
            debt_limit=customer.debt_limit,
            outstanding_from_records=recomputed,
            available_credit=available,
            at_limit=available is not None and available == 0,
        )

    def _check_sale_reference(self, transaction_id: int, customer_id: int) -> None:
        """A sale can carry at most one debt, owed by the sale's own customer"""
        sale = self.sales.get(transaction_id)
        if sale is None:
            raise NotFoundError(f"Transaction {transaction_id} not found", details={"transaction_id": transaction_id})
        if sale.customer_id is not None and sale.customer_id != customer_id:
            raise ValidationError(
                f"Transaction {transaction_id} belongs to another customer",
                details={"transaction_id": transaction_id, "customer_id": sale.customer_id},
            )
        if self.debts.by_transaction(transaction_id) is not None:
            raise ConflictError(
                f"Transaction {transaction_id} already has a debt record",
                error_code="SALE_ALREADY_ON_CREDIT",
                details={"transaction_id": transaction_id},
            )

    def _require_customer(self, customer_id: int) -> Customer:
        customer = self.customers.get(customer_id)
        if customer is None:
            raise NotFoundError(f"Customer {customer_id} not found", details={"customer_id": customer_id})
        return customer
