"""Whole-store export and restore"""

import logging
from collections import defaultdict
from typing import Any, Dict, List

from sqlalchemy.orm import Session, selectinload

from majubersama_pos.domain import ledger as rules
from majubersama_pos.domain.exceptions import ValidationError
from majubersama_pos.infrastructure.database.models import (
    Customer,
    DebtPayment,
    DebtRecord,
    LedgerEntry,
    Product,
    Purchase,
    SaleItem,
    SaleTransaction,
    Supplier,
)
from majubersama_pos.infrastructure.observability.metrics import restore_counter
from majubersama_pos.services.locks import EntityLocks, customer_key, product_key, supplier_key, unit_of_work

logger = logging.getLogger(__name__)

SECTIONS = ("products", "customers", "debts", "suppliers", "purchases", "transactions", "ledger_entries")

# Children before parents
_DELETE_ORDER = (
    LedgerEntry,
    DebtPayment,
    DebtRecord,
    SaleItem,
    SaleTransaction,
    Purchase,
    Supplier,
    Customer,
    Product,
)


class BackupService:
    """
    Exports every table of the shop and replaces them from an export.

    The cashier PIN is not part of a backup.
    """

    def __init__(self, db: Session, locks: EntityLocks):
        self.db = db
        self.locks = locks

    def export(self) -> Dict[str, List[Any]]:
        """ORM rows per section, ordered by id"""
        return {
            "products": self.db.query(Product).order_by(Product.id).all(),
            "customers": self.db.query(Customer).order_by(Customer.id).all(),
            "debts": (
                self.db.query(DebtRecord)
                .options(selectinload(DebtRecord.payments))
                .order_by(DebtRecord.id)
                .all()
            ),
            "suppliers": self.db.query(Supplier).order_by(Supplier.id).all(),
            "purchases": self.db.query(Purchase).order_by(Purchase.id).all(),
            "transactions": (
                self.db.query(SaleTransaction)
                .options(selectinload(SaleTransaction.items))
                .order_by(SaleTransaction.id)
                .all()
            ),
            "ledger_entries": self.db.query(LedgerEntry).order_by(LedgerEntry.id).all(),
        }

    def restore(self, snapshot: Dict[str, List[Dict[str, Any]]]) -> Dict[str, int]:
        """
        Replace the whole store with the rows of an export.

        Args:
            snapshot: plain dicts per section, as produced by dumping an export

        Returns:
            Number of restored rows per section

        Raises:
            ValidationError: balances in the snapshot do not add up, or rows
                reference missing rows; nothing is changed
        """
        check_snapshot(snapshot)

        keys = self._entity_keys(snapshot)
        with unit_of_work(self.db, self.locks, *keys):
            for model in _DELETE_ORDER:
                self.db.query(model).delete(synchronize_session=False)
            self.db.flush()
            self.db.expunge_all()
            self._load(snapshot)

        counts = {section: len(snapshot.get(section, [])) for section in SECTIONS}
        restore_counter.inc()
        logger.warning("Store restored from backup", extra=counts)
        return counts

    def _entity_keys(self, snapshot: Dict[str, List[Dict[str, Any]]]) -> List[str]:
        keys = set()
        for (customer_id,) in self.db.query(Customer.id):
            keys.add(customer_key(customer_id))
        for (product_id,) in self.db.query(Product.id):
            keys.add(product_key(product_id))
        for (supplier_id,) in self.db.query(Supplier.id):
            keys.add(supplier_key(supplier_id))
        keys.update(customer_key(row["id"]) for row in snapshot.get("customers", []))
        keys.update(product_key(row["id"]) for row in snapshot.get("products", []))
        keys.update(supplier_key(row["id"]) for row in snapshot.get("suppliers", []))
        return sorted(keys)

    def _load(self, snapshot: Dict[str, List[Dict[str, Any]]]) -> None:
        self.db.add_all(Product(**row) for row in snapshot.get("products", []))
        self.db.add_all(Customer(**row) for row in snapshot.get("customers", []))
        self.db.add_all(Supplier(**row) for row in snapshot.get("suppliers", []))
        self.db.flush()

        for row in snapshot.get("transactions", []):
            fields = dict(row)
            items = [SaleItem(**item) for item in fields.pop("items", [])]
            self.db.add(SaleTransaction(items=items, **fields))
        self.db.flush()

        for row in snapshot.get("debts", []):
            fields = dict(row)
            payments = fields.pop("payments", [])
            self.db.add(DebtRecord(**fields))
            self.db.add_all(DebtPayment(debt_id=fields["id"], **payment) for payment in payments)
        self.db.flush()

        self.db.add_all(Purchase(**row) for row in snapshot.get("purchases", []))
        self.db.add_all(LedgerEntry(**row) for row in snapshot.get("ledger_entries", []))
        self.db.flush()


def check_snapshot(snapshot: Dict[str, List[Dict[str, Any]]]) -> None:
    """
    Verify that cached balances in a snapshot agree with its debts and
    purchases, and that debts point at rows present in the snapshot.

    Raises:
        ValidationError: first inconsistency found
    """
    customer_ids = {row["id"] for row in snapshot.get("customers", [])}
    supplier_ids = {row["id"] for row in snapshot.get("suppliers", [])}
    sale_ids = {row["id"] for row in snapshot.get("transactions", [])}

    owed_by_customer: Dict[int, int] = defaultdict(int)
    linked_sales = set()
    for debt in snapshot.get("debts", []):
        debt_id = debt["id"]
        if debt["customer_id"] not in customer_ids:
            raise _broken(f"Debt {debt_id} references a missing customer", debt_id=debt_id)
        transaction_id = debt.get("transaction_id")
        if transaction_id is not None:
            if transaction_id not in sale_ids or transaction_id in linked_sales:
                raise _broken(f"Debt {debt_id} has an invalid sale reference", debt_id=debt_id)
            linked_sales.add(transaction_id)

        paid = sum(payment["amount"] for payment in debt.get("payments", []))
        if (
            paid != debt["paid_amount"]
            or debt["remaining_amount"] != rules.remaining_amount(debt["amount"], debt["paid_amount"])
            or debt["status"] != rules.derive_status(debt["amount"], debt["paid_amount"])
        ):
            raise _broken(f"Debt {debt_id} balances do not add up", debt_id=debt_id)
        owed_by_customer[debt["customer_id"]] += debt["remaining_amount"]

    for customer in snapshot.get("customers", []):
        if customer["current_debt"] != owed_by_customer[customer["id"]]:
            raise _broken(
                f"Customer {customer['id']} debt does not match its debt records",
                customer_id=customer["id"],
            )

    owed_to_supplier: Dict[int, int] = defaultdict(int)
    for purchase in snapshot.get("purchases", []):
        if purchase["supplier_id"] not in supplier_ids:
            raise _broken(f"Purchase {purchase['id']} references a missing supplier", purchase_id=purchase["id"])
        owed_to_supplier[purchase["supplier_id"]] += purchase["total"] - purchase["amount_paid"]

    for supplier in snapshot.get("suppliers", []):
        if supplier["debt"] != owed_to_supplier[supplier["id"]]:
            raise _broken(
                f"Supplier {supplier['id']} debt does not match its purchases",
                supplier_id=supplier["id"],
            )


def _broken(message: str, **details: int) -> ValidationError:
    return ValidationError(message, error_code="INCONSISTENT_BACKUP", details=details)
