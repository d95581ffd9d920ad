"""Unit tests for whole-store backup and restore"""

import pytest
from sqlalchemy.orm import Session
from majubersama_pos.api.v1.schemas import StoreSnapshot
from majubersama_pos.domain.exceptions import ValidationError
from majubersama_pos.infrastructure.database.models import (
    Customer,
    DebtPayment,
    DebtRecord,
    LedgerEntry,
    Product,
    Supplier,
)
from majubersama_pos.services.backup import SECTIONS, BackupService
from majubersama_pos.services.ledger_account import LedgerAccount
from majubersama_pos.services.purchasing import PurchaseLine, PurchasingService


def _snapshot(service: BackupService) -> dict:
    exported = StoreSnapshot.model_validate(service.export(), from_attributes=True)
    return exported.model_dump(include=set(SECTIONS))


@pytest.fixture
def service(db: Session, locks) -> BackupService:
    return BackupService(db, locks)


@pytest.fixture
def populated(db: Session, locks, ledger: LedgerAccount, customer: Customer, product: Product, supplier: Supplier):
    """Customer owing 450,000 on one debt and a supplier owed 160,000"""
    debt = ledger.record_debt(customer.id, 600_000, note="Bon lama")
    ledger.apply_payment(debt.id, 150_000)
    PurchasingService(db, locks).create_purchase(supplier.id, [PurchaseLine(product.id, 20, 8_000)])
    return {"customer_id": customer.id, "product_id": product.id, "supplier_id": supplier.id, "debt_id": debt.id}


def test_restore_brings_back_exported_state(db: Session, service: BackupService, ledger: LedgerAccount, populated):
    snapshot = _snapshot(service)

    # Changes made after the backup are discarded by the restore
    ledger.apply_payment(populated["debt_id"], 50_000)
    db.add(Customer(name="Pak Joko", village="Sukamaju"))
    db.commit()

    counts = service.restore(snapshot)

    assert counts["customers"] == 1
    assert counts["debts"] == 1
    assert db.query(Customer).count() == 1
    customer = db.get(Customer, populated["customer_id"])
    debt = db.get(DebtRecord, populated["debt_id"])
    assert customer.current_debt == 450_000
    assert (debt.paid_amount, debt.remaining_amount, debt.status) == (150_000, 450_000, "partial")
    assert db.query(DebtPayment).count() == 1
    assert db.get(Supplier, populated["supplier_id"]).debt == 160_000
    assert db.get(Product, populated["product_id"]).stock == 120.0
    assert db.query(LedgerEntry).count() == len(snapshot["ledger_entries"])


def test_restored_store_keeps_working(db: Session, service: BackupService, ledger: LedgerAccount, populated):
    service.restore(_snapshot(service))

    debt = ledger.apply_payment(populated["debt_id"], 450_000)

    assert debt.status == "paid"
    assert db.get(Customer, populated["customer_id"]).current_debt == 0


def test_inconsistent_snapshot_changes_nothing(db: Session, service: BackupService, populated):
    snapshot = _snapshot(service)
    snapshot["customers"][0]["current_debt"] = 0

    with pytest.raises(ValidationError) as exc_info:
        service.restore(snapshot)

    assert exc_info.value.error_code == "INCONSISTENT_BACKUP"
    assert exc_info.value.details == {"customer_id": populated["customer_id"]}
    assert db.get(Customer, populated["customer_id"]).current_debt == 450_000


def test_debt_balances_must_add_up(service: BackupService, populated):
    snapshot = _snapshot(service)
    snapshot["debts"][0]["status"] = "paid"

    with pytest.raises(ValidationError):
        service.restore(snapshot)


def test_debt_must_reference_known_customer(service: BackupService, populated):
    snapshot = _snapshot(service)
    snapshot["customers"] = []

    with pytest.raises(ValidationError) as exc_info:
        service.restore(snapshot)

    assert exc_info.value.details == {"debt_id": populated["debt_id"]}


def test_empty_snapshot_clears_store(db: Session, service: BackupService, populated):
    counts = service.restore({section: [] for section in SECTIONS})

    assert set(counts.values()) == {0}
    assert db.query(Customer).count() == 0
    assert db.query(DebtRecord).count() == 0
