"""Unit tests for supplier purchases"""

import pytest
from sqlalchemy.orm import Session
from majubersama_pos.domain.exceptions import InvalidAmountError, InvalidCartError, NotFoundError
from majubersama_pos.infrastructure.database.models import LedgerEntry, Product, Supplier
from majubersama_pos.services.purchasing import PurchaseLine, PurchasingService


@pytest.fixture
def service(db: Session, locks) -> PurchasingService:
    return PurchasingService(db, locks)


def test_purchase_restocks_and_books_payable(
    db: Session, service: PurchasingService, supplier: Supplier, product: Product
):
    purchase = service.create_purchase(supplier.id, [PurchaseLine(product.id, 200, 7_500)], amount_paid=500_000)

    assert purchase.total == 1_500_000
    assert purchase.status == "partial"
    assert purchase.items[0]["product_name"] == "Pupuk Urea"

    db.refresh(product)
    db.refresh(supplier)
    assert product.stock == 300.0
    assert product.cost_price == 7_500
    assert supplier.debt == 1_000_000

    entry = db.query(LedgerEntry).one()
    assert (entry.type, entry.entity_type, entry.amount, entry.reference_id) == ("hutang", "supplier", 1_000_000, purchase.id)


def test_fully_paid_purchase_books_no_payable(
    db: Session, service: PurchasingService, supplier: Supplier, product: Product
):
    purchase = service.create_purchase(supplier.id, [PurchaseLine(product.id, 10, 8_000)], amount_paid=80_000)

    assert purchase.status == "paid"
    db.refresh(supplier)
    assert supplier.debt == 0
    assert db.query(LedgerEntry).count() == 0


def test_pay_purchase(db: Session, service: PurchasingService, supplier: Supplier, product: Product):
    purchase = service.create_purchase(supplier.id, [PurchaseLine(product.id, 100, 8_000)])

    purchase = service.pay_purchase(purchase.id, 300_000)
    assert purchase.status == "partial"

    purchase = service.pay_purchase(purchase.id, 500_000)
    assert purchase.status == "paid"
    assert purchase.amount_paid == 800_000

    db.refresh(supplier)
    assert supplier.debt == 0

    with pytest.raises(InvalidAmountError):
        service.pay_purchase(purchase.id, 1)


def test_purchase_validation(service: PurchasingService, supplier: Supplier, product: Product):
    with pytest.raises(InvalidCartError):
        service.create_purchase(supplier.id, [])
    with pytest.raises(InvalidCartError):
        service.create_purchase(supplier.id, [PurchaseLine(product.id, 0, 8_000)])
    with pytest.raises(InvalidAmountError):
        service.create_purchase(supplier.id, [PurchaseLine(product.id, 1, 8_000)], amount_paid=8_001)
    with pytest.raises(NotFoundError):
        service.create_purchase(9999, [PurchaseLine(product.id, 1, 8_000)])
    with pytest.raises(NotFoundError):
        service.pay_purchase(9999, 1_000)


def test_rejected_purchase_leaves_stock_untouched(
    db: Session, service: PurchasingService, supplier: Supplier, product: Product
):
    with pytest.raises(NotFoundError):
        service.create_purchase(supplier.id, [PurchaseLine(product.id, 10, 8_000), PurchaseLine(9999, 1, 1_000)])

    db.refresh(product)
    assert product.stock == 100.0


def test_repeated_product_lines_all_reach_stock(
    db: Session, service: PurchasingService, supplier: Supplier, product: Product
):
    purchase = service.create_purchase(
        supplier.id,
        [PurchaseLine(product.id, 10, 7_000), PurchaseLine(product.id, 5, 7_000)],
    )

    assert purchase.total == 105_000
    assert len(purchase.items) == 2

    db.refresh(product)
    db.refresh(supplier)
    assert product.stock == 115.0
    assert supplier.debt == 105_000
