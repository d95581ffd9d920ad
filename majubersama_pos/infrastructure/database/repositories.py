"""Data access layer for shop entities"""

from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from majubersama_pos.domain.models import STATUS_PAID, OutstandingDebt
from majubersama_pos.infrastructure.database.models import (
    Customer,
    DebtPayment,
    DebtRecord,
    LedgerEntry,
    Product,
    Purchase,
    SaleTransaction,
    Supplier,
)


def _locked(query, for_update: bool):
    """Row lock for read-modify-write; refresh identity-map copies with the locked row"""
    if for_update:
        return query.with_for_update().populate_existing()
    return query


class ProductRepository:
    """Repository for catalog products"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, product: Product) -> Product:
        self.db.add(product)
        self.db.flush()
        return product

    def get(self, product_id: int, for_update: bool = False) -> Optional[Product]:
        query = self.db.query(Product).filter(Product.id == product_id)
        return _locked(query, for_update).first()

    def get_by_barcode(self, barcode: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.barcode == barcode).first()

    def list(self, product_type: Optional[str] = None) -> List[Product]:
        query = self.db.query(Product)
        if product_type:
            query = query.filter(Product.type == product_type)
        return query.order_by(Product.name).all()

    def search(self, text: str) -> List[Product]:
        """Case-insensitive match on name, active ingredient or target pests; exact barcode"""
        needle = text.strip().lower()
        if not needle:
            return []
        products = self.db.query(Product).order_by(Product.name).all()
        return [
            p
            for p in products
            if needle in p.name.lower()
            or needle in (p.active_ingredient or "").lower()
            or any(needle in pest.lower() for pest in (p.target_pests or []))
            or (p.barcode is not None and p.barcode == text.strip())
        ]

    def low_stock(self) -> List[Product]:
        return (
            self.db.query(Product)
            .filter(Product.stock <= Product.min_stock)
            .order_by(Product.stock)
            .all()
        )

    def count(self) -> int:
        return self.db.query(func.count(Product.id)).scalar() or 0

    def count_low_stock(self) -> int:
        return self.db.query(func.count(Product.id)).filter(Product.stock <= Product.min_stock).scalar() or 0

    def delete(self, product: Product) -> None:
        self.db.delete(product)
        self.db.flush()


class CustomerRepository:
    """Repository for customers"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, customer: Customer) -> Customer:
        self.db.add(customer)
        self.db.flush()
        return customer

    def get(self, customer_id: int, for_update: bool = False) -> Optional[Customer]:
        query = self.db.query(Customer).filter(Customer.id == customer_id)
        return _locked(query, for_update).first()

    def list(self, village: Optional[str] = None, name: Optional[str] = None) -> List[Customer]:
        query = self.db.query(Customer)
        if village:
            query = query.filter(Customer.village == village)
        if name:
            query = query.filter(Customer.name.ilike(f"%{name}%"))
        return query.order_by(Customer.name).all()

    def delete(self, customer: Customer) -> None:
        self.db.delete(customer)
        self.db.flush()


class DebtRepository:
    """Repository for debt records and their payments"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, debt: DebtRecord) -> DebtRecord:
        self.db.add(debt)
        self.db.flush()
        return debt

    def add_payment(self, payment: DebtPayment) -> DebtPayment:
        self.db.add(payment)
        self.db.flush()
        return payment

    def get(self, debt_id: int, for_update: bool = False) -> Optional[DebtRecord]:
        query = self.db.query(DebtRecord).filter(DebtRecord.id == debt_id)
        return _locked(query, for_update).first()

    def by_customer(self, customer_id: int) -> List[DebtRecord]:
        """Debts of a customer, newest first"""
        return (
            self.db.query(DebtRecord)
            .options(selectinload(DebtRecord.payments))
            .filter(DebtRecord.customer_id == customer_id)
            .order_by(DebtRecord.created_at.desc(), DebtRecord.id.desc())
            .all()
        )

    def by_transaction(self, transaction_id: int) -> Optional[DebtRecord]:
        return self.db.query(DebtRecord).filter(DebtRecord.transaction_id == transaction_id).first()

    def count_by_customer(self, customer_id: int) -> int:
        return self.db.query(func.count(DebtRecord.id)).filter(DebtRecord.customer_id == customer_id).scalar() or 0

    def unpaid_due_before(self, cutoff: date) -> List[DebtRecord]:
        """Unpaid debts whose due date is strictly before cutoff, oldest due first"""
        return (
            self.db.query(DebtRecord)
            .options(selectinload(DebtRecord.customer))
            .filter(DebtRecord.status != STATUS_PAID)
            .filter(DebtRecord.due_date.isnot(None))
            .filter(DebtRecord.due_date < cutoff)
            .order_by(DebtRecord.due_date, DebtRecord.id)
            .all()
        )

    def outstanding(self, customer_id: Optional[int] = None) -> List[OutstandingDebt]:
        """Unpaid debts joined with the owning customer's village"""
        query = (
            self.db.query(
                DebtRecord.id,
                DebtRecord.customer_id,
                Customer.village,
                DebtRecord.remaining_amount,
                DebtRecord.status,
                DebtRecord.due_date,
            )
            .join(Customer, Customer.id == DebtRecord.customer_id)
            .filter(DebtRecord.status != STATUS_PAID)
        )
        if customer_id is not None:
            query = query.filter(DebtRecord.customer_id == customer_id)
        return [
            OutstandingDebt(
                debt_id=row.id,
                customer_id=row.customer_id,
                village=row.village,
                remaining_amount=row.remaining_amount,
                status=row.status,
                due_date=row.due_date,
            )
            for row in query.all()
        ]


class SaleRepository:
    """Repository for checkout transactions"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, sale: SaleTransaction) -> SaleTransaction:
        self.db.add(sale)
        self.db.flush()
        return sale

    def get(self, sale_id: int) -> Optional[SaleTransaction]:
        return (
            self.db.query(SaleTransaction)
            .options(selectinload(SaleTransaction.items))
            .filter(SaleTransaction.id == sale_id)
            .first()
        )

    def between(self, start: datetime, end: datetime) -> List[SaleTransaction]:
        """Sales created in [start, end), oldest first"""
        return (
            self.db.query(SaleTransaction)
            .options(selectinload(SaleTransaction.items))
            .filter(SaleTransaction.created_at >= start)
            .filter(SaleTransaction.created_at < end)
            .order_by(SaleTransaction.created_at, SaleTransaction.id)
            .all()
        )

    def recent(self, limit: int = 50, customer_id: Optional[int] = None) -> List[SaleTransaction]:
        query = self.db.query(SaleTransaction).options(selectinload(SaleTransaction.items))
        if customer_id is not None:
            query = query.filter(SaleTransaction.customer_id == customer_id)
        return query.order_by(SaleTransaction.created_at.desc(), SaleTransaction.id.desc()).limit(limit).all()


class SupplierRepository:
    """Repository for suppliers and their purchases"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, supplier: Supplier) -> Supplier:
        self.db.add(supplier)
        self.db.flush()
        return supplier

    def get(self, supplier_id: int, for_update: bool = False) -> Optional[Supplier]:
        query = self.db.query(Supplier).filter(Supplier.id == supplier_id)
        return _locked(query, for_update).first()

    def list(self) -> List[Supplier]:
        return self.db.query(Supplier).order_by(Supplier.name).all()

    def delete(self, supplier: Supplier) -> None:
        self.db.delete(supplier)
        self.db.flush()

    def add_purchase(self, purchase: Purchase) -> Purchase:
        self.db.add(purchase)
        self.db.flush()
        return purchase

    def get_purchase(self, purchase_id: int, for_update: bool = False) -> Optional[Purchase]:
        query = self.db.query(Purchase).filter(Purchase.id == purchase_id)
        return _locked(query, for_update).first()

    def purchases(self, supplier_id: Optional[int] = None) -> List[Purchase]:
        query = self.db.query(Purchase)
        if supplier_id is not None:
            query = query.filter(Purchase.supplier_id == supplier_id)
        return query.order_by(Purchase.created_at.desc(), Purchase.id.desc()).all()

    def count_purchases(self, supplier_id: int) -> int:
        return self.db.query(func.count(Purchase.id)).filter(Purchase.supplier_id == supplier_id).scalar() or 0


class LedgerEntryRepository:
    """Repository for the debt/payable journal"""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        entry_type: str,
        entity_type: str,
        entity_id: int,
        entity_name: str,
        amount: int,
        reference_id: Optional[int] = None,
        note: str = "",
    ) -> LedgerEntry:
        entry = LedgerEntry(
            type=entry_type,
            entity_type=entity_type,
            entity_id=entity_id,
            entity_name=entity_name,
            amount=amount,
            reference_id=reference_id,
            note=note,
        )
        self.db.add(entry)
        return entry

    def list(
        self,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
        entry_types: Optional[Iterable[str]] = None,
        limit: int = 200,
    ) -> List[LedgerEntry]:
        query = self.db.query(LedgerEntry)
        if entity_type:
            query = query.filter(LedgerEntry.entity_type == entity_type)
        if entity_id is not None:
            query = query.filter(LedgerEntry.entity_id == entity_id)
        if entry_types:
            query = query.filter(LedgerEntry.type.in_(list(entry_types)))
        return query.order_by(LedgerEntry.date.desc(), LedgerEntry.id.desc()).limit(limit).all()
