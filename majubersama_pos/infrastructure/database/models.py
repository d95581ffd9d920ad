"""SQLAlchemy ORM models for the shop database"""

from sqlalchemy import Column, String, BigInteger, Float, DateTime, Date, Integer, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base, relationship

from majubersama_pos.utils.date_utils import now

Base = declarative_base()


class Product(Base):
    """Catalog item: fertilizer, pesticide, seed, ..."""

    __tablename__ = "product"

    id = Column(Integer, primary_key=True, autoincrement=True)
    barcode = Column(String(64), nullable=True, unique=True, index=True)
    name = Column(Text, nullable=False)
    type = Column(String(32), nullable=False, default="lainnya")
    active_ingredient = Column(Text, nullable=False, default="")
    target_pests = Column(JSON, nullable=False, default=list)
    unit = Column(String(32), nullable=False, default="Kilogram")
    stock = Column(Float, nullable=False, default=0.0)
    min_stock = Column(Float, nullable=False, default=0.0)
    cost_price = Column(BigInteger, nullable=False, default=0)
    retail_price = Column(BigInteger, nullable=False, default=0)
    wholesale_price = Column(BigInteger, nullable=False, default=0)
    wholesale_min_qty = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, nullable=False, default=now)
    updated_at = Column(DateTime, nullable=False, default=now, onupdate=now)


class Customer(Base):
    """Farmer buying from the shop, possibly on credit"""

    __tablename__ = "customer"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    phone = Column(String(32), nullable=False, default="")
    village = Column(Text, nullable=False, default="", index=True)
    farmer_group = Column(Text, nullable=False, default="")
    address = Column(Text, nullable=False, default="")
    harvest_date = Column(Text, nullable=False, default="")
    debt_limit = Column(BigInteger, nullable=False, default=0)
    # Cached sum of remaining_amount over unpaid debts; only LedgerAccount writes it
    current_debt = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=now)
    updated_at = Column(DateTime, nullable=False, default=now, onupdate=now)

    debts = relationship("DebtRecord", back_populates="customer", order_by="DebtRecord.id")


class SaleTransaction(Base):
    """Completed checkout"""

    __tablename__ = "sale_transaction"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("customer.id"), nullable=True, index=True)
    customer_name = Column(Text, nullable=False, default="")
    subtotal = Column(BigInteger, nullable=False)
    discount = Column(BigInteger, nullable=False, default=0)
    total = Column(BigInteger, nullable=False)
    payment_type = Column(String(16), nullable=False, default="cash")
    amount_paid = Column(BigInteger, nullable=False, default=0)
    change = Column(BigInteger, nullable=False, default=0)
    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=now, index=True)

    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.id")
    debt = relationship("DebtRecord", back_populates="sale", uselist=False)


class SaleItem(Base):
    """Line of a sale, with product data snapshotted at checkout"""

    __tablename__ = "sale_item"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sale_id = Column(Integer, ForeignKey("sale_transaction.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("product.id", ondelete="SET NULL"), nullable=True)
    product_name = Column(Text, nullable=False)
    quantity = Column(Float, nullable=False)
    unit = Column(String(32), nullable=False, default="")
    price_type = Column(String(16), nullable=False, default="retail")
    unit_price = Column(BigInteger, nullable=False)
    cost_price = Column(BigInteger, nullable=False, default=0)
    subtotal = Column(BigInteger, nullable=False)

    sale = relationship("SaleTransaction", back_populates="items")


class DebtRecord(Base):
    """Credit (piutang) owed by a customer for one sale"""

    __tablename__ = "debt_record"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(Integer, ForeignKey("sale_transaction.id"), nullable=True, unique=True)
    customer_id = Column(Integer, ForeignKey("customer.id"), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    paid_amount = Column(BigInteger, nullable=False, default=0)
    remaining_amount = Column(BigInteger, nullable=False)
    status = Column(String(16), nullable=False, default="pending", index=True)
    due_date = Column(Date, nullable=True, index=True)
    note = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=now)
    updated_at = Column(DateTime, nullable=False, default=now, onupdate=now)

    customer = relationship("Customer", back_populates="debts")
    sale = relationship("SaleTransaction", back_populates="debt")
    payments = relationship("DebtPayment", back_populates="debt", order_by="DebtPayment.id")


class DebtPayment(Base):
    """Installment paid against a debt record; never edited"""

    __tablename__ = "debt_payment"

    id = Column(Integer, primary_key=True, autoincrement=True)
    debt_id = Column(Integer, ForeignKey("debt_record.id"), nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    paid_at = Column(DateTime, nullable=False, default=now)
    note = Column(Text, nullable=False, default="")

    debt = relationship("DebtRecord", back_populates="payments")


class Supplier(Base):
    """Distributor the shop restocks from"""

    __tablename__ = "supplier"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    phone = Column(String(32), nullable=False, default="")
    address = Column(Text, nullable=False, default="")
    # Cached payable: remaining amount over unpaid purchases
    debt = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=now)

    purchases = relationship("Purchase", back_populates="supplier", order_by="Purchase.id")


class Purchase(Base):
    """Restock order from a supplier"""

    __tablename__ = "purchase"

    id = Column(Integer, primary_key=True, autoincrement=True)
    supplier_id = Column(Integer, ForeignKey("supplier.id"), nullable=False, index=True)
    supplier_name = Column(Text, nullable=False, default="")
    items = Column(JSON, nullable=False, default=list)
    total = Column(BigInteger, nullable=False)
    amount_paid = Column(BigInteger, nullable=False, default=0)
    status = Column(String(16), nullable=False, default="pending")
    due_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=now)

    supplier = relationship("Supplier", back_populates="purchases")


class LedgerEntry(Base):
    """Append-only journal of debt and payable events"""

    __tablename__ = "ledger_entry"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(DateTime, nullable=False, default=now, index=True)
    type = Column(String(32), nullable=False)
    entity_type = Column(String(16), nullable=False)
    entity_id = Column(Integer, nullable=False, index=True)
    entity_name = Column(Text, nullable=False, default="")
    amount = Column(BigInteger, nullable=False)
    reference_id = Column(Integer, nullable=True)
    note = Column(Text, nullable=False, default="")


class ShopSetting(Base):
    """Key/value store for shop-wide settings such as the hashed cashier PIN"""

    __tablename__ = "shop_setting"

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=now, onupdate=now)
