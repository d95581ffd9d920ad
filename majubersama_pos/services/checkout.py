"""Checkout flow - turns a cart into a sale, stock movements and possibly a debt"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from majubersama_pos.domain.exceptions import InsufficientStockError, InvalidCartError, NotFoundError
from majubersama_pos.domain.models import PAYMENT_DEBT, CartLine, PricedLine, PriceTiers
from majubersama_pos.domain.pricing import compute_totals, line_subtotal, resolve_unit_price
from majubersama_pos.infrastructure.database.models import Product, SaleItem, SaleTransaction
from majubersama_pos.infrastructure.database.repositories import (
    CustomerRepository,
    ProductRepository,
    SaleRepository,
)
from majubersama_pos.infrastructure.observability.metrics import record_sale
from majubersama_pos.services.ledger_account import LedgerAccount
from majubersama_pos.services.locks import EntityLocks, customer_key, product_key, unit_of_work


@dataclass
class CheckoutRequest:
    lines: List[CartLine]
    payment_type: str
    amount_paid: int = 0
    discount: int = 0
    customer_id: Optional[int] = None
    due_date: Optional[date] = None
    notes: str = ""


@dataclass
class CheckoutResult:
    sale: SaleTransaction
    debt_id: Optional[int] = None
    warnings: List[str] = field(default_factory=list)


def price_line(product: Product, line: CartLine, available: Optional[float] = None) -> PricedLine:
    """Resolve tier price for one cart line and check it against available stock"""
    available = product.stock if available is None else available
    if line.quantity <= 0:
        raise InvalidCartError(f"Quantity for {product.name} must be greater than 0")
    if line.quantity > available:
        raise InsufficientStockError(
            f"Not enough stock for {product.name}: requested {line.quantity:g}, available {available:g}",
            details={"product_id": product.id, "requested": line.quantity, "available": available},
        )

    prices = PriceTiers(
        cost=product.cost_price,
        retail=product.retail_price,
        wholesale=product.wholesale_price,
        wholesale_min_qty=product.wholesale_min_qty,
    )
    unit_price = resolve_unit_price(prices, line.price_type, line.quantity)
    return PricedLine(
        product_id=product.id,
        product_name=product.name,
        unit=product.unit,
        quantity=line.quantity,
        price_type=line.price_type,
        unit_price=unit_price,
        cost_price=product.cost_price,
        subtotal=line_subtotal(unit_price, line.quantity),
    )


class CheckoutService:
    """Orchestrates one checkout as a single atomic unit of work"""

    def __init__(self, db: Session, locks: EntityLocks, ledger: Optional[LedgerAccount] = None):
        self.db = db
        self.locks = locks
        self.ledger = ledger or LedgerAccount(db, locks)
        self.products = ProductRepository(db)
        self.customers = CustomerRepository(db)
        self.sales = SaleRepository(db)

    def checkout(self, request: CheckoutRequest) -> CheckoutResult:
        """
        Flow:
        1. Price every line against current stock (locked)
        2. Compute totals and validate the payment
        3. Decrement stock and store the sale with its items
        4. For credit sales, record the unpaid part through the ledger
        5. Commit everything together

        Raises:
            InvalidCartError, InsufficientStockError, InvalidAmountError,
            NotFoundError, DebtLimitExceededError
        """
        if not request.lines:
            raise InvalidCartError("Cart is empty")
        if request.payment_type == PAYMENT_DEBT and request.customer_id is None:
            raise InvalidCartError("Credit sales need a customer")

        keys = [product_key(line.product_id) for line in request.lines]
        if request.customer_id is not None:
            keys.append(customer_key(request.customer_id))

        with unit_of_work(self.db, self.locks, *keys):
            customer = None
            if request.customer_id is not None:
                customer = self.customers.get(request.customer_id, for_update=True)
                if customer is None:
                    raise NotFoundError(
                        f"Customer {request.customer_id} not found",
                        details={"customer_id": request.customer_id},
                    )

            priced: List[PricedLine] = []
            products = {}
            reserved = {}
            for line in self._merge_lines(request.lines):
                product = products.get(line.product_id) or self.products.get(line.product_id, for_update=True)
                if product is None:
                    raise NotFoundError(f"Product {line.product_id} not found", details={"product_id": line.product_id})
                products[product.id] = product
                available = product.stock - reserved.get(product.id, 0.0)
                priced.append(price_line(product, line, available))
                reserved[product.id] = reserved.get(product.id, 0.0) + line.quantity

            totals = compute_totals(priced, request.discount, request.payment_type, request.amount_paid)

            sale = SaleTransaction(
                customer_id=customer.id if customer else None,
                customer_name=customer.name if customer else "",
                subtotal=totals.subtotal,
                discount=totals.discount,
                total=totals.total,
                payment_type=request.payment_type,
                amount_paid=totals.amount_paid,
                change=totals.change,
                due_date=request.due_date,
                notes=request.notes or "",
                items=[
                    SaleItem(
                        product_id=p.product_id,
                        product_name=p.product_name,
                        quantity=p.quantity,
                        unit=p.unit,
                        price_type=p.price_type,
                        unit_price=p.unit_price,
                        cost_price=p.cost_price,
                        subtotal=p.subtotal,
                    )
                    for p in priced
                ],
            )
            self.sales.add(sale)

            for p in priced:
                product = products[p.product_id]
                product.stock = product.stock - p.quantity

            debt_id = None
            if request.payment_type == PAYMENT_DEBT:
                debt = self.ledger.stage_debt(
                    customer.id,
                    totals.debt_amount,
                    due_date=request.due_date,
                    transaction_id=sale.id,
                    note=request.notes or "",
                )
                debt_id = debt.id

        record_sale(request.payment_type, totals.total)

        warnings = [
            f"{product.name} is at or below minimum stock"
            for product in products.values()
            if product.stock <= product.min_stock
        ]
        return CheckoutResult(sale=sale, debt_id=debt_id, warnings=warnings)

    @staticmethod
    def _merge_lines(lines: List[CartLine]) -> List[CartLine]:
        """Lines for the same product and tier are combined so stock is checked once"""
        merged = {}
        for line in lines:
            if line.quantity <= 0:
                raise InvalidCartError(f"Quantity for product {line.product_id} must be greater than 0")
            key = (line.product_id, line.price_type)
            if key in merged:
                merged[key].quantity += line.quantity
            else:
                merged[key] = CartLine(line.product_id, line.quantity, line.price_type)
        return list(merged.values())
