"""Supplier purchases - restocking and the payable owed to suppliers"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from majubersama_pos.domain import ledger as rules
from majubersama_pos.domain.exceptions import InvalidAmountError, InvalidCartError, NotFoundError
from majubersama_pos.domain.models import ENTRY_PAYABLE, ENTRY_PAYABLE_PAYMENT
from majubersama_pos.infrastructure.database.models import Purchase
from majubersama_pos.infrastructure.database.repositories import (
    LedgerEntryRepository,
    ProductRepository,
    SupplierRepository,
)
from majubersama_pos.infrastructure.observability.metrics import purchase_counter
from majubersama_pos.services.locks import EntityLocks, product_key, supplier_key, unit_of_work

logger = logging.getLogger(__name__)


@dataclass
class PurchaseLine:
    product_id: int
    quantity: float
    unit_cost: int


class PurchasingService:
    """Records restock purchases and payments to suppliers"""

    def __init__(self, db: Session, locks: EntityLocks):
        self.db = db
        self.locks = locks
        self.suppliers = SupplierRepository(db)
        self.products = ProductRepository(db)
        self.entries = LedgerEntryRepository(db)

    def create_purchase(
        self,
        supplier_id: int,
        lines: List[PurchaseLine],
        amount_paid: int = 0,
        due_date: Optional[date] = None,
        notes: str = "",
    ) -> Purchase:
        """
        Store a purchase, add the goods to stock and book the unpaid part
        as a payable to the supplier.

        Raises:
            NotFoundError: supplier or a product does not exist
            InvalidCartError: no lines, or a line with non-positive quantity
            InvalidAmountError: negative unit cost, or amount_paid outside [0, total]
        """
        if not lines:
            raise InvalidCartError("Purchase has no items")

        keys = [supplier_key(supplier_id)] + [product_key(line.product_id) for line in lines]
        with unit_of_work(self.db, self.locks, *keys):
            supplier = self.suppliers.get(supplier_id, for_update=True)
            if supplier is None:
                raise NotFoundError(f"Supplier {supplier_id} not found", details={"supplier_id": supplier_id})

            items = []
            products = {}
            for line in lines:
                if line.quantity <= 0:
                    raise InvalidCartError(f"Quantity for product {line.product_id} must be greater than 0")
                if line.unit_cost < 0:
                    raise InvalidAmountError(f"Unit cost for product {line.product_id} cannot be negative")
                # Re-reading a locked row would discard the unflushed stock change of an earlier line
                product = products.get(line.product_id) or self.products.get(line.product_id, for_update=True)
                if product is None:
                    raise NotFoundError(f"Product {line.product_id} not found", details={"product_id": line.product_id})
                products[product.id] = product

                product.stock = product.stock + line.quantity
                product.cost_price = line.unit_cost
                items.append(
                    {
                        "product_id": product.id,
                        "product_name": product.name,
                        "quantity": line.quantity,
                        "unit_cost": line.unit_cost,
                        "subtotal": int(round(line.unit_cost * line.quantity)),
                    }
                )

            total = sum(item["subtotal"] for item in items)
            if amount_paid < 0 or amount_paid > total:
                raise InvalidAmountError(
                    f"Amount paid {amount_paid} must be between 0 and total {total}",
                    details={"total": total, "amount_paid": amount_paid},
                )

            purchase = self.suppliers.add_purchase(
                Purchase(
                    supplier_id=supplier.id,
                    supplier_name=supplier.name,
                    items=items,
                    total=total,
                    amount_paid=amount_paid,
                    status=rules.derive_status(total, amount_paid),
                    due_date=due_date,
                    notes=notes or "",
                )
            )

            payable = total - amount_paid
            if payable > 0:
                supplier.debt = supplier.debt + payable
                self.entries.record(
                    ENTRY_PAYABLE,
                    "supplier",
                    supplier.id,
                    supplier.name,
                    payable,
                    reference_id=purchase.id,
                    note=notes or f"Pembelian {purchase.id}",
                )

        purchase_counter.inc()
        logger.info(
            "Purchase recorded",
            extra={"purchase_id": purchase.id, "supplier_id": supplier_id, "total": total, "payable": payable},
        )
        return purchase

    def pay_purchase(self, purchase_id: int, amount: int, note: str = "") -> Purchase:
        """
        Raises:
            NotFoundError: purchase does not exist
            InvalidAmountError: amount <= 0 or more than what is still owed
        """
        purchase = self.suppliers.get_purchase(purchase_id)
        if purchase is None:
            raise NotFoundError(f"Purchase {purchase_id} not found", details={"purchase_id": purchase_id})

        with unit_of_work(self.db, self.locks, supplier_key(purchase.supplier_id)):
            purchase = self.suppliers.get_purchase(purchase_id, for_update=True)
            rules.validate_payment_amount(amount, rules.remaining_amount(purchase.total, purchase.amount_paid))

            supplier = self.suppliers.get(purchase.supplier_id, for_update=True)
            purchase.amount_paid = purchase.amount_paid + amount
            purchase.status = rules.derive_status(purchase.total, purchase.amount_paid)
            supplier.debt = rules.reduce_balance(supplier.debt, amount)

            self.entries.record(
                ENTRY_PAYABLE_PAYMENT,
                "supplier",
                supplier.id,
                supplier.name,
                amount,
                reference_id=purchase.id,
                note=note or f"Pembayaran pembelian {purchase.id}",
            )

        return purchase
