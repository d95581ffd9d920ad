"""Checkout pricing - price tier resolution and sale totals"""

from typing import List

from majubersama_pos.domain.exceptions import InvalidAmountError, InvalidCartError
from majubersama_pos.domain.models import (
    PAYMENT_CASH,
    PAYMENT_DEBT,
    PRICE_RETAIL,
    PRICE_WHOLESALE,
    CheckoutTotals,
    PricedLine,
    PriceTiers,
)


def resolve_unit_price(prices: PriceTiers, price_type: str, quantity: float) -> int:
    """
    Pick the unit price for a cart line.

    Wholesale pricing only applies once the line reaches the product's
    wholesale minimum quantity (a minimum of 0 means any quantity).
    """
    if price_type == PRICE_RETAIL:
        return prices.retail
    if price_type == PRICE_WHOLESALE:
        if quantity < prices.wholesale_min_qty:
            raise InvalidCartError(
                f"Wholesale price needs at least {prices.wholesale_min_qty:g} units, got {quantity:g}"
            )
        return prices.wholesale
    raise InvalidCartError(f"Unknown price type: {price_type}")


def line_subtotal(unit_price: int, quantity: float) -> int:
    """Round to whole rupiah; quantities can be fractional (kg, liter)"""
    return int(round(unit_price * quantity))


def compute_totals(
    lines: List[PricedLine],
    discount: int,
    payment_type: str,
    amount_paid: int,
) -> CheckoutTotals:
    """
    Compute sale totals.

    Cash sales must be fully covered by amount_paid and return change.
    Debt sales treat amount_paid as a down payment; the rest becomes the
    debt principal, so the down payment must leave something owed.

    Raises:
        InvalidCartError: empty cart, negative discount or discount above subtotal
        InvalidAmountError: cash does not cover the total, or down payment covers it
    """
    if not lines:
        raise InvalidCartError("Cart is empty")
    if discount < 0:
        raise InvalidCartError("Discount cannot be negative")
    if amount_paid < 0:
        raise InvalidAmountError("Amount paid cannot be negative")

    subtotal = sum(line.subtotal for line in lines)
    if discount > subtotal:
        raise InvalidCartError(f"Discount {discount} exceeds subtotal {subtotal}")
    total = subtotal - discount

    if payment_type == PAYMENT_CASH:
        if amount_paid < total:
            raise InvalidAmountError(
                f"Amount paid {amount_paid} does not cover total {total}",
                details={"total": total, "amount_paid": amount_paid},
            )
        return CheckoutTotals(
            subtotal=subtotal,
            discount=discount,
            total=total,
            amount_paid=amount_paid,
            change=amount_paid - total,
            debt_amount=0,
        )

    if payment_type == PAYMENT_DEBT:
        if amount_paid >= total:
            raise InvalidAmountError(
                "Down payment covers the whole total; record the sale as cash",
                details={"total": total, "amount_paid": amount_paid},
            )
        return CheckoutTotals(
            subtotal=subtotal,
            discount=discount,
            total=total,
            amount_paid=amount_paid,
            change=0,
            debt_amount=total - amount_paid,
        )

    raise InvalidCartError(f"Unknown payment type: {payment_type}")
