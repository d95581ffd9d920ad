"""Unit tests for checkout pricing"""

import pytest
from majubersama_pos.domain.models import PricedLine, PriceTiers
from majubersama_pos.domain.pricing import compute_totals, line_subtotal, resolve_unit_price
from majubersama_pos.domain.exceptions import InvalidAmountError, InvalidCartError


PRICES = PriceTiers(cost=8_000, retail=10_000, wholesale=9_000, wholesale_min_qty=50)


def _line(subtotal: int) -> PricedLine:
    return PricedLine(
        product_id=1,
        product_name="Pupuk Urea",
        unit="Kilogram",
        quantity=1,
        price_type="retail",
        unit_price=subtotal,
        cost_price=0,
        subtotal=subtotal,
    )


def test_resolve_unit_price_tiers():
    assert resolve_unit_price(PRICES, "retail", 1) == 10_000
    assert resolve_unit_price(PRICES, "wholesale", 50) == 9_000


def test_wholesale_below_minimum_rejected():
    with pytest.raises(InvalidCartError):
        resolve_unit_price(PRICES, "wholesale", 49.5)


def test_wholesale_without_minimum_applies_to_any_quantity():
    prices = PriceTiers(cost=0, retail=10_000, wholesale=9_500, wholesale_min_qty=0)
    assert resolve_unit_price(prices, "wholesale", 0.5) == 9_500


def test_unknown_price_type_rejected():
    with pytest.raises(InvalidCartError):
        resolve_unit_price(PRICES, "member", 1)


def test_line_subtotal_rounds_fractional_quantity():
    assert line_subtotal(10_000, 2.5) == 25_000
    assert line_subtotal(4_500, 1.5) == 6_750
    assert line_subtotal(9_999, 0.25) == 2_500


def test_cash_totals_with_change():
    totals = compute_totals([_line(60_000), _line(40_000)], discount=5_000, payment_type="cash", amount_paid=100_000)

    assert totals.subtotal == 100_000
    assert totals.total == 95_000
    assert totals.change == 5_000
    assert totals.debt_amount == 0


def test_cash_must_cover_total():
    with pytest.raises(InvalidAmountError):
        compute_totals([_line(100_000)], discount=0, payment_type="cash", amount_paid=99_999)


def test_debt_totals_with_down_payment():
    totals = compute_totals([_line(600_000)], discount=0, payment_type="debt", amount_paid=100_000)

    assert totals.total == 600_000
    assert totals.amount_paid == 100_000
    assert totals.debt_amount == 500_000
    assert totals.change == 0


def test_debt_down_payment_must_leave_balance():
    with pytest.raises(InvalidAmountError):
        compute_totals([_line(600_000)], discount=0, payment_type="debt", amount_paid=600_000)


@pytest.mark.parametrize(
    "lines, discount, payment_type",
    [
        ([], 0, "cash"),
        ([_line(10_000)], -1, "cash"),
        ([_line(10_000)], 10_001, "cash"),
        ([_line(10_000)], 0, "transfer"),
    ],
)
def test_invalid_carts_rejected(lines, discount, payment_type):
    with pytest.raises(InvalidCartError):
        compute_totals(lines, discount=discount, payment_type=payment_type, amount_paid=10_000)
