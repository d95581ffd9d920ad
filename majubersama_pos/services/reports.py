"""Dashboard and sales reports"""

from collections import defaultdict
from datetime import date
from typing import Dict, Optional

from sqlalchemy.orm import Session

from majubersama_pos.domain.exceptions import ValidationError
from majubersama_pos.domain.models import PAYMENT_CASH, PAYMENT_DEBT, DailySales, DashboardStats, SalesSummary
from majubersama_pos.infrastructure.database.repositories import ProductRepository, SaleRepository
from majubersama_pos.services.ledger_account import LedgerAccount
from majubersama_pos.utils.date_utils import day_bounds, generate_date_range, today


class ReportService:
    def __init__(self, db: Session, ledger: LedgerAccount):
        self.db = db
        self.ledger = ledger
        self.products = ProductRepository(db)
        self.sales = SaleRepository(db)

    def dashboard(self, as_of: Optional[date] = None) -> DashboardStats:
        """Headline numbers for the shop dashboard; debt figures come from debt records"""
        as_of = as_of or today()
        start, end = day_bounds(as_of)
        todays = self.sales.between(start, end)

        return DashboardStats(
            total_products=self.products.count(),
            low_stock_products=self.products.count_low_stock(),
            today_transactions=len(todays),
            today_revenue=sum(s.total for s in todays),
            total_debt=self.ledger.total_outstanding(),
            overdue_debts=len(self.ledger.list_overdue(as_of)),
        )

    def sales_summary(self, start: date, end: date) -> SalesSummary:
        """
        Revenue split by payment type, discounts and gross profit over
        [start, end], with one row per calendar day (days without sales
        included).

        Gross profit uses the cost price captured on each sale item.
        """
        if end < start:
            raise ValidationError("Report end date is before start date")

        lower, upper = day_bounds(start, end)
        sales = self.sales.between(lower, upper)

        per_day_count: Dict[date, int] = defaultdict(int)
        per_day_revenue: Dict[date, int] = defaultdict(int)
        cash_revenue = credit_revenue = discount_total = gross_profit = 0

        for sale in sales:
            day = sale.created_at.date()
            per_day_count[day] += 1
            per_day_revenue[day] += sale.total
            discount_total += sale.discount
            if sale.payment_type == PAYMENT_CASH:
                cash_revenue += sale.total
            elif sale.payment_type == PAYMENT_DEBT:
                credit_revenue += sale.total

            item_cost = sum(int(round(item.cost_price * item.quantity)) for item in sale.items)
            gross_profit += sale.total - item_cost

        daily = [
            DailySales(day=day, transaction_count=per_day_count[day], revenue=per_day_revenue[day])
            for day in generate_date_range(start, end)
        ]

        return SalesSummary(
            start=start,
            end=end,
            transaction_count=len(sales),
            revenue=sum(s.total for s in sales),
            cash_revenue=cash_revenue,
            credit_revenue=credit_revenue,
            discount_total=discount_total,
            gross_profit=gross_profit,
            daily=daily,
        )
