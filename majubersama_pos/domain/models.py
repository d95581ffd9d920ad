"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

# Debt / purchase settlement states
STATUS_PENDING = "pending"
STATUS_PARTIAL = "partial"
STATUS_PAID = "paid"

# Sale payment types
PAYMENT_CASH = "cash"
PAYMENT_DEBT = "debt"

# Cart price tiers
PRICE_RETAIL = "retail"
PRICE_WHOLESALE = "wholesale"

# Ledger journal entry types
ENTRY_DEBT = "piutang"
ENTRY_DEBT_PAYMENT = "bayar_piutang"
ENTRY_PAYABLE = "hutang"
ENTRY_PAYABLE_PAYMENT = "bayar_hutang"

PRODUCT_TYPES = (
    "insektisida",
    "fungisida",
    "herbisida",
    "rodentisida",
    "pupuk_organik",
    "pupuk_anorganik",
    "pupuk_cair",
    "zpt",
    "adjuvan",
    "benih",
    "lainnya",
)


@dataclass
class PriceTiers:
    """Prices of one product, in rupiah"""

    cost: int
    retail: int
    wholesale: int
    wholesale_min_qty: float


@dataclass
class CartLine:
    """Line requested at checkout"""

    product_id: int
    quantity: float
    price_type: str = PRICE_RETAIL


@dataclass
class PricedLine:
    """Cart line after price tier resolution"""

    product_id: int
    product_name: str
    unit: str
    quantity: float
    price_type: str
    unit_price: int
    cost_price: int
    subtotal: int


@dataclass
class CheckoutTotals:
    """Money breakdown of a sale"""

    subtotal: int
    discount: int
    total: int
    amount_paid: int
    change: int
    debt_amount: int


@dataclass
class OutstandingDebt:
    """Minimal view of a debt record used by ledger rollups"""

    debt_id: int
    customer_id: int
    village: str
    remaining_amount: int
    status: str
    due_date: Optional[date] = None


@dataclass
class VillageDebt:
    """Outstanding debt rolled up per village"""

    village: str
    outstanding: int
    debt_count: int
    customer_count: int


@dataclass
class CustomerBalance:
    """Aggregate debt position of a customer"""

    customer_id: int
    current_debt: int
    debt_limit: int
    outstanding_from_records: int
    available_credit: Optional[int]
    at_limit: bool


@dataclass
class DailySales:
    day: date
    transaction_count: int
    revenue: int


@dataclass
class SalesSummary:
    """Sales report over a date range"""

    start: date
    end: date
    transaction_count: int
    revenue: int
    cash_revenue: int
    credit_revenue: int
    discount_total: int
    gross_profit: int
    daily: List[DailySales] = field(default_factory=list)


@dataclass
class DashboardStats:
    total_products: int
    low_stock_products: int
    today_transactions: int
    today_revenue: int
    total_debt: int
    overdue_debts: int
