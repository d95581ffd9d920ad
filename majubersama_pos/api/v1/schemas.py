"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from majubersama_pos.domain.models import PRODUCT_TYPES

ProductType = Literal[PRODUCT_TYPES]  # type: ignore[valid-type]
PriceType = Literal["retail", "wholesale"]
PaymentType = Literal["cash", "debt"]


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------- products


class ProductBase(BaseModel):
    barcode: Optional[str] = Field(None, max_length=64)
    name: str = Field(..., min_length=1)
    type: ProductType = "lainnya"
    active_ingredient: str = ""
    target_pests: List[str] = Field(default_factory=list)
    unit: str = Field("Kilogram", min_length=1)
    min_stock: float = Field(0.0, ge=0)
    cost_price: int = Field(0, ge=0)
    retail_price: int = Field(0, ge=0)
    wholesale_price: int = Field(0, ge=0)
    wholesale_min_qty: float = Field(0.0, ge=0)


class ProductCreate(ProductBase):
    """Request body for POST /v1/products"""

    stock: float = Field(0.0, ge=0)


class ProductUpdate(ProductBase):
    """Request body for PUT /v1/products/{id}; stock changes go through PATCH .../stock"""


class StockAdjustment(BaseModel):
    delta: float = Field(..., description="Quantity to add (positive) or remove (negative)")


class ProductResponse(ORMModel):
    id: int
    barcode: Optional[str]
    name: str
    type: str
    active_ingredient: str
    target_pests: List[str]
    unit: str
    stock: float
    min_stock: float
    cost_price: int
    retail_price: int
    wholesale_price: int
    wholesale_min_qty: float
    created_at: datetime
    updated_at: datetime


# --------------------------------------------------------------- customers


class CustomerBase(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = ""
    village: str = ""
    farmer_group: str = ""
    address: str = ""
    harvest_date: str = ""
    debt_limit: int = Field(0, ge=0, description="0 means no ceiling")


class CustomerCreate(CustomerBase):
    """Request body for POST /v1/customers; current debt always starts at 0"""


class CustomerUpdate(CustomerBase):
    """Request body for PUT /v1/customers/{id}; current debt is not writable"""


class CustomerResponse(ORMModel):
    id: int
    name: str
    phone: str
    village: str
    farmer_group: str
    address: str
    harvest_date: str
    debt_limit: int
    current_debt: int
    created_at: datetime
    updated_at: datetime


class CustomerBalanceResponse(BaseModel):
    customer_id: int
    current_debt: int
    debt_limit: int
    outstanding_from_records: int
    available_credit: Optional[int]
    at_limit: bool


# ------------------------------------------------------------------- debts


class DebtCreate(BaseModel):
    """Request body for POST /v1/debts"""

    customer_id: int
    amount: int = Field(..., gt=0, description="Principal in rupiah")
    due_date: Optional[date] = None
    transaction_id: Optional[int] = None
    note: str = ""


class PaymentCreate(BaseModel):
    """Request body for POST /v1/debts/{id}/payments and /v1/purchases/{id}/payments"""

    amount: int = Field(..., gt=0, description="Amount in rupiah")
    note: str = ""


class DebtPaymentResponse(ORMModel):
    id: int
    amount: int
    paid_at: datetime
    note: str


class DebtResponse(ORMModel):
    id: int
    transaction_id: Optional[int]
    customer_id: int
    amount: int
    paid_amount: int
    remaining_amount: int
    status: str
    due_date: Optional[date]
    note: str
    payments: List[DebtPaymentResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class OverdueDebtResponse(DebtResponse):
    customer_name: str
    village: str
    days_overdue: int


class VillageDebtResponse(BaseModel):
    village: str
    outstanding: int
    debt_count: int
    customer_count: int


# ------------------------------------------------------------------- sales


class CartLineSchema(BaseModel):
    product_id: int
    quantity: float = Field(..., gt=0)
    price_type: PriceType = "retail"


class CheckoutRequestSchema(BaseModel):
    """Request body for POST /v1/checkout"""

    customer_id: Optional[int] = None
    lines: List[CartLineSchema] = Field(..., min_length=1)
    discount: int = Field(0, ge=0)
    payment_type: PaymentType = "cash"
    amount_paid: int = Field(0, ge=0, description="Cash tendered, or down payment for credit sales")
    due_date: Optional[date] = None
    notes: str = ""


class SaleItemResponse(ORMModel):
    product_id: Optional[int]
    product_name: str
    quantity: float
    unit: str
    price_type: str
    unit_price: int
    subtotal: int


class SaleResponse(ORMModel):
    id: int
    customer_id: Optional[int]
    customer_name: str
    items: List[SaleItemResponse]
    subtotal: int
    discount: int
    total: int
    payment_type: str
    amount_paid: int
    change: int
    due_date: Optional[date]
    notes: str
    created_at: datetime


class CheckoutResponse(BaseModel):
    sale: SaleResponse
    debt_id: Optional[int] = None
    warnings: List[str] = Field(default_factory=list)


# -------------------------------------------------------------- purchasing


class SupplierBase(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = ""
    address: str = ""


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(SupplierBase):
    pass


class SupplierResponse(ORMModel):
    id: int
    name: str
    phone: str
    address: str
    debt: int
    created_at: datetime


class PurchaseLineSchema(BaseModel):
    product_id: int
    quantity: float = Field(..., gt=0)
    unit_cost: int = Field(..., ge=0)


class PurchaseCreate(BaseModel):
    """Request body for POST /v1/purchases"""

    supplier_id: int
    items: List[PurchaseLineSchema] = Field(..., min_length=1)
    amount_paid: int = Field(0, ge=0)
    due_date: Optional[date] = None
    notes: str = ""


class PurchaseItemResponse(BaseModel):
    product_id: int
    product_name: str
    quantity: float
    unit_cost: int
    subtotal: int


class PurchaseResponse(ORMModel):
    id: int
    supplier_id: int
    supplier_name: str
    items: List[PurchaseItemResponse]
    total: int
    amount_paid: int
    status: str
    due_date: Optional[date]
    notes: str
    created_at: datetime


# ----------------------------------------------------------------- reports


class DashboardResponse(BaseModel):
    total_products: int
    low_stock_products: int
    today_transactions: int
    today_revenue: int
    total_debt: int
    overdue_debts: int


class DailySalesSchema(BaseModel):
    day: date
    transaction_count: int
    revenue: int


class SalesSummaryResponse(BaseModel):
    start: date
    end: date
    transaction_count: int
    revenue: int
    cash_revenue: int
    credit_revenue: int
    discount_total: int
    gross_profit: int
    daily: List[DailySalesSchema]


class LedgerEntryResponse(ORMModel):
    id: int
    date: datetime
    type: str
    entity_type: str
    entity_id: int
    entity_name: str
    amount: int
    reference_id: Optional[int]
    note: str


# -------------------------------------------------------------------- auth


class LoginRequest(BaseModel):
    pin: str = Field(..., min_length=1, max_length=32)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ChangePinRequest(BaseModel):
    current_pin: str = Field(..., min_length=1, max_length=32)
    new_pin: str = Field(..., description="Four digits")


# ------------------------------------------------------------------ backup


class BackupSaleItem(SaleItemResponse):
    cost_price: int = 0


class BackupSale(SaleResponse):
    items: List[BackupSaleItem]


class StoreSnapshot(BaseModel):
    """Whole-store export; also the request body for POST /v1/restore"""

    format_version: Literal[1] = 1
    store_name: str = ""
    exported_at: Optional[datetime] = None
    products: List[ProductResponse] = Field(default_factory=list)
    customers: List[CustomerResponse] = Field(default_factory=list)
    debts: List[DebtResponse] = Field(default_factory=list)
    suppliers: List[SupplierResponse] = Field(default_factory=list)
    purchases: List[PurchaseResponse] = Field(default_factory=list)
    transactions: List[BackupSale] = Field(default_factory=list)
    ledger_entries: List[LedgerEntryResponse] = Field(default_factory=list)


class RestoreResponse(BaseModel):
    products: int
    customers: int
    debts: int
    suppliers: int
    purchases: int
    transactions: int
    ledger_entries: int
