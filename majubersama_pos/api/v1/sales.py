"""POST /v1/checkout and the transaction history"""

import time
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from majubersama_pos.api.dependencies import get_checkout_service, get_request_id
from majubersama_pos.api.v1.schemas import CheckoutRequestSchema, CheckoutResponse, SaleResponse
from majubersama_pos.domain.exceptions import NotFoundError
from majubersama_pos.domain.models import CartLine
from majubersama_pos.infrastructure.database.repositories import SaleRepository
from majubersama_pos.infrastructure.database.session import get_db
from majubersama_pos.infrastructure.observability.logging import log_sale
from majubersama_pos.services.checkout import CheckoutRequest, CheckoutService

router = APIRouter()


@router.post("/checkout", response_model=CheckoutResponse, status_code=201)
def checkout(
    body: CheckoutRequestSchema,
    request: Request,
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Ring up a cart.

    Flow:
    1. Price lines (retail or wholesale tier) against locked stock
    2. Validate payment (cash must cover the total, credit sales need a customer)
    3. Store the sale, decrement stock
    4. Book the unpaid remainder of a credit sale as customer debt
    """
    start_time = time.time()

    result = service.checkout(
        CheckoutRequest(
            lines=[CartLine(line.product_id, line.quantity, line.price_type) for line in body.lines],
            payment_type=body.payment_type,
            amount_paid=body.amount_paid,
            discount=body.discount,
            customer_id=body.customer_id,
            due_date=body.due_date,
            notes=body.notes,
        )
    )

    duration_ms = (time.time() - start_time) * 1000
    log_sale(
        sale_id=result.sale.id,
        payment_type=result.sale.payment_type,
        total=result.sale.total,
        line_count=len(result.sale.items),
        duration_ms=duration_ms,
        request_id=get_request_id(request),
    )

    return CheckoutResponse(
        sale=SaleResponse.model_validate(result.sale),
        debt_id=result.debt_id,
        warnings=result.warnings,
    )


@router.get("/transactions", response_model=List[SaleResponse])
def list_transactions(
    customer_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Most recent sales first"""
    return SaleRepository(db).recent(limit=limit, customer_id=customer_id)


@router.get("/transactions/{sale_id}", response_model=SaleResponse)
def get_transaction(sale_id: int, db: Session = Depends(get_db)):
    sale = SaleRepository(db).get(sale_id)
    if sale is None:
        raise NotFoundError(f"Transaction {sale_id} not found", details={"sale_id": sale_id})
    return sale
