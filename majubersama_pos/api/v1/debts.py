"""/v1/debts - customer debt (piutang) ledger"""

from dataclasses import asdict
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from majubersama_pos.api.dependencies import get_ledger
from majubersama_pos.api.v1.schemas import (
    DebtCreate,
    DebtResponse,
    OverdueDebtResponse,
    PaymentCreate,
    VillageDebtResponse,
)
from majubersama_pos.services.ledger_account import LedgerAccount
from majubersama_pos.utils.date_utils import today

router = APIRouter()


@router.post("/debts", response_model=DebtResponse, status_code=201)
def record_debt(body: DebtCreate, ledger: LedgerAccount = Depends(get_ledger)):
    """
    Record a debt outside checkout (e.g. opening balance carried over from
    the paper book). Limit enforcement applies as for credit sales.
    """
    return ledger.record_debt(
        body.customer_id,
        body.amount,
        due_date=body.due_date,
        transaction_id=body.transaction_id,
        note=body.note,
    )


@router.get("/debts/overdue", response_model=List[OverdueDebtResponse])
def list_overdue_debts(
    as_of: Optional[date] = Query(None, description="Defaults to today"),
    ledger: LedgerAccount = Depends(get_ledger),
):
    as_of = as_of or today()
    return [
        OverdueDebtResponse(
            **DebtResponse.model_validate(debt).model_dump(),
            customer_name=debt.customer.name,
            village=debt.customer.village,
            days_overdue=(as_of - debt.due_date).days,
        )
        for debt in ledger.list_overdue(as_of)
    ]


@router.get("/debts/villages", response_model=List[VillageDebtResponse])
def debts_by_village(ledger: LedgerAccount = Depends(get_ledger)):
    """Outstanding debt per village for the dashboard"""
    return [VillageDebtResponse(**asdict(v)) for v in ledger.aggregate_by_village()]


@router.get("/debts/{debt_id}", response_model=DebtResponse)
def get_debt(debt_id: int, ledger: LedgerAccount = Depends(get_ledger)):
    return ledger.get_debt(debt_id)


@router.post("/debts/{debt_id}/payments", response_model=DebtResponse)
def apply_payment(debt_id: int, body: PaymentCreate, ledger: LedgerAccount = Depends(get_ledger)):
    return ledger.apply_payment(debt_id, body.amount, note=body.note)
