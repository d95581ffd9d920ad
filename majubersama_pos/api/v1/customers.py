"""/v1/customers - customer records and their debt position"""

from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from majubersama_pos.api.dependencies import get_entity_locks, get_ledger
from majubersama_pos.api.v1.schemas import (
    CustomerBalanceResponse,
    CustomerCreate,
    CustomerResponse,
    CustomerUpdate,
    DebtResponse,
)
from majubersama_pos.domain.exceptions import ConflictError, NotFoundError
from majubersama_pos.infrastructure.database.models import Customer
from majubersama_pos.infrastructure.database.repositories import CustomerRepository, DebtRepository
from majubersama_pos.infrastructure.database.session import get_db
from majubersama_pos.services.ledger_account import LedgerAccount
from majubersama_pos.services.locks import EntityLocks, customer_key, unit_of_work

router = APIRouter()


def _get_or_404(repo: CustomerRepository, customer_id: int, for_update: bool = False) -> Customer:
    customer = repo.get(customer_id, for_update=for_update)
    if customer is None:
        raise NotFoundError(f"Customer {customer_id} not found", details={"customer_id": customer_id})
    return customer


@router.get("/customers", response_model=List[CustomerResponse])
def list_customers(
    village: Optional[str] = Query(None),
    q: Optional[str] = Query(None, description="Name contains"),
    db: Session = Depends(get_db),
):
    return CustomerRepository(db).list(village=village, name=q)


@router.get("/customers/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    return _get_or_404(CustomerRepository(db), customer_id)


@router.post("/customers", response_model=CustomerResponse, status_code=201)
def create_customer(body: CustomerCreate, db: Session = Depends(get_db)):
    customer = CustomerRepository(db).add(Customer(**body.model_dump(), current_debt=0))
    db.commit()
    db.refresh(customer)
    return customer


@router.put("/customers/{customer_id}", response_model=CustomerResponse)
def update_customer(
    customer_id: int,
    body: CustomerUpdate,
    db: Session = Depends(get_db),
    locks: EntityLocks = Depends(get_entity_locks),
):
    """Profile fields and debt limit; current debt stays owned by the ledger"""
    repo = CustomerRepository(db)
    with unit_of_work(db, locks, customer_key(customer_id)):
        customer = _get_or_404(repo, customer_id, for_update=True)
        for field, value in body.model_dump().items():
            setattr(customer, field, value)
    db.refresh(customer)
    return customer


@router.delete("/customers/{customer_id}", status_code=204)
def delete_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    locks: EntityLocks = Depends(get_entity_locks),
):
    """Customers with debt history are kept so debt records never lose their owner"""
    repo = CustomerRepository(db)
    with unit_of_work(db, locks, customer_key(customer_id)):
        customer = _get_or_404(repo, customer_id, for_update=True)
        if DebtRepository(db).count_by_customer(customer_id):
            raise ConflictError(
                f"Customer {customer.name} has debt records and cannot be deleted",
                error_code="CUSTOMER_HAS_DEBTS",
            )
        repo.delete(customer)
    return Response(status_code=204)


@router.get("/customers/{customer_id}/debts", response_model=List[DebtResponse])
def list_customer_debts(customer_id: int, ledger: LedgerAccount = Depends(get_ledger)):
    return ledger.list_by_customer(customer_id)


@router.get("/customers/{customer_id}/balance", response_model=CustomerBalanceResponse)
def get_customer_balance(customer_id: int, ledger: LedgerAccount = Depends(get_ledger)):
    return CustomerBalanceResponse(**asdict(ledger.balance(customer_id)))
