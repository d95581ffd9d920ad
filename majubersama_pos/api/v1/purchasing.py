"""/v1/suppliers and /v1/purchases - restocking and supplier payables"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from majubersama_pos.api.dependencies import get_entity_locks, get_purchasing_service
from majubersama_pos.api.v1.schemas import (
    PaymentCreate,
    PurchaseCreate,
    PurchaseResponse,
    SupplierCreate,
    SupplierResponse,
    SupplierUpdate,
)
from majubersama_pos.domain.exceptions import ConflictError, NotFoundError
from majubersama_pos.infrastructure.database.models import Supplier
from majubersama_pos.infrastructure.database.repositories import SupplierRepository
from majubersama_pos.infrastructure.database.session import get_db
from majubersama_pos.services.locks import EntityLocks, supplier_key, unit_of_work
from majubersama_pos.services.purchasing import PurchaseLine, PurchasingService

router = APIRouter()


def _get_or_404(repo: SupplierRepository, supplier_id: int, for_update: bool = False) -> Supplier:
    supplier = repo.get(supplier_id, for_update=for_update)
    if supplier is None:
        raise NotFoundError(f"Supplier {supplier_id} not found", details={"supplier_id": supplier_id})
    return supplier


@router.get("/suppliers", response_model=List[SupplierResponse])
def list_suppliers(db: Session = Depends(get_db)):
    return SupplierRepository(db).list()


@router.get("/suppliers/{supplier_id}", response_model=SupplierResponse)
def get_supplier(supplier_id: int, db: Session = Depends(get_db)):
    return _get_or_404(SupplierRepository(db), supplier_id)


@router.post("/suppliers", response_model=SupplierResponse, status_code=201)
def create_supplier(body: SupplierCreate, db: Session = Depends(get_db)):
    supplier = SupplierRepository(db).add(Supplier(**body.model_dump(), debt=0))
    db.commit()
    db.refresh(supplier)
    return supplier


@router.put("/suppliers/{supplier_id}", response_model=SupplierResponse)
def update_supplier(
    supplier_id: int,
    body: SupplierUpdate,
    db: Session = Depends(get_db),
    locks: EntityLocks = Depends(get_entity_locks),
):
    repo = SupplierRepository(db)
    with unit_of_work(db, locks, supplier_key(supplier_id)):
        supplier = _get_or_404(repo, supplier_id, for_update=True)
        for field, value in body.model_dump().items():
            setattr(supplier, field, value)
    db.refresh(supplier)
    return supplier


@router.delete("/suppliers/{supplier_id}", status_code=204)
def delete_supplier(
    supplier_id: int,
    db: Session = Depends(get_db),
    locks: EntityLocks = Depends(get_entity_locks),
):
    repo = SupplierRepository(db)
    with unit_of_work(db, locks, supplier_key(supplier_id)):
        supplier = _get_or_404(repo, supplier_id, for_update=True)
        if repo.count_purchases(supplier_id):
            raise ConflictError(
                f"Supplier {supplier.name} has purchases and cannot be deleted",
                error_code="SUPPLIER_HAS_PURCHASES",
            )
        repo.delete(supplier)
    return Response(status_code=204)


@router.get("/purchases", response_model=List[PurchaseResponse])
def list_purchases(supplier_id: Optional[int] = Query(None), db: Session = Depends(get_db)):
    return SupplierRepository(db).purchases(supplier_id=supplier_id)


@router.post("/purchases", response_model=PurchaseResponse, status_code=201)
def create_purchase(body: PurchaseCreate, service: PurchasingService = Depends(get_purchasing_service)):
    """Adds the goods to stock, updates cost prices and books any unpaid part as payable"""
    return service.create_purchase(
        body.supplier_id,
        [PurchaseLine(item.product_id, item.quantity, item.unit_cost) for item in body.items],
        amount_paid=body.amount_paid,
        due_date=body.due_date,
        notes=body.notes,
    )


@router.get("/purchases/{purchase_id}", response_model=PurchaseResponse)
def get_purchase(purchase_id: int, db: Session = Depends(get_db)):
    purchase = SupplierRepository(db).get_purchase(purchase_id)
    if purchase is None:
        raise NotFoundError(f"Purchase {purchase_id} not found", details={"purchase_id": purchase_id})
    return purchase


@router.post("/purchases/{purchase_id}/payments", response_model=PurchaseResponse)
def pay_purchase(
    purchase_id: int,
    body: PaymentCreate,
    service: PurchasingService = Depends(get_purchasing_service),
):
    return service.pay_purchase(purchase_id, body.amount, note=body.note)
