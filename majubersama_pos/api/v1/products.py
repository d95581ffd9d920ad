"""/v1/products - catalog management"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from majubersama_pos.api.dependencies import get_entity_locks
from majubersama_pos.api.v1.schemas import ProductCreate, ProductResponse, ProductUpdate, StockAdjustment
from majubersama_pos.domain.exceptions import ConflictError, InsufficientStockError, NotFoundError
from majubersama_pos.infrastructure.database.models import Product
from majubersama_pos.infrastructure.database.repositories import ProductRepository
from majubersama_pos.infrastructure.database.session import get_db
from majubersama_pos.services.locks import EntityLocks, product_key, unit_of_work

router = APIRouter()


def _get_or_404(repo: ProductRepository, product_id: int, for_update: bool = False) -> Product:
    product = repo.get(product_id, for_update=for_update)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found", details={"product_id": product_id})
    return product


def _ensure_barcode_free(repo: ProductRepository, barcode: Optional[str], product_id: Optional[int] = None) -> None:
    if not barcode:
        return
    existing = repo.get_by_barcode(barcode)
    if existing is not None and existing.id != product_id:
        raise ConflictError(f"Barcode {barcode} already used by {existing.name}", error_code="DUPLICATE_BARCODE")


@router.get("/products", response_model=List[ProductResponse])
def list_products(
    product_type: Optional[str] = Query(None, alias="type", description="Product type filter"),
    db: Session = Depends(get_db),
):
    return ProductRepository(db).list(product_type=product_type)


@router.get("/products/search", response_model=List[ProductResponse])
def search_products(q: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    """Match name, active ingredient, target pest, or exact barcode"""
    return ProductRepository(db).search(q)


@router.get("/products/low-stock", response_model=List[ProductResponse])
def low_stock_products(db: Session = Depends(get_db)):
    return ProductRepository(db).low_stock()


@router.get("/products/barcode/{barcode}", response_model=ProductResponse)
def get_product_by_barcode(barcode: str, db: Session = Depends(get_db)):
    product = ProductRepository(db).get_by_barcode(barcode)
    if product is None:
        raise NotFoundError(f"No product with barcode {barcode}", details={"barcode": barcode})
    return product


@router.get("/products/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return _get_or_404(ProductRepository(db), product_id)


@router.post("/products", response_model=ProductResponse, status_code=201)
def create_product(body: ProductCreate, db: Session = Depends(get_db)):
    repo = ProductRepository(db)
    barcode = body.barcode or None
    _ensure_barcode_free(repo, barcode)
    try:
        product = repo.add(Product(**body.model_dump(exclude={"barcode"}), barcode=barcode))
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"Barcode {barcode} already in use", error_code="DUPLICATE_BARCODE")
    db.refresh(product)
    return product


@router.put("/products/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    body: ProductUpdate,
    db: Session = Depends(get_db),
    locks: EntityLocks = Depends(get_entity_locks),
):
    repo = ProductRepository(db)
    barcode = body.barcode or None
    try:
        with unit_of_work(db, locks, product_key(product_id)):
            product = _get_or_404(repo, product_id, for_update=True)
            _ensure_barcode_free(repo, barcode, product_id)
            for field, value in body.model_dump(exclude={"barcode"}).items():
                setattr(product, field, value)
            product.barcode = barcode
    except IntegrityError:
        raise ConflictError(f"Barcode {barcode} already in use", error_code="DUPLICATE_BARCODE")
    db.refresh(product)
    return product


@router.patch("/products/{product_id}/stock", response_model=ProductResponse)
def adjust_stock(
    product_id: int,
    body: StockAdjustment,
    db: Session = Depends(get_db),
    locks: EntityLocks = Depends(get_entity_locks),
):
    """Manual stock correction (stock opname, damaged goods, ...)"""
    repo = ProductRepository(db)
    with unit_of_work(db, locks, product_key(product_id)):
        product = _get_or_404(repo, product_id, for_update=True)
        new_stock = product.stock + body.delta
        if new_stock < 0:
            raise InsufficientStockError(
                f"Cannot remove {-body.delta:g} {product.unit}, only {product.stock:g} in stock",
                details={"product_id": product_id, "available": product.stock},
            )
        product.stock = new_stock
    db.refresh(product)
    return product


@router.delete("/products/{product_id}", status_code=204)
def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    locks: EntityLocks = Depends(get_entity_locks),
):
    """Past sale items keep their product name snapshot"""
    repo = ProductRepository(db)
    with unit_of_work(db, locks, product_key(product_id)):
        repo.delete(_get_or_404(repo, product_id, for_update=True))
    return Response(status_code=204)
