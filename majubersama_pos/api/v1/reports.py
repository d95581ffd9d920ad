"""/v1/reports and /v1/ledger - read-only views for the owner"""

from dataclasses import asdict
from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from majubersama_pos.api.dependencies import get_report_service
from majubersama_pos.api.v1.schemas import DashboardResponse, LedgerEntryResponse, SalesSummaryResponse
from majubersama_pos.infrastructure.database.repositories import LedgerEntryRepository
from majubersama_pos.infrastructure.database.session import get_db
from majubersama_pos.services.reports import ReportService
from majubersama_pos.utils.date_utils import today

router = APIRouter()


@router.get("/reports/dashboard", response_model=DashboardResponse)
def dashboard(service: ReportService = Depends(get_report_service)):
    return DashboardResponse(**asdict(service.dashboard()))


@router.get("/reports/sales", response_model=SalesSummaryResponse)
def sales_summary(
    start: Optional[date] = Query(None, description="Defaults to today"),
    end: Optional[date] = Query(None, description="Defaults to start"),
    service: ReportService = Depends(get_report_service),
):
    start = start or today()
    end = end or start
    return SalesSummaryResponse(**asdict(service.sales_summary(start, end)))


@router.get("/ledger", response_model=List[LedgerEntryResponse])
def ledger_journal(
    entity_type: Optional[Literal["customer", "supplier"]] = Query(None),
    entity_id: Optional[int] = Query(None),
    entry_type: Optional[List[str]] = Query(None, alias="type"),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """Debt and payable journal (piutang, bayar_piutang, hutang, bayar_hutang), newest first"""
    return LedgerEntryRepository(db).list(
        entity_type=entity_type,
        entity_id=entity_id,
        entry_types=entry_type,
        limit=limit,
    )
