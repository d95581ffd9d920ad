"""Dependency injection for FastAPI endpoints"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from majubersama_pos.domain.exceptions import AuthenticationError
from majubersama_pos.infrastructure.database.session import get_db
from majubersama_pos.infrastructure.security import decode_token
from majubersama_pos.services.auth import PinAuth
from majubersama_pos.services.backup import BackupService
from majubersama_pos.services.checkout import CheckoutService
from majubersama_pos.services.ledger_account import LedgerAccount
from majubersama_pos.services.locks import EntityLocks
from majubersama_pos.services.purchasing import PurchasingService
from majubersama_pos.services.reports import ReportService

bearer_scheme = HTTPBearer(auto_error=False)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_entity_locks(request: Request) -> EntityLocks:
    """Lock registry owned by the running application"""
    return request.app.state.entity_locks


def get_ledger(
    request: Request,
    db: Session = Depends(get_db),
    locks: EntityLocks = Depends(get_entity_locks),
) -> LedgerAccount:
    """Provide customer debt ledger bound to the request's session"""
    return LedgerAccount(db, locks, request_id=get_request_id(request))


def get_checkout_service(
    db: Session = Depends(get_db),
    locks: EntityLocks = Depends(get_entity_locks),
    ledger: LedgerAccount = Depends(get_ledger),
) -> CheckoutService:
    return CheckoutService(db, locks, ledger)


def get_purchasing_service(
    db: Session = Depends(get_db),
    locks: EntityLocks = Depends(get_entity_locks),
) -> PurchasingService:
    return PurchasingService(db, locks)


def get_report_service(
    db: Session = Depends(get_db),
    ledger: LedgerAccount = Depends(get_ledger),
) -> ReportService:
    return ReportService(db, ledger)


def require_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    """Bearer token issued by /v1/auth/login"""
    payload = decode_token(credentials.credentials) if credentials else None
    if payload is None:
        raise AuthenticationError("Login required")
    return payload


def get_pin_auth(db: Session = Depends(get_db)) -> PinAuth:
    return PinAuth(db)


def get_backup_service(
    db: Session = Depends(get_db),
    locks: EntityLocks = Depends(get_entity_locks),
) -> BackupService:
    return BackupService(db, locks)
