"""/v1/backup and /v1/restore - whole-store JSON export"""

from fastapi import APIRouter, Depends

from majubersama_pos.api.dependencies import get_backup_service, require_session
from majubersama_pos.api.v1.schemas import RestoreResponse, StoreSnapshot
from majubersama_pos.config import settings
from majubersama_pos.services.backup import SECTIONS, BackupService
from majubersama_pos.utils.date_utils import now

router = APIRouter(dependencies=[Depends(require_session)])


@router.get("/backup", response_model=StoreSnapshot)
def export_backup(service: BackupService = Depends(get_backup_service)):
    return StoreSnapshot.model_validate(
        {"store_name": settings.store_name, "exported_at": now(), **service.export()},
        from_attributes=True,
    )


@router.post("/restore", response_model=RestoreResponse)
def restore_backup(snapshot: StoreSnapshot, service: BackupService = Depends(get_backup_service)):
    """Replace every product, customer, debt, sale, supplier and purchase with the snapshot"""
    return service.restore(snapshot.model_dump(include=set(SECTIONS)))
