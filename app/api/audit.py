from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_audit_logs_service, get_db
from app.schemas.audit import AuditLogRead
from app.schemas.common import ListResponse
from app.services.response import list_response

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get("", response_model=ListResponse[AuditLogRead])
def list_audit_logs(
    entity_type: str | None = None,
    entity_id: str | None = None,
    user_id: str | None = None,
    action: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    service=Depends(get_audit_logs_service),
):
    result = service.list(
        db,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        action=action,
        start=start,
        end=end,
        page=page,
        limit=limit,
    )
    return list_response(result)


@router.get("/{entity_type}/{entity_id}", response_model=ListResponse[AuditLogRead])
def entity_history(
    entity_type: str,
    entity_id: str,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    service=Depends(get_audit_logs_service),
):
    return list_response(service.entity_history(db, entity_type, entity_id, page=page, limit=limit))
