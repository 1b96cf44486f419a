from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_notifications_service, get_request_context
from app.schemas.common import ApiResponse
from app.schemas.notification import NotificationInbox, NotificationRead
from app.services.context import RequestContext
from app.services.response import ok

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=ApiResponse[NotificationInbox])
def list_notifications(
    is_read: bool | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_notifications_service),
):
    return ok(service.list_for_person(db, ctx.actor_id, is_read=is_read, limit=limit))


@router.post("/{notification_id}/read", response_model=ApiResponse[NotificationRead])
def mark_notification_read(
    notification_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_notifications_service),
):
    return ok(service.mark_read(db, ctx.actor_id, notification_id), "Notification marked as read")


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_notifications_service),
):
    service.delete(db, ctx.actor_id, notification_id)
    return ok(message="Notification deleted successfully")
