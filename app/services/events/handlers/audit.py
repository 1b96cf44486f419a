"""Audit handler for the event system.

Writes one audit log row per workflow event.
"""

import logging

from sqlalchemy.orm import Session

from app.models.audit import AuditAction
from app.services.audit import audit_logs
from app.services.events.types import Event, EventType

logger = logging.getLogger(__name__)


EVENT_TYPE_TO_ACTION = {
    EventType.material_request_created: AuditAction.create,
    EventType.material_request_updated: AuditAction.update,
    EventType.material_request_submitted: AuditAction.update,
    EventType.material_request_approved: AuditAction.approve,
    EventType.material_request_rejected: AuditAction.reject,
    EventType.material_request_deleted: AuditAction.delete,
    EventType.material_allocated: AuditAction.allocate,
    EventType.allocation_cancelled: AuditAction.cancel,
}


class AuditHandler:
    """Handler that records audit log entries."""

    def handle(self, db: Session, event: Event) -> None:
        action = EVENT_TYPE_TO_ACTION.get(event.event_type)
        if action is None:
            return
        meta = event.request_meta
        audit_logs.create(
            db,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            action=action,
            user_id=event.actor_id,
            changes=event.payload.get("changes"),
            ip_address=meta.get("ip_address"),
            user_agent=meta.get("user_agent"),
        )
        logger.debug(
            "audit_recorded event_type=%s entity_id=%s", event.event_type.value, event.entity_id
        )
