from datetime import datetime

from sqlalchemy.orm import Session

from app.models.audit import AuditAction, AuditLog
from app.services.common import coerce_uuid, validate_enum
from app.services.response import Page, paginate


class AuditLogs:
    @staticmethod
    def create(
        db: Session,
        entity_type: str,
        entity_id: str,
        action: AuditAction,
        user_id=None,
        changes: dict | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuditLog:
        log = AuditLog(
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
            user_id=coerce_uuid(user_id, "user_id") if user_id else None,
            changes=changes,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        db.add(log)
        db.flush()
        return log

    @staticmethod
    def list(
        db: Session,
        entity_type: str | None = None,
        entity_id: str | None = None,
        user_id: str | None = None,
        action: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int | None = 1,
        limit: int | None = None,
    ) -> Page:
        query = db.query(AuditLog)
        if entity_type:
            query = query.filter(AuditLog.entity_type == entity_type)
        if entity_id:
            query = query.filter(AuditLog.entity_id == entity_id)
        if user_id:
            query = query.filter(AuditLog.user_id == coerce_uuid(user_id, "user_id"))
        if action:
            query = query.filter(AuditLog.action == validate_enum(action, AuditAction, "action"))
        if start:
            query = query.filter(AuditLog.occurred_at >= start)
        if end:
            query = query.filter(AuditLog.occurred_at <= end)
        query = query.order_by(AuditLog.occurred_at.desc())
        return paginate(query, page, limit)

    @staticmethod
    def entity_history(
        db: Session, entity_type: str, entity_id: str, page: int | None = 1, limit: int | None = None
    ) -> Page:
        return AuditLogs.list(db, entity_type=entity_type, entity_id=entity_id, page=page, limit=limit)


audit_logs = AuditLogs()
