from datetime import UTC, datetime

from sqlalchemy.orm import Session

from app.errors import NotFoundError, ValidationError
from app.models.notification import Notification, NotificationType
from app.services.common import coerce_uuid


def _require_person(person_id):
    if not person_id:
        raise ValidationError("User ID is required")
    return coerce_uuid(person_id, "person_id")


class Notifications:
    @staticmethod
    def create(
        db: Session,
        person_id,
        type: NotificationType,
        message: str,
        title: str | None = None,
        entity_type: str | None = None,
        entity_id: str | None = None,
    ) -> Notification:
        notification = Notification(
            person_id=coerce_uuid(person_id, "person_id"),
            type=type,
            title=title,
            message=message,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            is_read=False,
        )
        db.add(notification)
        db.flush()
        return notification

    @staticmethod
    def list_for_person(db: Session, person_id, is_read: bool | None = None, limit: int = 50) -> dict:
        person_uuid = _require_person(person_id)
        query = db.query(Notification).filter(Notification.person_id == person_uuid)
        if is_read is not None:
            query = query.filter(Notification.is_read.is_(is_read))
        notifications = query.order_by(Notification.created_at.desc()).limit(limit).all()
        unread_count = (
            db.query(Notification)
            .filter(Notification.person_id == person_uuid)
            .filter(Notification.is_read.is_(False))
            .count()
        )
        return {"notifications": notifications, "unread_count": unread_count}

    @staticmethod
    def _get_owned(db: Session, person_id, notification_id) -> Notification:
        person_uuid = _require_person(person_id)
        try:
            notification_uuid = coerce_uuid(notification_id)
        except ValidationError:
            raise NotFoundError("Notification not found") from None
        notification = (
            db.query(Notification)
            .filter(Notification.id == notification_uuid)
            .filter(Notification.person_id == person_uuid)
            .first()
        )
        if not notification:
            raise NotFoundError("Notification not found")
        return notification

    @staticmethod
    def mark_read(db: Session, person_id, notification_id) -> Notification:
        notification = Notifications._get_owned(db, person_id, notification_id)
        notification.is_read = True
        notification.read_at = datetime.now(UTC)
        db.commit()
        db.refresh(notification)
        return notification

    @staticmethod
    def delete(db: Session, person_id, notification_id) -> None:
        notification = Notifications._get_owned(db, person_id, notification_id)
        db.delete(notification)
        db.commit()


notifications = Notifications()
