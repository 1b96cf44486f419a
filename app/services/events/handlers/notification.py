"""Notification handler for the event system.

Queues in-app notifications for the requester of a material request when
its approval or allocation state changes.
"""

import logging

from sqlalchemy.orm import Session

from app.models.notification import NotificationType
from app.services.events.types import Event, EventType
from app.services.notifications import notifications

logger = logging.getLogger(__name__)


# Event type -> (notification type, title, message template)
EVENT_TYPE_TO_NOTIFICATION = {
    EventType.material_request_approved: (
        NotificationType.success,
        "Material request approved",
        "Material request {number} has been approved.",
    ),
    EventType.material_request_rejected: (
        NotificationType.alert,
        "Material request rejected",
        "Material request {number} has been rejected.",
    ),
    EventType.material_allocated: (
        NotificationType.info,
        "Stock allocated",
        "{count} item(s) allocated to material request {number}.",
    ),
    EventType.allocation_cancelled: (
        NotificationType.warning,
        "Allocation cancelled",
        "An allocation on material request {number} was cancelled.",
    ),
}


class NotificationHandler:
    """Handler that notifies requesters about their material requests."""

    def handle(self, db: Session, event: Event) -> None:
        entry = EVENT_TYPE_TO_NOTIFICATION.get(event.event_type)
        if entry is None:
            return

        recipient = event.payload.get("requested_by_person_id")
        if not recipient:
            logger.debug("Cannot determine recipient for event %s", event.event_type.value)
            return

        notification_type, title, template = entry
        message = template.format(
            number=event.payload.get("number") or event.payload.get("material_request_id") or event.entity_id,
            count=event.payload.get("count", 0),
        )
        remarks = event.payload.get("remarks")
        if remarks and event.event_type == EventType.material_request_rejected:
            message = f"{message} Reason: {remarks}"

        notifications.create(
            db,
            person_id=recipient,
            type=notification_type,
            message=message,
            title=title,
            entity_type="MaterialRequest",
            entity_id=event.payload.get("material_request_id") or event.entity_id,
        )
        logger.info(
            "Queued notification for event %s to %s", event.event_type.value, recipient
        )
