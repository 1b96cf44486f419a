"""Event handlers module.

Provides handlers for processing events:
- AuditHandler: Writes audit log entries
- NotificationHandler: Queues in-app notifications for requesters
"""

from app.services.events.handlers.audit import AuditHandler
from app.services.events.handlers.notification import NotificationHandler

__all__ = ["AuditHandler", "NotificationHandler"]
