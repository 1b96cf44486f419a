from app.services.events.dispatcher import (
    dispatch_pending,
    dispatch_pending_events,
    emit_event,
)
from app.services.events.types import Event, EventType

__all__ = ["Event", "EventType", "dispatch_pending", "dispatch_pending_events", "emit_event"]
