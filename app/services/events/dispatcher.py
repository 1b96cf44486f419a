"""Transactional outbox for workflow side effects.

``emit_event`` stages an ``EventStore`` row on the caller's session, so the
event exists only if the business write commits. ``dispatch_pending`` runs
the handlers afterwards, one event per transaction that also holds the
event's row lock. A failing handler marks its event ``failed`` and never
touches the primary data.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.config import settings
from app.metrics import EVENTS_DISPATCHED
from app.models.event_store import EventStatus, EventStore
from app.services.context import RequestContext
from app.services.events.handlers import AuditHandler, NotificationHandler
from app.services.events.types import Event, EventType
from app.telemetry import get_tracer

logger = logging.getLogger(__name__)

_HANDLERS = [AuditHandler(), NotificationHandler()]


def get_handlers() -> list:
    return list(_HANDLERS)


def emit_event(
    db: Session,
    ctx: RequestContext,
    event_type: EventType,
    entity_type: str,
    entity_id,
    payload: dict[str, Any] | None = None,
) -> EventStore:
    data = dict(payload or {})
    data["_request"] = {"ip_address": ctx.ip_address, "user_agent": ctx.user_agent}
    record = EventStore(
        event_type=event_type.value,
        entity_type=entity_type,
        entity_id=str(entity_id),
        actor_id=ctx.actor_id,
        org_id=ctx.org_id,
        payload=data,
        status=EventStatus.pending,
    )
    db.add(record)
    return record


def _claimable(db: Session, seen: set):
    query = db.query(EventStore).filter(
        or_(
            EventStore.status == EventStatus.pending,
            (EventStore.status == EventStatus.failed) & (EventStore.retry_count < settings.event_max_retries),
        )
    )
    if seen:
        query = query.filter(EventStore.id.notin_(seen))
    return query.order_by(EventStore.created_at.asc()).limit(1).with_for_update(skip_locked=True)


def _mark_failed(db: Session, event_id, exc: Exception) -> None:
    failed = (
        db.query(EventStore)
        .filter(EventStore.id == event_id, EventStore.status != EventStatus.processed)
        .with_for_update(skip_locked=True)
        .first()
    )
    if failed is None:
        return
    failed.status = EventStatus.failed
    failed.retry_count = (failed.retry_count or 0) + 1
    failed.last_error = str(exc)[:2000]
    db.commit()


def dispatch_pending(db: Session, limit: int | None = None, handlers: list | None = None) -> dict[str, int]:
    """Run handlers for pending and retryable events; returns outcome counts.

    Each event is claimed with ``FOR UPDATE SKIP LOCKED`` and the row lock is
    held until its handlers and status update commit, so concurrent
    dispatchers never deliver the same event twice.
    """
    active_handlers = handlers if handlers is not None else get_handlers()
    batch_size = limit or settings.event_dispatch_batch_size
    results = {"processed": 0, "failed": 0}
    seen: set = set()

    with get_tracer().start_as_current_span("events.dispatch_pending"):
        while len(seen) < batch_size:
            record = _claimable(db, seen).first()
            if record is None:
                break
            event_id = record.id
            seen.add(event_id)
            try:
                event = Event.from_record(record)
                for handler in active_handlers:
                    handler.handle(db, event)
                record.status = EventStatus.processed
                record.processed_at = datetime.now(UTC)
                record.last_error = None
                db.commit()
                results["processed"] += 1
                EVENTS_DISPATCHED.labels(status="processed").inc()
            except Exception as exc:
                db.rollback()
                logger.exception("event_dispatch_failed event_id=%s", event_id)
                _mark_failed(db, event_id, exc)
                results["failed"] += 1
                EVENTS_DISPATCHED.labels(status="failed").inc()

    if seen:
        logger.info(
            "event_dispatch_complete processed=%s failed=%s", results["processed"], results["failed"]
        )
    return results


def dispatch_pending_events() -> dict[str, int]:
    """Drain the outbox with a dedicated session (background tasks, cron)."""
    from app.container import container

    db = container.db_session_factory()
    try:
        return dispatch_pending(db)
    finally:
        db.close()
