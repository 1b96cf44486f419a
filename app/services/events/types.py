"""Event types emitted by the warehouse workflow."""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.models.event_store import EventStore


class EventType(enum.Enum):
    material_request_created = "material_request.created"
    material_request_updated = "material_request.updated"
    material_request_submitted = "material_request.submitted"
    material_request_approved = "material_request.approved"
    material_request_rejected = "material_request.rejected"
    material_request_deleted = "material_request.deleted"
    material_allocated = "material_request.allocated"
    allocation_cancelled = "material_allocation.cancelled"


@dataclass
class Event:
    event_type: EventType
    entity_type: str
    entity_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    actor_id: uuid.UUID | None = None
    org_id: uuid.UUID | None = None
    id: uuid.UUID | None = None

    @property
    def request_meta(self) -> dict[str, Any]:
        return self.payload.get("_request") or {}

    @classmethod
    def from_record(cls, record: EventStore) -> Event:
        return cls(
            event_type=EventType(record.event_type),
            entity_type=record.entity_type,
            entity_id=record.entity_id,
            payload=dict(record.payload or {}),
            actor_id=record.actor_id,
            org_id=record.org_id,
            id=record.id,
        )
