from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.audit import AuditAction


class AuditLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    entity_type: str
    entity_id: str
    action: AuditAction
    user_id: UUID | None = None
    changes: dict | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    occurred_at: datetime
