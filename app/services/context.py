"""Explicit per-request caller context passed into every service call."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy.orm import Query


@dataclass(frozen=True)
class RequestContext:
    actor_id: uuid.UUID | None = None
    org_id: uuid.UUID | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    def scope(self, query: Query, model) -> Query:
        """Restrict ``query`` to the caller's organization when one is known."""
        if self.org_id is None:
            return query
        org_column = getattr(model, "org_id", None)
        if org_column is None:
            return query
        return query.filter(org_column == self.org_id)

