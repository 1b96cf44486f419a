from fastapi import Header, Request

from app.db import get_db
from app.services.common import coerce_uuid
from app.services.context import RequestContext

__all__ = [
    "get_db",
    "get_request_context",
    "get_material_requests_service",
    "get_material_allocations_service",
    "get_materials_service",
    "get_stock_areas_service",
    "get_inventory_units_service",
    "get_audit_logs_service",
    "get_notifications_service",
    "get_event_dispatcher",
]


def get_request_context(
    request: Request,
    x_actor_id: str | None = Header(default=None),
    x_org_id: str | None = Header(default=None),
) -> RequestContext:
    """Build the caller context once per request.

    Identity arrives from the upstream gateway in ``X-Actor-Id`` and
    ``X-Org-Id``; malformed values are rejected as validation errors.
    """
    return RequestContext(
        actor_id=coerce_uuid(x_actor_id, "X-Actor-Id") if x_actor_id else None,
        org_id=coerce_uuid(x_org_id, "X-Org-Id") if x_org_id else None,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


# -------------------------------------------------------------------------
# Container-based Dependencies
# -------------------------------------------------------------------------
# These provide services from the DI container for use in route handlers.
# They can be easily mocked in tests by overriding the container providers.


def get_material_requests_service():
    """Get material request service from container."""
    from app.container import container
    return container.material_requests_service()


def get_material_allocations_service():
    """Get allocation engine from container."""
    from app.container import container
    return container.material_allocations_service()


def get_materials_service():
    from app.container import container
    return container.materials_service()


def get_stock_areas_service():
    from app.container import container
    return container.stock_areas_service()


def get_inventory_units_service():
    from app.container import container
    return container.inventory_units_service()


def get_audit_logs_service():
    from app.container import container
    return container.audit_logs_service()


def get_notifications_service():
    from app.container import container
    return container.notifications_service()


def get_event_dispatcher():
    """Get the outbox drain callable scheduled after mutating requests."""
    from app.container import container
    return container.event_dispatcher()
