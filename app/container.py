"""Dependency injection container.

Holds the service singletons behind providers, so route handlers resolve
them through ``app.api.deps`` and tests can swap any of them.

Usage:
    from app.container import container

    # In tests
    with container.material_allocations_service.override(FakeAllocations()):
        response = client.post("/api/material-request/<id>/allocate", ...)
"""

from __future__ import annotations

from dependency_injector import containers, providers  # type: ignore[import-not-found]


def _new_session():
    from app.db import SessionLocal
    return SessionLocal()


def _get_material_requests_service():
    from app.services.material_requests import material_requests
    return material_requests


def _get_material_allocations_service():
    from app.services.material_allocations import material_allocations
    return material_allocations


def _get_materials_service():
    from app.services.inventory import materials
    return materials


def _get_stock_areas_service():
    from app.services.inventory import stock_areas
    return stock_areas


def _get_inventory_units_service():
    from app.services.inventory import inventory_units
    return inventory_units


def _get_audit_logs_service():
    from app.services.audit import audit_logs
    return audit_logs


def _get_notifications_service():
    from app.services.notifications import notifications
    return notifications


def _get_event_dispatcher():
    from app.services.events import dispatch_pending_events
    return dispatch_pending_events


class Container(containers.DeclarativeContainer):
    """Application dependency injection container.

    Services are stateless managers, so each provider is a singleton that
    returns the module-level instance.
    """

    # Sessions for work outside a request, such as outbox dispatch
    db_session_factory = providers.Callable(_new_session)

    material_requests_service = providers.Singleton(_get_material_requests_service)
    material_allocations_service = providers.Singleton(_get_material_allocations_service)
    materials_service = providers.Singleton(_get_materials_service)
    stock_areas_service = providers.Singleton(_get_stock_areas_service)
    inventory_units_service = providers.Singleton(_get_inventory_units_service)
    audit_logs_service = providers.Singleton(_get_audit_logs_service)
    notifications_service = providers.Singleton(_get_notifications_service)
    event_dispatcher = providers.Singleton(_get_event_dispatcher)


# Global container instance
container = Container()


def configure_container(db_session_factory) -> Container:
    """Configure the container with runtime dependencies."""
    container.db_session_factory.override(providers.Callable(db_session_factory))
    return container
