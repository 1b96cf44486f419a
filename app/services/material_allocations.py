"""Allocation engine: binds serialized inventory units to approved request items.

Every mutating operation runs in a single transaction. A batch either commits
in full or leaves no trace, and the number of active allocations on an item
never exceeds its requested quantity.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.config import settings
from app.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from app.metrics import ALLOCATION_BATCH_SECONDS, ALLOCATIONS
from app.models.inventory import InventoryUnit, InventoryUnitStatus, LocationType
from app.models.material_allocation import (
    ACTIVE_ALLOCATION_STATUSES,
    AllocationStatus,
    MaterialAllocation,
)
from app.models.material_request import MaterialRequest, MaterialRequestItem, MaterialRequestStatus
from app.schemas.material_allocation import AllocationLine
from app.services.common import coerce_uuid, rollback_on_error
from app.services.context import RequestContext
from app.services.events import EventType, emit_event
from app.services.material_requests import ENTITY_TYPE, require_actor
from app.telemetry import get_tracer

logger = logging.getLogger(__name__)


def _get_request(db: Session, ctx: RequestContext, mr_id) -> MaterialRequest:
    try:
        pk = coerce_uuid(mr_id)
    except ValidationError:
        raise NotFoundError("Material request not found") from None
    mr = (
        ctx.scope(db.query(MaterialRequest), MaterialRequest)
        .filter(MaterialRequest.id == pk, MaterialRequest.is_active.is_(True))
        .first()
    )
    if not mr:
        raise NotFoundError("Material request not found")
    return mr


def _locked(query):
    if settings.allocation_lock_rows:
        return query.with_for_update()
    return query


def _active_allocation_count(db: Session, item_id) -> int:
    return (
        db.query(func.count(MaterialAllocation.id))
        .filter(
            MaterialAllocation.material_request_item_id == item_id,
            MaterialAllocation.status.in_(ACTIVE_ALLOCATION_STATUSES),
        )
        .scalar()
        or 0
    )


def _allocation_options() -> list:
    return [
        selectinload(MaterialAllocation.inventory_unit).selectinload(InventoryUnit.material),
        selectinload(MaterialAllocation.material_request_item).selectinload(MaterialRequestItem.material),
        selectinload(MaterialAllocation.allocated_by),
    ]


class MaterialAllocations:
    @staticmethod
    def list_available_stock(
        db: Session,
        ctx: RequestContext,
        mr_id,
        stock_area_id: str | None = None,
        material_id: str | None = None,
    ) -> dict:
        mr = _get_request(db, ctx, mr_id)
        query = ctx.scope(db.query(InventoryUnit), InventoryUnit).options(
            selectinload(InventoryUnit.material),
            selectinload(InventoryUnit.stock_area),
        )
        query = query.filter(
            InventoryUnit.location_type == LocationType.warehouse,
            InventoryUnit.status == InventoryUnitStatus.available,
            InventoryUnit.is_active.is_(True),
        )
        if stock_area_id:
            query = query.filter(InventoryUnit.stock_area_id == coerce_uuid(stock_area_id, "stock_area_id"))
        if material_id:
            query = query.filter(InventoryUnit.material_id == coerce_uuid(material_id, "material_id"))
        units = query.order_by(InventoryUnit.created_at.desc()).all()

        groups: dict[tuple, dict] = {}
        for unit in units:
            key = (unit.material_id, unit.stock_area_id)
            group = groups.get(key)
            if group is None:
                group = {"material": unit.material, "stock_area": unit.stock_area, "items": [], "total_quantity": 0}
                groups[key] = group
            group["items"].append(unit)
            group["total_quantity"] += 1

        return {
            "material_request_id": mr.id,
            "available_stock": list(groups.values()),
            "total_items": len(units),
        }

    @staticmethod
    def allocate(db: Session, ctx: RequestContext, mr_id, allocations: list[AllocationLine]) -> dict:
        tracer = get_tracer()
        with tracer.start_as_current_span("material_allocations.allocate") as span:
            span.set_attribute("material_request.id", str(mr_id))
            try:
                with ALLOCATION_BATCH_SECONDS.time(), rollback_on_error(db, "material_allocation"):
                    created = MaterialAllocations._allocate_batch(db, ctx, mr_id, allocations)
                    db.commit()
            except Exception:
                ALLOCATIONS.labels(result="rejected").inc()
                raise
            span.set_attribute("material_allocation.count", len(created))

        ALLOCATIONS.labels(result="allocated").inc(len(created))
        logger.info(
            "material_allocated mr_id=%s count=%s actor_id=%s", mr_id, len(created), ctx.actor_id
        )
        created_ids = [allocation.id for allocation in created]
        rows = (
            db.query(MaterialAllocation)
            .options(*_allocation_options())
            .filter(MaterialAllocation.id.in_(created_ids))
            .order_by(MaterialAllocation.allocated_at.asc())
            .all()
        )
        return {"allocations": rows, "total_allocated": len(rows)}

    @staticmethod
    def _allocate_batch(
        db: Session, ctx: RequestContext, mr_id, allocations: list[AllocationLine]
    ) -> list[MaterialAllocation]:
        mr = _get_request(db, ctx, mr_id)
        if mr.status != MaterialRequestStatus.approved:
            raise InvalidStateError("Material request must be approved before allocation")
        if not allocations:
            raise ValidationError("At least one allocation is required")
        for line in allocations:
            if not line.inventory_unit_ids:
                raise ValidationError(
                    f"At least one inventory item is required for material request item {line.request_item_id}"
                )
        allocator = require_actor(db, ctx)

        now = datetime.now(UTC)
        created: list[MaterialAllocation] = []
        for line in allocations:
            item = _locked(
                db.query(MaterialRequestItem).filter(
                    MaterialRequestItem.id == line.request_item_id,
                    MaterialRequestItem.material_request_id == mr.id,
                )
            ).first()
            if not item:
                raise NotFoundError(f"Material request item {line.request_item_id} not found", status_code=400)

            already = _active_allocation_count(db, item.id)
            requested = len(line.inventory_unit_ids)
            if already + requested > item.requested_quantity:
                raise InvalidStateError(
                    "Allocation exceeds requested quantity. "
                    f"Requested: {item.requested_quantity}, "
                    f"Already allocated: {already}, "
                    f"Trying to allocate: {requested}"
                )

            for unit_id in line.inventory_unit_ids:
                unit = _locked(
                    ctx.scope(db.query(InventoryUnit), InventoryUnit).filter(
                        InventoryUnit.id == unit_id,
                        InventoryUnit.material_id == item.material_id,
                        InventoryUnit.location_type == LocationType.warehouse,
                        InventoryUnit.status == InventoryUnitStatus.available,
                        InventoryUnit.is_active.is_(True),
                    )
                ).first()
                if not unit:
                    raise NotFoundError(f"Inventory item {unit_id} not found or not available", status_code=400)

                claimed = (
                    db.query(MaterialAllocation.id)
                    .filter(
                        MaterialAllocation.inventory_unit_id == unit.id,
                        MaterialAllocation.status.in_(ACTIVE_ALLOCATION_STATUSES),
                    )
                    .first()
                )
                if claimed:
                    raise ConflictError(f"Inventory item {unit_id} is already allocated")

                allocation = MaterialAllocation(
                    material_request_id=mr.id,
                    material_request_item_id=item.id,
                    inventory_unit_id=unit.id,
                    allocated_by_person_id=allocator.id,
                    allocated_at=now,
                    status=AllocationStatus.allocated,
                )
                db.add(allocation)
                unit.status = InventoryUnitStatus.allocated
                # Makes the claim visible to the next unit lookup in this batch.
                db.flush()
                created.append(allocation)

        emit_event(
            db,
            ctx,
            EventType.material_allocated,
            ENTITY_TYPE,
            mr.id,
            {
                "material_request_id": str(mr.id),
                "number": mr.number,
                "requested_by_person_id": str(mr.requested_by_person_id),
                "count": len(created),
                "changes": {
                    "allocations": [
                        {
                            "allocation_id": str(allocation.id),
                            "material_request_item_id": str(allocation.material_request_item_id),
                            "inventory_unit_id": str(allocation.inventory_unit_id),
                        }
                        for allocation in created
                    ]
                },
            },
        )
        return created

    @staticmethod
    def list_allocations(db: Session, ctx: RequestContext, mr_id) -> dict:
        mr = _get_request(db, ctx, mr_id)
        rows = (
            db.query(MaterialAllocation)
            .options(*_allocation_options())
            .filter(MaterialAllocation.material_request_id == mr.id)
            .order_by(MaterialAllocation.allocated_at.desc(), MaterialAllocation.created_at.desc())
            .all()
        )
        groups: dict = {}
        for allocation in rows:
            group = groups.get(allocation.material_request_item_id)
            if group is None:
                group = {"material_request_item": allocation.material_request_item, "allocations": []}
                groups[allocation.material_request_item_id] = group
            group["allocations"].append(allocation)
        return {
            "material_request_id": mr.id,
            "allocations": list(groups.values()),
            "total_allocations": len(rows),
        }

    @staticmethod
    def cancel_allocation(db: Session, ctx: RequestContext, mr_id, allocation_id) -> MaterialAllocation:
        with rollback_on_error(db, "material_allocation_cancel"):
            mr = _get_request(db, ctx, mr_id)
            try:
                allocation_pk = coerce_uuid(allocation_id, "allocation_id")
            except ValidationError:
                raise NotFoundError("Allocation not found or cannot be cancelled") from None
            allocation = _locked(
                db.query(MaterialAllocation).filter(
                    MaterialAllocation.id == allocation_pk,
                    MaterialAllocation.material_request_id == mr.id,
                    MaterialAllocation.status == AllocationStatus.allocated,
                )
            ).first()
            if not allocation:
                raise NotFoundError("Allocation not found or cannot be cancelled")

            allocation.status = AllocationStatus.cancelled
            unit = db.get(InventoryUnit, allocation.inventory_unit_id)
            if unit is not None:
                unit.status = InventoryUnitStatus.available

            emit_event(
                db,
                ctx,
                EventType.allocation_cancelled,
                "MaterialAllocation",
                allocation.id,
                {
                    "material_request_id": str(mr.id),
                    "number": mr.number,
                    "requested_by_person_id": str(mr.requested_by_person_id),
                    "changes": {
                        "status": {"from": "ALLOCATED", "to": "CANCELLED"},
                        "inventory_unit_id": str(allocation.inventory_unit_id),
                    },
                },
            )
            db.commit()

        ALLOCATIONS.labels(result="cancelled").inc()
        logger.info(
            "material_allocation_cancelled mr_id=%s allocation_id=%s actor_id=%s",
            mr.id,
            allocation_pk,
            ctx.actor_id,
        )
        return (
            db.query(MaterialAllocation)
            .options(*_allocation_options())
            .filter(MaterialAllocation.id == allocation_pk)
            .one()
        )


material_allocations = MaterialAllocations()
