import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from app.errors import InvalidStateError, NotFoundError, ValidationError
from app.models.inventory import (
    InventoryUnit,
    InventoryUnitStatus,
    LocationType,
    Material,
    StockArea,
)
from app.schemas.inventory import (
    InventoryUnitCreate,
    InventoryUnitUpdate,
    MaterialCreate,
    MaterialUpdate,
    StockAreaCreate,
    StockAreaUpdate,
)
from app.services.common import apply_is_active_filter, apply_ordering, coerce_uuid, validate_enum
from app.services.context import RequestContext
from app.services.response import Page, paginate

logger = logging.getLogger(__name__)


def _scoped_get(db: Session, ctx: RequestContext, model, record_id, detail: str, options: list | None = None):
    try:
        pk = coerce_uuid(record_id)
    except ValidationError:
        raise NotFoundError(detail) from None
    query = ctx.scope(db.query(model), model)
    if options:
        query = query.options(*options)
    record = query.filter(model.id == pk).first()
    if not record:
        raise NotFoundError(detail)
    return record


def _ensure_material(db: Session, ctx: RequestContext, material_id) -> Material:
    material = _scoped_get(db, ctx, Material, material_id, "Material not found")
    if not material.is_active:
        raise NotFoundError("Material not found")
    return material


def _ensure_stock_area(db: Session, ctx: RequestContext, stock_area_id) -> StockArea:
    area = _scoped_get(db, ctx, StockArea, stock_area_id, "Stock area not found")
    if not area.is_active:
        raise NotFoundError("Stock area not found")
    return area


class Materials:
    @staticmethod
    def create(db: Session, ctx: RequestContext, payload: MaterialCreate) -> Material:
        material = Material(**payload.model_dump(), org_id=ctx.org_id)
        db.add(material)
        db.commit()
        db.refresh(material)
        return material

    @staticmethod
    def get(db: Session, ctx: RequestContext, material_id: str) -> Material:
        return _scoped_get(db, ctx, Material, material_id, "Material not found")

    @staticmethod
    def list(
        db: Session,
        ctx: RequestContext,
        is_active: bool | None = None,
        search: str | None = None,
        material_type: str | None = None,
        order_by: str = "created_at",
        order_dir: str = "desc",
        page: int | None = 1,
        limit: int | None = None,
    ) -> Page:
        query = ctx.scope(db.query(Material), Material)
        query = apply_is_active_filter(query, Material, is_active)
        if material_type:
            query = query.filter(Material.material_type == material_type)
        if search:
            normalized = search.strip()
            if normalized:
                pattern = f"%{normalized}%"
                query = query.filter(
                    or_(
                        Material.name.ilike(pattern),
                        Material.product_code.ilike(pattern),
                        Material.description.ilike(pattern),
                    )
                )
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {"created_at": Material.created_at, "name": Material.name, "product_code": Material.product_code},
        )
        return paginate(query, page, limit)

    @staticmethod
    def update(db: Session, ctx: RequestContext, material_id: str, payload: MaterialUpdate) -> Material:
        material = Materials.get(db, ctx, material_id)
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(material, key, value)
        db.commit()
        db.refresh(material)
        return material

    @staticmethod
    def delete(db: Session, ctx: RequestContext, material_id: str) -> None:
        material = Materials.get(db, ctx, material_id)
        material.is_active = False
        db.commit()


class StockAreas:
    @staticmethod
    def create(db: Session, ctx: RequestContext, payload: StockAreaCreate) -> StockArea:
        area = StockArea(**payload.model_dump(), org_id=ctx.org_id)
        db.add(area)
        db.commit()
        db.refresh(area)
        return area

    @staticmethod
    def get(db: Session, ctx: RequestContext, stock_area_id: str) -> StockArea:
        return _scoped_get(db, ctx, StockArea, stock_area_id, "Stock area not found")

    @staticmethod
    def list(
        db: Session,
        ctx: RequestContext,
        is_active: bool | None = None,
        page: int | None = 1,
        limit: int | None = None,
    ) -> Page:
        query = ctx.scope(db.query(StockArea), StockArea)
        query = apply_is_active_filter(query, StockArea, is_active)
        query = query.order_by(StockArea.name.asc())
        return paginate(query, page, limit)

    @staticmethod
    def update(db: Session, ctx: RequestContext, stock_area_id: str, payload: StockAreaUpdate) -> StockArea:
        area = StockAreas.get(db, ctx, stock_area_id)
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(area, key, value)
        db.commit()
        db.refresh(area)
        return area

    @staticmethod
    def delete(db: Session, ctx: RequestContext, stock_area_id: str) -> None:
        area = StockAreas.get(db, ctx, stock_area_id)
        area.is_active = False
        db.commit()


class InventoryUnits:
    @staticmethod
    def create(db: Session, ctx: RequestContext, payload: InventoryUnitCreate) -> InventoryUnit:
        _ensure_material(db, ctx, payload.material_id)
        if payload.stock_area_id:
            _ensure_stock_area(db, ctx, payload.stock_area_id)
        if payload.status == InventoryUnitStatus.allocated:
            raise InvalidStateError("Units become ALLOCATED only through material allocation")
        unit = InventoryUnit(**payload.model_dump(), org_id=ctx.org_id)
        db.add(unit)
        db.commit()
        db.refresh(unit)
        return unit

    @staticmethod
    def get(db: Session, ctx: RequestContext, unit_id: str) -> InventoryUnit:
        return _scoped_get(
            db,
            ctx,
            InventoryUnit,
            unit_id,
            "Inventory unit not found",
            options=[selectinload(InventoryUnit.material)],
        )

    @staticmethod
    def list(
        db: Session,
        ctx: RequestContext,
        material_id: str | None = None,
        stock_area_id: str | None = None,
        status: str | None = None,
        location_type: str | None = None,
        is_active: bool | None = None,
        order_by: str = "created_at",
        order_dir: str = "desc",
        page: int | None = 1,
        limit: int | None = None,
    ) -> Page:
        query = ctx.scope(db.query(InventoryUnit), InventoryUnit).options(selectinload(InventoryUnit.material))
        query = apply_is_active_filter(query, InventoryUnit, is_active)
        if material_id:
            query = query.filter(InventoryUnit.material_id == coerce_uuid(material_id, "material_id"))
        if stock_area_id:
            query = query.filter(InventoryUnit.stock_area_id == coerce_uuid(stock_area_id, "stock_area_id"))
        if status:
            query = query.filter(InventoryUnit.status == validate_enum(status, InventoryUnitStatus, "status"))
        if location_type:
            query = query.filter(
                InventoryUnit.location_type == validate_enum(location_type, LocationType, "location_type")
            )
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {"created_at": InventoryUnit.created_at, "serial_number": InventoryUnit.serial_number},
        )
        return paginate(query, page, limit)

    @staticmethod
    def update(db: Session, ctx: RequestContext, unit_id: str, payload: InventoryUnitUpdate) -> InventoryUnit:
        unit = InventoryUnits.get(db, ctx, unit_id)
        data = payload.model_dump(exclude_unset=True)
        new_status = data.get("status")
        # ALLOCATED is owned by the allocation engine in both directions.
        if new_status == InventoryUnitStatus.allocated and unit.status != InventoryUnitStatus.allocated:
            raise InvalidStateError("Units become ALLOCATED only through material allocation")
        if unit.status == InventoryUnitStatus.allocated and new_status not in (None, InventoryUnitStatus.allocated):
            raise InvalidStateError("Cancel the allocation to release this unit")
        if data.get("stock_area_id"):
            _ensure_stock_area(db, ctx, data["stock_area_id"])
        for key, value in data.items():
            setattr(unit, key, value)
        db.commit()
        db.refresh(unit)
        return unit

    @staticmethod
    def delete(db: Session, ctx: RequestContext, unit_id: str) -> None:
        unit = InventoryUnits.get(db, ctx, unit_id)
        if unit.status == InventoryUnitStatus.allocated:
            raise InvalidStateError("Cannot delete an allocated inventory unit")
        unit.is_active = False
        db.commit()
        logger.info("inventory_unit_deactivated unit_id=%s actor_id=%s", unit.id, ctx.actor_id)


materials = Materials()
stock_areas = StockAreas()
inventory_units = InventoryUnits()
