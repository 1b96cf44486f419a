from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import (
    get_db,
    get_inventory_units_service,
    get_materials_service,
    get_request_context,
    get_stock_areas_service,
)
from app.schemas.common import ApiResponse, ListResponse
from app.schemas.inventory import (
    InventoryUnitCreate,
    InventoryUnitRead,
    InventoryUnitUpdate,
    MaterialCreate,
    MaterialRead,
    MaterialUpdate,
    StockAreaCreate,
    StockAreaRead,
    StockAreaUpdate,
)
from app.services.context import RequestContext
from app.services.response import list_response, ok

router = APIRouter(prefix="/inventory", tags=["inventory"])


# ── Materials ───────────────────────────────────────────────────


@router.post("/materials", response_model=ApiResponse[MaterialRead], status_code=status.HTTP_201_CREATED)
def create_material(
    payload: MaterialCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_materials_service),
):
    return ok(service.create(db, ctx, payload), "Material created successfully")


@router.get("/materials/{material_id}", response_model=ApiResponse[MaterialRead])
def get_material(
    material_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_materials_service),
):
    return ok(service.get(db, ctx, material_id))


@router.get("/materials", response_model=ListResponse[MaterialRead])
def list_materials(
    is_active: bool | None = None,
    search: str | None = None,
    material_type: str | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_materials_service),
):
    result = service.list(
        db,
        ctx,
        is_active=is_active,
        search=search,
        material_type=material_type,
        order_by=order_by,
        order_dir=order_dir,
        page=page,
        limit=limit,
    )
    return list_response(result)


@router.patch("/materials/{material_id}", response_model=ApiResponse[MaterialRead])
def update_material(
    material_id: str,
    payload: MaterialUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_materials_service),
):
    return ok(service.update(db, ctx, material_id, payload), "Material updated successfully")


@router.delete("/materials/{material_id}")
def delete_material(
    material_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_materials_service),
):
    service.delete(db, ctx, material_id)
    return ok(message="Material deleted successfully")


# ── Stock areas ─────────────────────────────────────────────────


@router.post("/stock-areas", response_model=ApiResponse[StockAreaRead], status_code=status.HTTP_201_CREATED)
def create_stock_area(
    payload: StockAreaCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_stock_areas_service),
):
    return ok(service.create(db, ctx, payload), "Stock area created successfully")


@router.get("/stock-areas/{stock_area_id}", response_model=ApiResponse[StockAreaRead])
def get_stock_area(
    stock_area_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_stock_areas_service),
):
    return ok(service.get(db, ctx, stock_area_id))


@router.get("/stock-areas", response_model=ListResponse[StockAreaRead])
def list_stock_areas(
    is_active: bool | None = None,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_stock_areas_service),
):
    return list_response(service.list(db, ctx, is_active=is_active, page=page, limit=limit))


@router.patch("/stock-areas/{stock_area_id}", response_model=ApiResponse[StockAreaRead])
def update_stock_area(
    stock_area_id: str,
    payload: StockAreaUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_stock_areas_service),
):
    return ok(service.update(db, ctx, stock_area_id, payload), "Stock area updated successfully")


@router.delete("/stock-areas/{stock_area_id}")
def delete_stock_area(
    stock_area_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_stock_areas_service),
):
    service.delete(db, ctx, stock_area_id)
    return ok(message="Stock area deleted successfully")


# ── Inventory units ─────────────────────────────────────────────


@router.post("/units", response_model=ApiResponse[InventoryUnitRead], status_code=status.HTTP_201_CREATED)
def create_unit(
    payload: InventoryUnitCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_inventory_units_service),
):
    return ok(service.create(db, ctx, payload), "Inventory unit created successfully")


@router.get("/units/{unit_id}", response_model=ApiResponse[InventoryUnitRead])
def get_unit(
    unit_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_inventory_units_service),
):
    return ok(service.get(db, ctx, unit_id))


@router.get("/units", response_model=ListResponse[InventoryUnitRead])
def list_units(
    material_id: str | None = None,
    stock_area_id: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    location_type: str | None = None,
    is_active: bool | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_inventory_units_service),
):
    result = service.list(
        db,
        ctx,
        material_id=material_id,
        stock_area_id=stock_area_id,
        status=status_filter,
        location_type=location_type,
        is_active=is_active,
        order_by=order_by,
        order_dir=order_dir,
        page=page,
        limit=limit,
    )
    return list_response(result)


@router.patch("/units/{unit_id}", response_model=ApiResponse[InventoryUnitRead])
def update_unit(
    unit_id: str,
    payload: InventoryUnitUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_inventory_units_service),
):
    return ok(service.update(db, ctx, unit_id, payload), "Inventory unit updated successfully")


@router.delete("/units/{unit_id}")
def delete_unit(
    unit_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_inventory_units_service),
):
    service.delete(db, ctx, unit_id)
    return ok(message="Inventory unit deleted successfully")
