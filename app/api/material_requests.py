from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import (
    get_db,
    get_event_dispatcher,
    get_material_allocations_service,
    get_material_requests_service,
    get_request_context,
)
from app.schemas.common import ApiResponse, ListResponse
from app.schemas.material_allocation import (
    AllocateRequest,
    AllocationBatchRead,
    AllocationListRead,
    AvailableStockRead,
    MaterialAllocationRead,
)
from app.schemas.material_request import (
    MaterialRequestCreate,
    MaterialRequestDecision,
    MaterialRequestRead,
    MaterialRequestUpdate,
)
from app.services.context import RequestContext
from app.services.response import list_response, ok

router = APIRouter(prefix="/material-request", tags=["material-requests"])


@router.post("", response_model=ApiResponse[MaterialRequestRead], status_code=status.HTTP_201_CREATED)
def create_material_request(
    payload: MaterialRequestCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_material_requests_service),
    dispatch=Depends(get_event_dispatcher),
):
    mr = service.create(db, ctx, payload)
    background_tasks.add_task(dispatch)
    return ok(mr, "Material request created successfully")


@router.get("", response_model=ListResponse[MaterialRequestRead])
def list_material_requests(
    status_filter: str | None = Query(default=None, alias="status"),
    requested_by: str | None = None,
    show_inactive: bool = False,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_material_requests_service),
):
    result = service.list(
        db,
        ctx,
        status=status_filter,
        requested_by=requested_by,
        show_inactive=show_inactive,
        page=page,
        limit=limit,
    )
    return list_response(result)


@router.get("/{mr_id}", response_model=ApiResponse[MaterialRequestRead])
def get_material_request(
    mr_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_material_requests_service),
):
    return ok(service.get(db, ctx, mr_id))


@router.put("/{mr_id}", response_model=ApiResponse[MaterialRequestRead])
def update_material_request(
    mr_id: str,
    payload: MaterialRequestUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_material_requests_service),
    dispatch=Depends(get_event_dispatcher),
):
    mr = service.update(db, ctx, mr_id, payload)
    background_tasks.add_task(dispatch)
    return ok(mr, "Material request updated successfully")


@router.delete("/{mr_id}")
def delete_material_request(
    mr_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_material_requests_service),
    dispatch=Depends(get_event_dispatcher),
):
    service.soft_delete(db, ctx, mr_id)
    background_tasks.add_task(dispatch)
    return ok(message="Material request deleted successfully")


# ── Status transitions ──────────────────────────────────────────


@router.post("/{mr_id}/submit", response_model=ApiResponse[MaterialRequestRead])
def submit_material_request(
    mr_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_material_requests_service),
    dispatch=Depends(get_event_dispatcher),
):
    mr = service.submit(db, ctx, mr_id)
    background_tasks.add_task(dispatch)
    return ok(mr, "Material request submitted successfully")


@router.post("/{mr_id}/approve", response_model=ApiResponse[MaterialRequestRead])
def decide_material_request(
    mr_id: str,
    payload: MaterialRequestDecision,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_material_requests_service),
    dispatch=Depends(get_event_dispatcher),
):
    mr = service.approve_or_reject(db, ctx, mr_id, payload)
    background_tasks.add_task(dispatch)
    return ok(mr, f"Material request {mr.status.value.lower()} successfully")


# ── Allocation ──────────────────────────────────────────────────


@router.get("/{mr_id}/available-stock", response_model=ApiResponse[AvailableStockRead])
def list_available_stock(
    mr_id: str,
    stock_area_id: str | None = None,
    material_id: str | None = None,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_material_allocations_service),
):
    return ok(
        service.list_available_stock(db, ctx, mr_id, stock_area_id=stock_area_id, material_id=material_id)
    )


@router.post(
    "/{mr_id}/allocate",
    response_model=ApiResponse[AllocationBatchRead],
    status_code=status.HTTP_201_CREATED,
)
def allocate_material_request(
    mr_id: str,
    payload: AllocateRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_material_allocations_service),
    dispatch=Depends(get_event_dispatcher),
):
    result = service.allocate(db, ctx, mr_id, payload.allocations)
    background_tasks.add_task(dispatch)
    return ok(result, "Materials allocated successfully")


@router.get("/{mr_id}/allocations", response_model=ApiResponse[AllocationListRead])
def list_allocations(
    mr_id: str,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_material_allocations_service),
):
    return ok(service.list_allocations(db, ctx, mr_id))


@router.delete("/{mr_id}/allocations/{allocation_id}", response_model=ApiResponse[MaterialAllocationRead])
def cancel_allocation(
    mr_id: str,
    allocation_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
    service=Depends(get_material_allocations_service),
    dispatch=Depends(get_event_dispatcher),
):
    allocation = service.cancel_allocation(db, ctx, mr_id, allocation_id)
    background_tasks.add_task(dispatch)
    return ok(allocation, "Allocation cancelled successfully")
