from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.material_allocation import AllocationStatus
from app.schemas.common import PersonSummary
from app.schemas.inventory import InventoryUnitRead, MaterialRead, StockAreaRead
from app.schemas.material_request import MaterialRequestItemRead


class AllocationLine(BaseModel):
    request_item_id: UUID
    inventory_unit_ids: list[UUID] = Field(default_factory=list)


class AllocateRequest(BaseModel):
    allocations: list[AllocationLine] = Field(default_factory=list)


class MaterialAllocationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    material_request_id: UUID
    material_request_item_id: UUID
    inventory_unit_id: UUID
    allocated_by_person_id: UUID | None = None
    allocated_at: datetime
    status: AllocationStatus
    inventory_unit: InventoryUnitRead | None = None
    material_request_item: MaterialRequestItemRead | None = None
    allocated_by: PersonSummary | None = None


class AllocationBatchRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    allocations: list[MaterialAllocationRead]
    total_allocated: int


class AllocationGroupRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    material_request_item: MaterialRequestItemRead | None = None
    allocations: list[MaterialAllocationRead]


class AllocationListRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    material_request_id: UUID
    allocations: list[AllocationGroupRead]
    total_allocations: int


class AvailableStockGroupRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    material: MaterialRead | None = None
    stock_area: StockAreaRead | None = None
    items: list[InventoryUnitRead]
    total_quantity: int


class AvailableStockRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    material_request_id: UUID
    available_stock: list[AvailableStockGroupRead]
    total_items: int
