from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.inventory import InventoryUnitStatus, LocationType


class MaterialBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    product_code: str = Field(min_length=1, max_length=100)
    material_type: str = Field(default="COMPONENT", max_length=100)
    uom: str = Field(default="PIECE(S)", max_length=50)
    description: str | None = None
    is_active: bool = True


class MaterialCreate(MaterialBase):
    pass


class MaterialUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    product_code: str | None = Field(default=None, min_length=1, max_length=100)
    material_type: str | None = Field(default=None, max_length=100)
    uom: str | None = Field(default=None, max_length=50)
    description: str | None = None
    is_active: bool | None = None


class MaterialRead(MaterialBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    org_id: UUID | None = None
    created_at: datetime
    updated_at: datetime


class StockAreaBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    location_code: str | None = Field(default=None, max_length=50)
    address: str | None = None
    is_active: bool = True


class StockAreaCreate(StockAreaBase):
    pass


class StockAreaUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    location_code: str | None = Field(default=None, max_length=50)
    address: str | None = None
    is_active: bool | None = None


class StockAreaRead(StockAreaBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    org_id: UUID | None = None
    created_at: datetime
    updated_at: datetime


class InventoryUnitBase(BaseModel):
    material_id: UUID
    serial_number: str | None = Field(default=None, max_length=100)
    mac_id: str | None = Field(default=None, max_length=100)
    location_type: LocationType = LocationType.warehouse
    stock_area_id: UUID | None = None
    status: InventoryUnitStatus = InventoryUnitStatus.available
    is_active: bool = True


class InventoryUnitCreate(InventoryUnitBase):
    pass


class InventoryUnitUpdate(BaseModel):
    serial_number: str | None = Field(default=None, max_length=100)
    mac_id: str | None = Field(default=None, max_length=100)
    stock_area_id: UUID | None = None
    status: InventoryUnitStatus | None = None
    is_active: bool | None = None


class InventoryUnitRead(InventoryUnitBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    holder_person_id: UUID | None = None
    org_id: UUID | None = None
    created_at: datetime
    updated_at: datetime
    material: MaterialRead | None = None
