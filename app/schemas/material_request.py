from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.material_request import MaterialRequestStatus
from app.schemas.common import PersonSummary
from app.schemas.inventory import MaterialRead


class PRNumberRef(BaseModel):
    pr_number: str = Field(min_length=1, max_length=100)
    pr_date: date | None = None


class MaterialRequestItemBase(BaseModel):
    material_id: UUID
    requested_quantity: int = Field(default=1, ge=1)
    uom: str | None = Field(default=None, max_length=50)
    remarks: str | None = None


class MaterialRequestItemCreate(MaterialRequestItemBase):
    approved_quantity: int | None = Field(default=None, ge=0)


class MaterialRequestItemRead(MaterialRequestItemBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    material_request_id: UUID
    approved_quantity: int | None = None
    uom: str
    created_at: datetime
    material: MaterialRead | None = None


class MaterialRequestCreate(BaseModel):
    pr_numbers: list[PRNumberRef] = Field(default_factory=list)
    items: list[MaterialRequestItemCreate] = Field(default_factory=list)
    remarks: str | None = None
    ticket_id: str | None = Field(default=None, max_length=100)
    from_stock_area_id: UUID | None = None
    requestor_id: UUID | None = None
    request_date: date | None = None


class MaterialRequestUpdate(BaseModel):
    pr_numbers: list[PRNumberRef] | None = None
    items: list[MaterialRequestItemCreate] | None = None
    remarks: str | None = None
    ticket_id: str | None = Field(default=None, max_length=100)
    from_stock_area_id: UUID | None = None
    requestor_id: UUID | None = None
    request_date: date | None = None


class ApprovedItem(BaseModel):
    item_id: UUID
    approved_quantity: int | None = Field(default=None, ge=0)


class MaterialRequestDecision(BaseModel):
    # Kept as a plain string so an unsupported value surfaces as a domain
    # validation error rather than a schema error.
    status: str
    approved_items: list[ApprovedItem] | None = None
    remarks: str | None = None


class MaterialRequestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    number: str | None = None
    pr_numbers: list[PRNumberRef] | None = None
    status: MaterialRequestStatus
    requested_by_person_id: UUID
    approved_by_person_id: UUID | None = None
    from_stock_area_id: UUID | None = None
    requestor_id: UUID | None = None
    request_date: date | None = None
    ticket_id: str | None = None
    remarks: str | None = None
    is_active: bool
    submitted_at: datetime | None = None
    approved_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    items: list[MaterialRequestItemRead] = []
    requested_by: PersonSummary | None = None
    approved_by: PersonSummary | None = None
    requestor: PersonSummary | None = None
