import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class AllocationStatus(enum.Enum):
    allocated = "ALLOCATED"
    transferred = "TRANSFERRED"
    cancelled = "CANCELLED"


# Allocations in these states count against an item's requested quantity
# and keep their inventory unit claimed.
ACTIVE_ALLOCATION_STATUSES = (AllocationStatus.allocated, AllocationStatus.transferred)


class MaterialAllocation(Base):
    """Binds one inventory unit to one material request item."""

    __tablename__ = "material_allocations"
    __table_args__ = (
        Index("ix_material_allocations_request_id", "material_request_id"),
        Index("ix_material_allocations_item_status", "material_request_item_id", "status"),
        Index("ix_material_allocations_unit_status", "inventory_unit_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    material_request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("material_requests.id"), nullable=False
    )
    material_request_item_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("material_request_items.id"), nullable=False
    )
    inventory_unit_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("inventory_units.id"), nullable=False
    )
    allocated_by_person_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"))
    allocated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    status: Mapped[AllocationStatus] = mapped_column(
        Enum(AllocationStatus), nullable=False, default=AllocationStatus.allocated
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    material_request = relationship("MaterialRequest")
    material_request_item = relationship("MaterialRequestItem")
    inventory_unit = relationship("InventoryUnit")
    allocated_by = relationship("Person", foreign_keys=[allocated_by_person_id])
