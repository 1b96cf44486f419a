import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class LocationType(enum.Enum):
    warehouse = "WAREHOUSE"
    person = "PERSON"
    consumed = "CONSUMED"


class InventoryUnitStatus(enum.Enum):
    available = "AVAILABLE"
    faulty = "FAULTY"
    allocated = "ALLOCATED"
    in_transit = "IN_TRANSIT"
    consumed = "CONSUMED"


class Material(Base):
    __tablename__ = "materials"
    __table_args__ = (
        Index("ix_materials_product_code", "product_code"),
        Index("ix_materials_org_id", "org_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    product_code: Mapped[str] = mapped_column(String(100), nullable=False)
    material_type: Mapped[str] = mapped_column(String(100), nullable=False, default="COMPONENT")
    uom: Mapped[str] = mapped_column(String(50), nullable=False, default="PIECE(S)")
    description: Mapped[str | None] = mapped_column(Text)
    org_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC)
    )


class StockArea(Base):
    __tablename__ = "stock_areas"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    location_code: Mapped[str | None] = mapped_column(String(50))
    address: Mapped[str | None] = mapped_column(Text)
    org_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC)
    )


class InventoryUnit(Base):
    """One serialized, trackable unit of stock."""

    __tablename__ = "inventory_units"
    __table_args__ = (
        Index("ix_inventory_units_material_id", "material_id"),
        Index("ix_inventory_units_location", "location_type", "stock_area_id"),
        Index("ix_inventory_units_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    material_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("materials.id"), nullable=False)
    serial_number: Mapped[str | None] = mapped_column(String(100), unique=True)
    mac_id: Mapped[str | None] = mapped_column(String(100), unique=True)
    location_type: Mapped[LocationType] = mapped_column(
        Enum(LocationType), nullable=False, default=LocationType.warehouse
    )
    stock_area_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("stock_areas.id"))
    holder_person_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"))
    status: Mapped[InventoryUnitStatus] = mapped_column(
        Enum(InventoryUnitStatus), nullable=False, default=InventoryUnitStatus.available
    )
    org_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC)
    )

    material = relationship("Material")
    stock_area = relationship("StockArea")
    holder = relationship("Person", foreign_keys=[holder_person_id])
