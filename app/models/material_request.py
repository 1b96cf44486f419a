import enum
import uuid
from datetime import UTC, date, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class MaterialRequestStatus(enum.Enum):
    draft = "DRAFT"
    submitted = "SUBMITTED"
    approved = "APPROVED"
    rejected = "REJECTED"
    fulfilled = "FULFILLED"


class MaterialRequest(Base):
    __tablename__ = "material_requests"
    __table_args__ = (
        Index("ix_material_requests_status", "status"),
        Index("ix_material_requests_requested_by", "requested_by_person_id"),
        Index("ix_material_requests_org_id", "org_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    number: Mapped[str | None] = mapped_column(String(50), unique=True)
    pr_numbers: Mapped[list | None] = mapped_column(JSON)
    status: Mapped[MaterialRequestStatus] = mapped_column(
        Enum(MaterialRequestStatus), default=MaterialRequestStatus.draft
    )
    requested_by_person_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )
    approved_by_person_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"))
    requestor_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("people.id"))
    from_stock_area_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("stock_areas.id"))
    request_date: Mapped[date | None] = mapped_column(Date)
    ticket_id: Mapped[str | None] = mapped_column(String(100))
    remarks: Mapped[str | None] = mapped_column(Text)
    org_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    requested_by = relationship("Person", foreign_keys=[requested_by_person_id])
    approved_by = relationship("Person", foreign_keys=[approved_by_person_id])
    requestor = relationship("Person", foreign_keys=[requestor_id])
    from_stock_area = relationship("StockArea", foreign_keys=[from_stock_area_id])
    items = relationship(
        "MaterialRequestItem",
        back_populates="material_request",
        cascade="all, delete-orphan",
        order_by="MaterialRequestItem.created_at",
    )


class MaterialRequestItem(Base):
    __tablename__ = "material_request_items"
    __table_args__ = (
        CheckConstraint("requested_quantity >= 1", name="ck_material_request_item_requested_positive"),
        CheckConstraint(
            "approved_quantity IS NULL OR approved_quantity <= requested_quantity",
            name="ck_material_request_item_approved_le_requested",
        ),
        Index("ix_material_request_items_request_id", "material_request_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    material_request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("material_requests.id"), nullable=False
    )
    material_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("materials.id"), nullable=False)
    requested_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    approved_quantity: Mapped[int | None] = mapped_column(Integer)
    uom: Mapped[str] = mapped_column(String(50), nullable=False, default="PIECE(S)")
    remarks: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    material_request = relationship("MaterialRequest", back_populates="items")
    material = relationship("Material", foreign_keys=[material_id])
