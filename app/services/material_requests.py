import logging
from datetime import UTC, datetime, time

from sqlalchemy.orm import Session, selectinload

from app.config import settings
from app.errors import InvalidStateError, NotFoundError, ValidationError
from app.metrics import REQUEST_DECISIONS
from app.models.inventory import Material, StockArea
from app.models.material_request import (
    MaterialRequest,
    MaterialRequestItem,
    MaterialRequestStatus,
)
from app.models.person import Person
from app.schemas.material_request import (
    MaterialRequestCreate,
    MaterialRequestDecision,
    MaterialRequestItemCreate,
    MaterialRequestUpdate,
)
from app.services.common import coerce_uuid, get_or_404, rollback_on_error
from app.services.context import RequestContext
from app.services.events import EventType, emit_event
from app.services.numbering import generate_material_request_number
from app.services.response import Page, paginate

logger = logging.getLogger(__name__)

ENTITY_TYPE = "MaterialRequest"

# Statuses in which the requester may still edit the request
_EDITABLE_STATUSES = {MaterialRequestStatus.draft, MaterialRequestStatus.submitted}

_DECISION_STATUSES = {MaterialRequestStatus.approved, MaterialRequestStatus.rejected}

# Current status -> statuses a decision may move it to
_DECISION_TRANSITIONS = {
    MaterialRequestStatus.submitted: _DECISION_STATUSES,
}

_REDECISION_TRANSITIONS = {
    MaterialRequestStatus.approved: _DECISION_STATUSES,
    MaterialRequestStatus.rejected: _DECISION_STATUSES,
}


def _detail_options() -> list:
    return [
        selectinload(MaterialRequest.items).selectinload(MaterialRequestItem.material),
        selectinload(MaterialRequest.requested_by),
        selectinload(MaterialRequest.approved_by),
        selectinload(MaterialRequest.requestor),
    ]


def require_actor(db: Session, ctx: RequestContext) -> Person:
    if ctx.actor_id is None:
        raise ValidationError("User ID is required")
    return get_or_404(db, Person, ctx.actor_id, detail="User not found")


def _get_active(db: Session, ctx: RequestContext, mr_id, options: list | None = None) -> MaterialRequest:
    try:
        pk = coerce_uuid(mr_id)
    except ValidationError:
        raise NotFoundError("Material request not found") from None
    query = ctx.scope(db.query(MaterialRequest), MaterialRequest)
    if options:
        query = query.options(*options)
    mr = query.filter(MaterialRequest.id == pk, MaterialRequest.is_active.is_(True)).first()
    if not mr:
        raise NotFoundError("Material request not found")
    return mr


def _resolve_materials(db: Session, ctx: RequestContext, items: list[MaterialRequestItemCreate]) -> dict:
    wanted = {item.material_id for item in items}
    query = ctx.scope(db.query(Material), Material).filter(
        Material.id.in_(wanted), Material.is_active.is_(True)
    )
    found = {material.id: material for material in query.all()}
    for item in items:
        if item.material_id not in found:
            raise NotFoundError(f"Material {item.material_id} not found")
    return found


def _resolve_stock_area(db: Session, ctx: RequestContext, stock_area_id) -> StockArea:
    area = (
        ctx.scope(db.query(StockArea), StockArea)
        .filter(StockArea.id == stock_area_id, StockArea.is_active.is_(True))
        .first()
    )
    if not area:
        raise NotFoundError("Stock area not found", status_code=400)
    return area


def _resolve_requestor(db: Session, requestor_id) -> Person:
    requestor = db.query(Person).filter(Person.id == requestor_id, Person.is_active.is_(True)).first()
    if not requestor:
        raise NotFoundError("Requestor not found", status_code=400)
    return requestor


def _numbering_time(request_date) -> datetime:
    if request_date is None:
        return datetime.now(UTC)
    return datetime.combine(request_date, time(), tzinfo=UTC)


def _build_items(db: Session, ctx: RequestContext, items: list[MaterialRequestItemCreate]) -> list:
    materials = _resolve_materials(db, ctx, items)
    built = []
    for item in items:
        if item.approved_quantity is not None and item.approved_quantity > item.requested_quantity:
            raise ValidationError(
                f"Approved quantity cannot exceed requested quantity for material {item.material_id}"
            )
        built.append(
            MaterialRequestItem(
                material_id=item.material_id,
                requested_quantity=item.requested_quantity,
                approved_quantity=item.approved_quantity,
                uom=item.uom or materials[item.material_id].uom or "PIECE(S)",
                remarks=item.remarks,
            )
        )
    return built


def _pr_numbers(refs) -> list[dict]:
    return [ref.model_dump(mode="json") for ref in refs]


def _event_payload(mr: MaterialRequest, **extra) -> dict:
    payload = {
        "material_request_id": str(mr.id),
        "number": mr.number,
        "requested_by_person_id": str(mr.requested_by_person_id),
    }
    payload.update(extra)
    return payload


class MaterialRequests:
    @staticmethod
    def create(db: Session, ctx: RequestContext, payload: MaterialRequestCreate) -> MaterialRequest:
        with rollback_on_error(db, "material_request_create"):
            if not payload.pr_numbers:
                raise ValidationError("At least one PR number is required")
            if not payload.items:
                raise ValidationError("At least one item is required")
            requester = require_actor(db, ctx)
            if payload.from_stock_area_id is not None:
                _resolve_stock_area(db, ctx, payload.from_stock_area_id)
            if payload.requestor_id is not None:
                _resolve_requestor(db, payload.requestor_id)
            items = _build_items(db, ctx, payload.items)
            numbered_at = _numbering_time(payload.request_date)

            now = datetime.now(UTC)
            if settings.material_request_auto_submit:
                status, submitted_at = MaterialRequestStatus.submitted, now
            else:
                status, submitted_at = MaterialRequestStatus.draft, None

            mr = MaterialRequest(
                number=generate_material_request_number(db, now=numbered_at),
                pr_numbers=_pr_numbers(payload.pr_numbers),
                status=status,
                requested_by_person_id=requester.id,
                requestor_id=payload.requestor_id,
                from_stock_area_id=payload.from_stock_area_id,
                request_date=numbered_at.date(),
                ticket_id=payload.ticket_id,
                remarks=payload.remarks,
                org_id=ctx.org_id,
                submitted_at=submitted_at,
                items=items,
            )
            db.add(mr)
            db.flush()
            emit_event(
                db,
                ctx,
                EventType.material_request_created,
                ENTITY_TYPE,
                mr.id,
                _event_payload(
                    mr,
                    changes={"status": status.value, "item_count": len(items)},
                ),
            )
            db.commit()
        logger.info(
            "material_request_created mr_id=%s number=%s actor_id=%s", mr.id, mr.number, ctx.actor_id
        )
        return MaterialRequests.get(db, ctx, mr.id)

    @staticmethod
    def get(db: Session, ctx: RequestContext, mr_id) -> MaterialRequest:
        return _get_active(db, ctx, mr_id, options=_detail_options())

    @staticmethod
    def list(
        db: Session,
        ctx: RequestContext,
        status: str | None = None,
        requested_by: str | None = None,
        show_inactive: bool = False,
        page: int | None = 1,
        limit: int | None = None,
    ) -> Page:
        query = ctx.scope(db.query(MaterialRequest), MaterialRequest).options(*_detail_options())
        if not show_inactive:
            query = query.filter(MaterialRequest.is_active.is_(True))
        if status:
            normalized = status.strip().upper()
            matched = next((member for member in MaterialRequestStatus if member.value == normalized), None)
            if matched is None:
                logger.warning("material_request_list_ignored_status status=%s", status)
            else:
                query = query.filter(MaterialRequest.status == matched)
        if requested_by:
            query = query.filter(
                MaterialRequest.requested_by_person_id == coerce_uuid(requested_by, "requested_by")
            )
        query = query.order_by(MaterialRequest.created_at.desc())
        return paginate(query, page, limit)

    @staticmethod
    def update(db: Session, ctx: RequestContext, mr_id, payload: MaterialRequestUpdate) -> MaterialRequest:
        with rollback_on_error(db, "material_request_update"):
            mr = _get_active(db, ctx, mr_id, options=[selectinload(MaterialRequest.items)])
            if mr.status not in _EDITABLE_STATUSES:
                raise InvalidStateError(f"Cannot update material request in {mr.status.value} status")

            data = payload.model_dump(exclude_unset=True, exclude={"items", "pr_numbers"})
            if data.get("from_stock_area_id") not in (None, mr.from_stock_area_id):
                _resolve_stock_area(db, ctx, data["from_stock_area_id"])
            if data.get("requestor_id") not in (None, mr.requestor_id):
                _resolve_requestor(db, data["requestor_id"])
            changes = {}
            for field, value in data.items():
                before = getattr(mr, field)
                if before != value:
                    changes[field] = {"from": _jsonable(before), "to": _jsonable(value)}
                setattr(mr, field, value)

            if payload.pr_numbers is not None:
                if not payload.pr_numbers:
                    raise ValidationError("At least one PR number is required")
                mr.pr_numbers = _pr_numbers(payload.pr_numbers)
                changes["pr_numbers"] = mr.pr_numbers

            if payload.items is not None:
                if not payload.items:
                    raise ValidationError("At least one item is required")
                replacement = _build_items(db, ctx, payload.items)
                mr.items.clear()
                db.flush()
                mr.items.extend(replacement)
                changes["item_count"] = len(replacement)

            db.flush()
            emit_event(
                db,
                ctx,
                EventType.material_request_updated,
                ENTITY_TYPE,
                mr.id,
                _event_payload(mr, changes=changes),
            )
            db.commit()
        logger.info("material_request_updated mr_id=%s actor_id=%s", mr.id, ctx.actor_id)
        return MaterialRequests.get(db, ctx, mr.id)

    @staticmethod
    def submit(db: Session, ctx: RequestContext, mr_id) -> MaterialRequest:
        with rollback_on_error(db, "material_request_submit"):
            mr = _get_active(db, ctx, mr_id)
            if mr.status != MaterialRequestStatus.draft:
                raise InvalidStateError("Only draft requests can be submitted")
            mr.status = MaterialRequestStatus.submitted
            mr.submitted_at = datetime.now(UTC)
            emit_event(
                db,
                ctx,
                EventType.material_request_submitted,
                ENTITY_TYPE,
                mr.id,
                _event_payload(mr, changes={"status": {"from": "DRAFT", "to": "SUBMITTED"}}),
            )
            db.commit()
        logger.info("material_request_submitted mr_id=%s actor_id=%s", mr.id, ctx.actor_id)
        return MaterialRequests.get(db, ctx, mr.id)

    @staticmethod
    def approve_or_reject(
        db: Session, ctx: RequestContext, mr_id, decision: MaterialRequestDecision
    ) -> MaterialRequest:
        with rollback_on_error(db, "material_request_decision"):
            normalized = (decision.status or "").strip().upper()
            new_status = next(
                (member for member in _DECISION_STATUSES if member.value == normalized), None
            )
            if new_status is None:
                raise ValidationError("Status must be either APPROVED or REJECTED")

            mr = _get_active(db, ctx, mr_id, options=[selectinload(MaterialRequest.items)])
            transitions = dict(_DECISION_TRANSITIONS)
            if settings.material_request_allow_redecision:
                transitions.update(_REDECISION_TRANSITIONS)
            if new_status not in transitions.get(mr.status, set()):
                raise InvalidStateError(
                    f"Cannot change material request from {mr.status.value} to {new_status.value}"
                )
            approver = require_actor(db, ctx)

            previous = mr.status
            mr.status = new_status
            mr.approved_by_person_id = approver.id
            mr.approved_at = datetime.now(UTC)
            if decision.remarks is not None:
                mr.remarks = decision.remarks

            approved = {}
            if new_status == MaterialRequestStatus.approved and decision.approved_items:
                items_by_id = {item.id: item for item in mr.items}
                for entry in decision.approved_items:
                    item = items_by_id.get(entry.item_id)
                    if item is None:
                        logger.debug("material_request_decision_skipped_item item_id=%s", entry.item_id)
                        continue
                    quantity = entry.approved_quantity or item.requested_quantity
                    if quantity > item.requested_quantity:
                        raise ValidationError(
                            f"Approved quantity for item {item.id} cannot exceed requested quantity "
                            f"{item.requested_quantity}"
                        )
                    item.approved_quantity = quantity
                    approved[str(item.id)] = quantity

            event_type = (
                EventType.material_request_approved
                if new_status == MaterialRequestStatus.approved
                else EventType.material_request_rejected
            )
            changes = {"status": {"from": previous.value, "to": new_status.value}}
            if approved:
                changes["approved_quantities"] = approved
            emit_event(
                db,
                ctx,
                event_type,
                ENTITY_TYPE,
                mr.id,
                _event_payload(mr, remarks=mr.remarks, changes=changes),
            )
            db.commit()
        REQUEST_DECISIONS.labels(status=new_status.value).inc()
        logger.info(
            "material_request_%s mr_id=%s actor_id=%s",
            new_status.value.lower(),
            mr.id,
            ctx.actor_id,
        )
        return MaterialRequests.get(db, ctx, mr.id)

    @staticmethod
    def soft_delete(db: Session, ctx: RequestContext, mr_id) -> None:
        with rollback_on_error(db, "material_request_delete"):
            mr = _get_active(db, ctx, mr_id)
            mr.is_active = False
            emit_event(
                db,
                ctx,
                EventType.material_request_deleted,
                ENTITY_TYPE,
                mr.id,
                _event_payload(mr, changes={"is_active": {"from": True, "to": False}}),
            )
            db.commit()
        logger.info("material_request_deleted mr_id=%s actor_id=%s", mr.id, ctx.actor_id)


def _jsonable(value):
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


material_requests = MaterialRequests()
