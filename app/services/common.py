import enum
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Query, Session

from app.errors import NotFoundError, ValidationError, WarehouseError

logger = logging.getLogger(__name__)


def coerce_uuid(value, field: str = "id") -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid {field}: {value}") from exc


def get_or_404(
    db: Session,
    model,
    record_id,
    detail: str | None = None,
    options: list | None = None,
    status_code: int | None = None,
):
    try:
        pk = coerce_uuid(record_id)
    except ValidationError:
        # A malformed id can never match a row.
        raise NotFoundError(detail or f"{model.__name__} not found", status_code=status_code) from None
    query = db.query(model)
    if options:
        query = query.options(*options)
    record = query.filter(model.id == pk).first()
    if not record:
        raise NotFoundError(detail or f"{model.__name__} not found", status_code=status_code)
    return record


def validate_enum(value: str, enum_cls: type[enum.Enum], field: str) -> enum.Enum:
    normalized = value.strip().upper()
    for member in enum_cls:
        if member.value == normalized or member.name.upper() == normalized:
            return member
    allowed = ", ".join(member.value for member in enum_cls)
    raise ValidationError(f"Invalid {field}: {value}. Allowed values: {allowed}")


def apply_is_active_filter(query: Query, model, is_active: bool | None) -> Query:
    if is_active is None:
        return query.filter(model.is_active.is_(True))
    return query.filter(model.is_active == is_active)


def apply_ordering(query: Query, order_by: str, order_dir: str, allowed_columns: dict) -> Query:
    if order_by not in allowed_columns:
        allowed = ", ".join(sorted(allowed_columns))
        raise ValidationError(f"Invalid order_by. Allowed: {allowed}")
    column = allowed_columns[order_by]
    if order_dir == "asc":
        return query.order_by(column.asc())
    return query.order_by(column.desc())


@contextmanager
def rollback_on_error(db: Session, operation: str) -> Iterator[None]:
    """Roll the session back and re-raise when the wrapped block fails."""
    try:
        yield
    except WarehouseError as exc:
        db.rollback()
        logger.warning("%s_failed status=%s detail=%s", operation, exc.status_code, exc.detail)
        raise
    except Exception:
        db.rollback()
        logger.exception("%s_failed", operation)
        raise
