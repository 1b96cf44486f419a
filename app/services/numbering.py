from datetime import UTC, datetime

from sqlalchemy.orm import Session

from app.config import settings
from app.models.sequence import DocumentSequence


def _format_number(prefix: str | None, padding: int | None, value: int) -> str:
    prefix_value = prefix or ""
    pad = max(int(padding or 0), 0)
    if pad > 0:
        return f"{prefix_value}{value:0{pad}d}"
    return f"{prefix_value}{value}"


def _resolve_dynamic_prefix(prefix: str | None, now: datetime | None = None) -> tuple[str, bool]:
    if not prefix:
        return "", False
    now = now or datetime.now(UTC)
    tokens = {
        "{YYYYMMDD}": now.strftime("%Y%m%d"),
        "{YYYYMM}": now.strftime("%Y%m"),
        "{YYYY}": now.strftime("%Y"),
        "{MON}": now.strftime("%b").upper(),
        "{MM}": now.strftime("%m"),
        "{DD}": now.strftime("%d"),
    }
    rendered = prefix
    dynamic = False
    for token, value in tokens.items():
        if token in rendered:
            rendered = rendered.replace(token, value)
            dynamic = True
    return rendered, dynamic


def _next_sequence_value(db: Session, key: str, start_value: int) -> int:
    sequence = db.query(DocumentSequence).filter(DocumentSequence.key == key).with_for_update().first()
    if not sequence:
        sequence = DocumentSequence(key=key, next_value=start_value)
        db.add(sequence)
        db.flush()
    value = sequence.next_value
    sequence.next_value = value + 1
    db.flush()
    return value


def generate_number(
    db: Session,
    sequence_key: str,
    prefix_template: str | None,
    padding: int | None = None,
    start_value: int = 1,
    now: datetime | None = None,
) -> str:
    prefix, has_dynamic_prefix = _resolve_dynamic_prefix(prefix_template, now)
    # Time-based prefixes restart their counter for each rendered period.
    effective_sequence_key = f"{sequence_key}:{prefix}" if has_dynamic_prefix else sequence_key
    value = _next_sequence_value(db, effective_sequence_key, start_value)
    return _format_number(prefix, padding, value)


def generate_material_request_number(db: Session, now: datetime | None = None) -> str | None:
    if not settings.material_request_number_enabled:
        return None
    return generate_number(
        db,
        sequence_key="material_request_number",
        prefix_template=settings.material_request_number_prefix,
        padding=settings.material_request_number_padding,
        now=now,
    )
