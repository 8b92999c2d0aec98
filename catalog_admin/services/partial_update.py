"""
Partial update compilation.

A validated patch is turned into column assignments for a single-row UPDATE.
Only fields declared for the operation can ever become columns, and every
value is handed to SQLAlchemy as a bound parameter.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional
import logging

from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from catalog_admin.errors import NotFoundError, NothingToUpdateError

logger = logging.getLogger(__name__)


@dataclass
class CompiledUpdate:
    assignments: Dict[str, Any] = field(default_factory=dict)
    applied_fields: List[str] = field(default_factory=list)


def is_blank(value: Any) -> bool:
    """None and the empty string carry no update"""
    return value is None or value == ""


def compile_update(
    current: Optional[Any],
    patch: Mapping[str, Any],
    fields: Iterable[str],
    serializers: Optional[Mapping[str, Callable[[Any], Any]]] = None,
    touch_column: Optional[str] = "updated_at",
) -> CompiledUpdate:
    """Build the assignments for a partial update

    Args:
        current: the stored row being updated (``None`` means it does not exist)
        patch: validated values keyed by field name
        fields: updatable columns in compile order; nothing outside them is written
        serializers: storage conversions for fields whose column type differs
        touch_column: timestamp column stamped with ``now()``, if any

    Raises:
        NotFoundError: ``current`` is None
        NothingToUpdateError: no meaningful value left after dropping blanks
    """
    if current is None:
        raise NotFoundError("Record not found")

    serializers = serializers or {}
    compiled = CompiledUpdate()
    for name in fields:
        if name not in patch:
            continue
        value = patch[name]
        if is_blank(value):
            continue
        if name in serializers:
            value = serializers[name](value)
        compiled.assignments[name] = value
        compiled.applied_fields.append(name)

    if not compiled.applied_fields:
        raise NothingToUpdateError()

    if touch_column:
        compiled.assignments[touch_column] = func.now()
    return compiled


def execute_update(db: Session, model, record_id: Any, compiled: CompiledUpdate, *criteria) -> int:
    """Apply ``compiled`` to the row with ``record_id``. Returns affected rows.

    Extra ``criteria`` narrow the WHERE clause (compare-and-set). Does not
    commit; the caller owns the unit of work.
    """
    affected = db.query(model).filter(model.id == record_id, *criteria).update(
        compiled.assignments,
        synchronize_session=False
    )
    logger.debug(f"Updated {model.__tablename__}.{record_id}: {compiled.applied_fields} ({affected} row(s))")
    return affected
