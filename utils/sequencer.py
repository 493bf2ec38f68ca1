# utils/sequencer.py
import logging

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models import ProductionOrder, ProductionOrderLine, ProductionState, ServiceStage
from services.errors import Conflict

logger = logging.getLogger(__name__)

# constraint names from models.ProductionOrderLine.__table_args__
_SEQ_CONSTRAINTS = ("uq_pol_order_seq", "uq_pol_order_code")
_SQLITE_SEQ_MARKERS = (
    "production_order_lines.production_order_id, production_order_lines.seq",
    "production_order_lines.production_order_id, production_order_lines.code",
)


def line_code(order_code: str, seq: int) -> str:
    return f"{order_code}.{seq}"


def _max_seq(db: Session, order_id: int) -> int:
    stmt = select(func.coalesce(func.max(ProductionOrderLine.seq), 0)).where(
        ProductionOrderLine.production_order_id == order_id
    )
    return int(db.execute(stmt).scalar_one() or 0)


def is_seq_collision(exc: IntegrityError) -> bool:
    """True when the violation is the (order, seq) / (order, code) uniqueness."""
    text = str(exc.orig)
    return any(name in text for name in _SEQ_CONSTRAINTS) or any(
        marker in text for marker in _SQLITE_SEQ_MARKERS
    )


def _insert_line(db: Session, order: ProductionOrder, seq: int, fields: dict) -> ProductionOrderLine:
    line = ProductionOrderLine(
        production_order_id=order.id,
        seq=seq,
        code=line_code(order.code, seq),
        **fields,
    )
    # savepoint: a collision only discards this insert, not the caller's transaction
    with db.begin_nested():
        db.add(line)
        db.flush()
    return line


def allocate_line(
    db: Session,
    order: ProductionOrder,
    *,
    article_ref: str,
    color: str | None = None,
    qty_ordered: int = 0,
    qty_to_produce: int | None = None,
    service_current: str = ServiceStage.PLANNING.value,
    state: str = ProductionState.DRAFT.value,
) -> ProductionOrderLine:
    """Insert the next line of ``order`` as ``{order.code}.{seq}``.

    ``seq`` is max(existing) + 1. Reading the max and inserting are not
    atomic, so a concurrent writer can take the same number first; on that
    uniqueness violation the insert is retried exactly once with ``seq + 1``.
    A second collision is reported as Conflict.
    """
    fields = dict(
        article_ref=article_ref,
        color=color or None,
        qty_ordered=qty_ordered,
        qty_to_produce=qty_ordered if qty_to_produce is None else qty_to_produce,
        qty_produced=0,
        qty_defect=0,
        service_current=service_current,
        state=state,
    )

    seq = _max_seq(db, order.id) + 1
    try:
        return _insert_line(db, order, seq, fields)
    except IntegrityError as exc:
        if not is_seq_collision(exc):
            raise
        logger.warning(
            "line seq %s already taken on order %s, retrying with %s",
            seq, order.code, seq + 1,
        )

    try:
        return _insert_line(db, order, seq + 1, fields)
    except IntegrityError as exc:
        if not is_seq_collision(exc):
            raise
        raise Conflict(
            f"Could not allocate a line number on order {order.code}; retry the request"
        ) from exc
