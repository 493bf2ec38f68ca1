# services/production_queries.py
"""Read helpers shared by the stage machine, derivation and propagation."""
from typing import List

from sqlalchemy import select, exists
from sqlalchemy.orm import Session

from models import ProductionAnomaly, ProductionOrderLine, ProductionState

from services.errors import NotFound


def _open_blocking():
    return (ProductionAnomaly.is_blocking.is_(True)) & (ProductionAnomaly.resolved.is_(False))


def line_has_open_blocking(db: Session, line_id: int) -> bool:
    db.flush()
    stmt = select(
        exists().where(
            ProductionAnomaly.production_order_line_id == line_id,
            _open_blocking(),
        )
    )
    return bool(db.execute(stmt).scalar())


def order_header_has_open_blocking(db: Session, order_id: int) -> bool:
    """Blocking anomalies raised on the order itself, not on one of its lines."""
    db.flush()
    stmt = select(
        exists().where(
            ProductionAnomaly.production_order_id == order_id,
            ProductionAnomaly.production_order_line_id.is_(None),
            _open_blocking(),
        )
    )
    return bool(db.execute(stmt).scalar())


def order_has_issue_line(db: Session, order_id: int) -> bool:
    db.flush()
    stmt = select(
        exists().where(
            ProductionOrderLine.production_order_id == order_id,
            ProductionOrderLine.state == ProductionState.ISSUE.value,
        )
    )
    return bool(db.execute(stmt).scalar())


def lines_of_order(db: Session, order_id: int) -> List[ProductionOrderLine]:
    db.flush()
    stmt = (
        select(ProductionOrderLine)
        .where(ProductionOrderLine.production_order_id == order_id)
        .order_by(ProductionOrderLine.seq.asc())
    )
    return list(db.scalars(stmt).all())


def get_or_404(db: Session, model, obj_id: int, label: str):
    obj = db.get(model, obj_id)
    if obj is None:
        raise NotFound(f"{label} not found")
    return obj
