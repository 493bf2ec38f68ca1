# services/production_lines.py
"""Line and size operations.

``update_line`` is the administrative override: it writes stage/state/qty
fields directly, without the stage machine's guards. The issue state stays
under the anomaly propagator's control either way.
"""
import logging
from typing import List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import transaction
from models import (
    IN_FLIGHT_STAGES,
    ProductionAnomaly,
    ProductionOrder,
    ProductionOrderLine,
    ProductionOrderLineSize,
    ProductionState,
    ServiceStage,
)
from services.anomaly_propagation import propagate
from services.errors import Conflict, ValidationError
from services.production_queries import get_or_404
from services.state_derivation import rederive_order_state
from services.validation import as_enum, non_negative_int, required_text
from utils.sequencer import allocate_line

logger = logging.getLogger(__name__)

LINE_QTY_FIELDS = ("qty_ordered", "qty_to_produce", "qty_produced", "qty_defect")


def _settable_state(value) -> ProductionState:
    state = as_enum(ProductionState, value, "state")
    if state == ProductionState.ISSUE:
        raise ValidationError("issue state is set by blocking anomalies only")
    return state


# ---------- Lines ----------

def create_line(db: Session, order_id: int, payload: Mapping) -> ProductionOrderLine:
    """Allocate the next seq/code on the order, insert the line, re-derive the order."""
    article_ref = required_text(payload.get("article_ref"), "article_ref")
    qty_ordered = non_negative_int(payload.get("qty_ordered", 0) or 0, "qty_ordered")
    qty_to_produce = payload.get("qty_to_produce")
    if qty_to_produce is not None:
        qty_to_produce = non_negative_int(qty_to_produce, "qty_to_produce")
    stage = as_enum(
        ServiceStage, payload.get("service_current") or ServiceStage.PLANNING,
        "service_current", allowed=IN_FLIGHT_STAGES,
    )
    state = _settable_state(payload.get("state") or ProductionState.DRAFT)

    with transaction(db):
        order = get_or_404(db, ProductionOrder, order_id, "Production order")
        line = allocate_line(
            db,
            order,
            article_ref=article_ref,
            color=payload.get("color"),
            qty_ordered=qty_ordered,
            qty_to_produce=qty_to_produce,
            service_current=stage.value,
            state=state.value,
        )
        logger.info("line %s created on order %s", line.code, order.code)
        rederive_order_state(db, order)

    db.refresh(line)
    return line


def update_line(db: Session, line_id: int, patch: Mapping) -> ProductionOrderLine:
    data = dict(patch)

    if "article_ref" in data:
        data["article_ref"] = required_text(data["article_ref"], "article_ref")
    for f in LINE_QTY_FIELDS:
        if f in data:
            data[f] = non_negative_int(data[f], f)
    if "service_current" in data:
        data["service_current"] = as_enum(
            ServiceStage, data["service_current"], "service_current", allowed=IN_FLIGHT_STAGES
        ).value
    if "state" in data:
        data["state"] = _settable_state(data["state"]).value

    allowed = ("article_ref", "color", *LINE_QTY_FIELDS, "service_current", "state")
    unknown = set(data) - set(allowed)
    if unknown:
        raise ValidationError(f"Unknown line fields: {', '.join(sorted(unknown))}")

    with transaction(db):
        line = get_or_404(db, ProductionOrderLine, line_id, "Production order line")
        for k, v in data.items():
            setattr(line, k, v)
        db.flush()
        # re-applies issue if the line is still blocked, then re-derives the order
        propagate(db, [line.id], [line.production_order_id])

    db.refresh(line)
    return line


def delete_line(db: Session, line_id: int) -> None:
    with transaction(db):
        line = get_or_404(db, ProductionOrderLine, line_id, "Production order line")
        order_id = line.production_order_id

        # anomalies outlive the line; they stay attached to the order
        detached = db.scalars(
            select(ProductionAnomaly).where(ProductionAnomaly.production_order_line_id == line.id)
        ).all()
        for anomaly in detached:
            anomaly.production_order_line_id = None
        db.flush()

        logger.info("line %s deleted", line.code)
        db.delete(line)
        db.flush()
        propagate(db, [], [order_id])


# ---------- Sizes ----------

def list_line_sizes(db: Session, line_id: int) -> List[ProductionOrderLineSize]:
    get_or_404(db, ProductionOrderLine, line_id, "Production order line")
    stmt = (
        select(ProductionOrderLineSize)
        .where(ProductionOrderLineSize.production_order_line_id == line_id)
        .order_by(ProductionOrderLineSize.id.asc())
    )
    return list(db.scalars(stmt).all())


def upsert_line_size(
    db: Session,
    line_id: int,
    size: str,
    qty_ordered: int,
    qty_to_produce: Optional[int] = None,
) -> List[ProductionOrderLineSize]:
    """Insert or update the size row labelled ``size``; returns all sizes of the line."""
    size = required_text(size, "size")
    qty_ordered = non_negative_int(qty_ordered, "qty_ordered")
    if qty_to_produce is None:
        qty_to_produce = qty_ordered
    qty_to_produce = non_negative_int(qty_to_produce, "qty_to_produce")

    with transaction(db):
        get_or_404(db, ProductionOrderLine, line_id, "Production order line")
        row = db.scalars(
            select(ProductionOrderLineSize).where(
                ProductionOrderLineSize.production_order_line_id == line_id,
                ProductionOrderLineSize.size == size,
            )
        ).first()
        if row is None:
            row = ProductionOrderLineSize(
                production_order_line_id=line_id,
                size=size,
                qty_produced=0,
                qty_defect=0,
            )
            db.add(row)
        row.qty_ordered = qty_ordered
        row.qty_to_produce = qty_to_produce
        try:
            db.flush()
        except IntegrityError as exc:
            # the same label was inserted concurrently
            raise Conflict(f"Size {size} already exists on this line; retry the request") from exc

    return list_line_sizes(db, line_id)


def update_line_size(db: Session, size_id: int, patch: Mapping) -> ProductionOrderLineSize:
    data = dict(patch)
    for f in LINE_QTY_FIELDS:
        if f in data:
            data[f] = non_negative_int(data[f], f)
    unknown = set(data) - set(LINE_QTY_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown size fields: {', '.join(sorted(unknown))}")

    with transaction(db):
        row = get_or_404(db, ProductionOrderLineSize, size_id, "Line size")
        for k, v in data.items():
            setattr(row, k, v)

    db.refresh(row)
    return row


def delete_line_size(db: Session, size_id: int) -> None:
    with transaction(db):
        row = get_or_404(db, ProductionOrderLineSize, size_id, "Line size")
        db.delete(row)
