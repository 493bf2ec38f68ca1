# services/anomaly_propagation.py
"""Keeps the "issue" state in step with open blocking anomalies.

An order or line is in issue exactly when an unresolved blocking anomaly is
attached to it (for an order: on its header or on one of its lines). Callers
pass the ids touched by an anomaly mutation; nothing else is rescanned.
"""
import logging
from typing import Iterable

from sqlalchemy.orm import Session

from models import ProductionOrder, ProductionOrderLine, ProductionState
from services.production_queries import (
    line_has_open_blocking,
    order_has_issue_line,
    order_header_has_open_blocking,
)
from services.state_derivation import rederive_order_state

logger = logging.getLogger(__name__)

# an order restored from issue goes back to in_production if it had got this far
_REACHED_OUTPUT = {
    ProductionState.PRODUCED.value,
    ProductionState.INVOICED.value,
    ProductionState.SHIPPED.value,
}


def _sync_line(db: Session, line: ProductionOrderLine) -> None:
    blocked = line_has_open_blocking(db, line.id)
    if blocked and line.state != ProductionState.ISSUE.value:
        logger.info("line %s forced to issue (was %s)", line.code, line.state)
        line.state = ProductionState.ISSUE.value
    elif not blocked and line.state == ProductionState.ISSUE.value:
        order = db.get(ProductionOrder, line.production_order_id)
        # a line never inherits the order's issue label
        if order.state == ProductionState.ISSUE.value:
            target = ProductionState.DRAFT.value
        else:
            target = order.state
        logger.info("line %s released from issue -> %s", line.code, target)
        line.state = target


def _sync_order(db: Session, order: ProductionOrder) -> None:
    held = order_has_issue_line(db, order.id) or order_header_has_open_blocking(db, order.id)
    if held and order.state != ProductionState.ISSUE.value:
        logger.info("order %s forced to issue (was %s)", order.code, order.state)
        # an admin edit during an issue does not replace the state held before it
        if order.state_before_issue is None:
            order.state_before_issue = order.state
        order.state = ProductionState.ISSUE.value
    elif not held and order.state == ProductionState.ISSUE.value:
        if order.state_before_issue in _REACHED_OUTPUT:
            target = ProductionState.IN_PRODUCTION.value
        else:
            target = ProductionState.DRAFT.value
        logger.info("order %s released from issue -> %s", order.code, target)
        order.state = target
        order.state_before_issue = None


def propagate(
    db: Session,
    line_ids: Iterable[int],
    order_ids: Iterable[int],
    *,
    rederive: bool = True,
) -> None:
    """Force or release issue on the given lines, then on the given orders.

    Orders owning any of the lines are included. Each order is re-derived
    from its lines afterwards unless ``rederive`` is False.
    """
    order_ids = {oid for oid in order_ids if oid is not None}

    for line_id in sorted({lid for lid in line_ids if lid is not None}):
        line = db.get(ProductionOrderLine, line_id)
        if line is None:
            continue
        order_ids.add(line.production_order_id)
        _sync_line(db, line)
    db.flush()

    for order_id in sorted(order_ids):
        order = db.get(ProductionOrder, order_id)
        if order is None:
            continue
        _sync_order(db, order)
        db.flush()
        if rederive:
            rederive_order_state(db, order)
