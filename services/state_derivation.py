# services/state_derivation.py
"""Aggregate state of a production order, recomputed from its lines.

The order state is never maintained incrementally: every caller that changes
the line set (or a line's stage/state) re-runs ``rederive_order_state``,
which reads the current lines and applies ``derive_order_state``.
"""
import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from models import ProductionOrder, ProductionState, ServiceStage
from services.production_queries import lines_of_order, order_header_has_open_blocking

logger = logging.getLogger(__name__)


def derive_order_state(lines: Iterable) -> Optional[ProductionState]:
    """Pure rule over line state/stage. Returns None for an empty line set.

    Priority: any line in issue, then all lines produced, then any line past
    planning, else planned.
    """
    lines = list(lines)
    if not lines:
        return None
    if any(line.state == ProductionState.ISSUE.value for line in lines):
        return ProductionState.ISSUE
    if all(line.state == ProductionState.PRODUCED.value for line in lines):
        return ProductionState.PRODUCED
    if any(line.service_current != ServiceStage.PLANNING.value for line in lines):
        return ProductionState.IN_PRODUCTION
    return ProductionState.PLANNED


def rederive_order_state(db: Session, order: ProductionOrder) -> str:
    """Apply derive_order_state to the order's current lines.

    No lines: the order keeps its state. An order held in issue by a blocking
    anomaly on its header stays in issue whatever its lines say.
    """
    derived = derive_order_state(lines_of_order(db, order.id))
    if derived is None:
        return order.state
    if derived != ProductionState.ISSUE and order_header_has_open_blocking(db, order.id):
        derived = ProductionState.ISSUE

    if order.state != derived.value:
        logger.info("order %s state %s -> %s", order.code, order.state, derived.value)
        if derived == ProductionState.ISSUE:
            if order.state_before_issue is None:
                order.state_before_issue = order.state
        elif order.state == ProductionState.ISSUE.value:
            order.state_before_issue = None
        order.state = derived.value
        db.flush()
    return order.state
