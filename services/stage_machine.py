# services/stage_machine.py
"""Per-line progression: planning -> cutting -> services -> sewing -> finishing -> produced."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from database import transaction
from models import ProductionOrder, ProductionOrderLine, ProductionState, ServiceStage
from services.errors import Blocked, InvalidState, PreconditionFailed
from services.production_queries import get_or_404, line_has_open_blocking
from services.state_derivation import rederive_order_state

logger = logging.getLogger(__name__)

STAGE_FLOW = (
    ServiceStage.PLANNING,
    ServiceStage.CUTTING,
    ServiceStage.SERVICES,
    ServiceStage.SEWING,
    ServiceStage.FINISHING,
    ServiceStage.PRODUCED,
)


def next_stage(stage: str) -> Optional[ServiceStage]:
    idx = STAGE_FLOW.index(ServiceStage(stage))
    if idx + 1 >= len(STAGE_FLOW):
        return None
    return STAGE_FLOW[idx + 1]


def _check_exit_guard(line: ProductionOrderLine) -> None:
    if line.service_current == ServiceStage.CUTTING.value and (line.qty_produced or 0) <= 0:
        raise PreconditionFailed("cutting not completed")
    if line.service_current == ServiceStage.FINISHING.value and (line.qty_produced or 0) < (line.qty_to_produce or 0):
        raise PreconditionFailed("produced quantity insufficient")


def advance_line(db: Session, line_id: int) -> ProductionOrderLine:
    """Move a line one stage forward, then re-derive its order."""
    with transaction(db):
        line = get_or_404(db, ProductionOrderLine, line_id, "Production order line")

        if line_has_open_blocking(db, line.id):
            raise Blocked(f"Line {line.code} has an unresolved blocking anomaly")

        _check_exit_guard(line)

        successor = next_stage(line.service_current)
        if successor is None:
            raise InvalidState("already produced")

        logger.info("line %s stage %s -> %s", line.code, line.service_current, successor.value)
        line.service_current = successor.value
        if successor == ServiceStage.PRODUCED:
            line.state = ProductionState.PRODUCED.value

        order = db.get(ProductionOrder, line.production_order_id)
        rederive_order_state(db, order)

    db.refresh(line)
    return line
