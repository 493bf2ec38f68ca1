# services/anomalies.py
import logging
from typing import List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from database import transaction
from models import (
    IN_FLIGHT_STAGES,
    ProductionAnomaly,
    ProductionOrder,
    ProductionOrderLine,
    ServiceStage,
    Severity,
)
from services.anomaly_propagation import propagate
from services.errors import NotFound, ValidationError
from services.production_queries import get_or_404
from services.validation import as_enum, required_text

logger = logging.getLogger(__name__)

PATCHABLE = ("service", "severity", "description", "is_blocking", "resolved")


def _clean(data: Mapping) -> dict:
    out = {}
    if "service" in data:
        if not data["service"]:
            raise ValidationError("service is required")
        out["service"] = as_enum(ServiceStage, data["service"], "service", allowed=IN_FLIGHT_STAGES).value
    if "severity" in data:
        out["severity"] = as_enum(Severity, data["severity"], "severity").value
    if "description" in data:
        out["description"] = required_text(data["description"], "description")
    for flag in ("is_blocking", "resolved"):
        if flag in data:
            if not isinstance(data[flag], bool):
                raise ValidationError(f"{flag} must be a boolean")
            out[flag] = data[flag]
    return out


def _affected(anomaly: ProductionAnomaly):
    lines = [anomaly.production_order_line_id] if anomaly.production_order_line_id else []
    return lines, [anomaly.production_order_id]


def list_anomalies(
    db: Session,
    *,
    production_order_id: Optional[int] = None,
    production_order_line_id: Optional[int] = None,
    open_only: bool = False,
) -> List[ProductionAnomaly]:
    stmt = select(ProductionAnomaly)
    if production_order_id is not None:
        stmt = stmt.where(ProductionAnomaly.production_order_id == production_order_id)
    if production_order_line_id is not None:
        stmt = stmt.where(ProductionAnomaly.production_order_line_id == production_order_line_id)
    if open_only:
        stmt = stmt.where(ProductionAnomaly.resolved.is_(False))
    return list(db.scalars(stmt.order_by(ProductionAnomaly.id.desc())).all())


def create_anomaly(db: Session, payload: Mapping) -> ProductionAnomaly:
    """Record an anomaly on an order and/or one of its lines, then propagate."""
    for field in ("service", "severity", "description"):
        if field not in payload:
            raise ValidationError(f"{field} is required")
    data = _clean(payload)
    data.setdefault("is_blocking", False)
    data.setdefault("resolved", False)

    order_id = payload.get("production_order_id")
    line_id = payload.get("production_order_line_id")
    if order_id is None and line_id is None:
        raise ValidationError("production_order_id or production_order_line_id is required")

    with transaction(db):
        if line_id is not None:
            line = get_or_404(db, ProductionOrderLine, line_id, "Production order line")
            if order_id is None:
                order_id = line.production_order_id
            elif order_id != line.production_order_id:
                raise ValidationError("Line does not belong to the given production order")
        if db.get(ProductionOrder, order_id) is None:
            raise NotFound("Production order not found")

        anomaly = ProductionAnomaly(
            production_order_id=order_id,
            production_order_line_id=line_id,
            **data,
        )
        db.add(anomaly)
        db.flush()
        logger.info(
            "anomaly %s raised on order %s line %s (blocking=%s)",
            anomaly.id, order_id, line_id, anomaly.is_blocking,
        )
        propagate(db, *_affected(anomaly))

    db.refresh(anomaly)
    return anomaly


def update_anomaly(db: Session, anomaly_id: int, patch: Mapping) -> ProductionAnomaly:
    unknown = set(patch) - set(PATCHABLE)
    if unknown:
        raise ValidationError(f"Unknown anomaly fields: {', '.join(sorted(unknown))}")
    data = _clean(patch)

    with transaction(db):
        anomaly = get_or_404(db, ProductionAnomaly, anomaly_id, "Anomaly")
        for k, v in data.items():
            setattr(anomaly, k, v)
        db.flush()
        logger.info(
            "anomaly %s updated (blocking=%s, resolved=%s)",
            anomaly.id, anomaly.is_blocking, anomaly.resolved,
        )
        propagate(db, *_affected(anomaly))

    db.refresh(anomaly)
    return anomaly


def delete_anomaly(db: Session, anomaly_id: int) -> None:
    with transaction(db):
        anomaly = get_or_404(db, ProductionAnomaly, anomaly_id, "Anomaly")
        line_ids, order_ids = _affected(anomaly)
        db.delete(anomaly)
        db.flush()
        logger.info("anomaly %s deleted", anomaly_id)
        propagate(db, line_ids, order_ids)
