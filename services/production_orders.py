# services/production_orders.py
import logging
from typing import List, Mapping, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from database import transaction
from models import IN_FLIGHT_STAGES, ProductionOrder, ProductionState, ServiceStage
from services.anomaly_propagation import propagate
from services.errors import Conflict, NotFound, ValidationError
from services.production_queries import get_or_404
from services.validation import as_enum
from utils.code_generator import next_code_yearly, wants_autogen

logger = logging.getLogger(__name__)

CODE_PREFIX = "PRD"
HEADER_FIELDS = (
    "sale_ref",
    "customer_name",
    "service_current",
    "state",
    "date_order",
    "date_delivery_requested",
    "date_start_plan",
    "date_end_estimated",
)


def _clean_header(data: dict) -> dict:
    if "service_current" in data:
        data["service_current"] = as_enum(
            ServiceStage, data["service_current"], "service_current", allowed=IN_FLIGHT_STAGES
        ).value
    if "state" in data:
        state = as_enum(ProductionState, data["state"], "state")
        if state == ProductionState.ISSUE:
            raise ValidationError("issue state is set by blocking anomalies only")
        data["state"] = state.value
    if "sale_ref" in data:
        data["sale_ref"] = (data["sale_ref"] or "").strip() or None
    return data


def _insert_order(db: Session, code: str, data: dict) -> ProductionOrder:
    order = ProductionOrder(code=code, **data)
    # savepoint: a duplicate code only discards this insert
    with db.begin_nested():
        db.add(order)
        db.flush()
    return order


def create_order(db: Session, payload: Mapping) -> ProductionOrder:
    data = dict(payload)
    raw_code = data.pop("code", None)
    unknown = set(data) - set(HEADER_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown order fields: {', '.join(sorted(unknown))}")
    data = _clean_header(data)
    autogen = wants_autogen(raw_code)

    with transaction(db):
        if autogen:
            code = next_code_yearly(db, ProductionOrder, "code", prefix=CODE_PREFIX)
        else:
            code = raw_code.strip()
            if db.scalars(select(ProductionOrder).where(ProductionOrder.code == code)).first():
                raise Conflict("Production order code already exists")

        try:
            order = _insert_order(db, code, data)
        except IntegrityError as exc:
            if not autogen:
                raise Conflict("Production order code already exists") from exc
            # another writer took the generated number between read and insert
            retry_code = next_code_yearly(db, ProductionOrder, "code", prefix=CODE_PREFIX)
            logger.warning("production order code %s already taken, retrying with %s", code, retry_code)
            try:
                order = _insert_order(db, retry_code, data)
            except IntegrityError as exc2:
                raise Conflict("Could not generate a production order code; retry the request") from exc2

        logger.info("production order %s created", order.code)

    db.refresh(order)
    return order


def list_orders(
    db: Session,
    *,
    state: Optional[str] = None,
    service_current: Optional[str] = None,
    q: Optional[str] = None,
) -> List[ProductionOrder]:
    stmt = select(ProductionOrder)
    if state:
        stmt = stmt.where(ProductionOrder.state == as_enum(ProductionState, state, "state").value)
    if service_current:
        stmt = stmt.where(
            ProductionOrder.service_current == as_enum(ServiceStage, service_current, "service_current").value
        )
    if q and q.strip():
        pat = f"%{q.strip()}%"
        stmt = stmt.where(or_(
            ProductionOrder.code.ilike(pat),
            ProductionOrder.sale_ref.ilike(pat),
            ProductionOrder.customer_name.ilike(pat),
        ))
    stmt = stmt.order_by(ProductionOrder.updated_at.desc(), ProductionOrder.id.desc())
    return list(db.scalars(stmt).all())


def get_order(db: Session, order_id: int) -> ProductionOrder:
    stmt = (
        select(ProductionOrder)
        .options(selectinload(ProductionOrder.lines), selectinload(ProductionOrder.anomalies))
        .where(ProductionOrder.id == order_id)
    )
    order = db.scalars(stmt).first()
    if order is None:
        raise NotFound("Production order not found")
    return order


def update_order_header(db: Session, order_id: int, patch: Mapping) -> ProductionOrder:
    """Administrative header edit. The order code is immutable."""
    data = dict(patch)
    if "code" in data:
        raise ValidationError("code cannot be changed")
    unknown = set(data) - set(HEADER_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown order fields: {', '.join(sorted(unknown))}")
    data = _clean_header(data)

    with transaction(db):
        order = get_or_404(db, ProductionOrder, order_id, "Production order")
        for k, v in data.items():
            setattr(order, k, v)
        db.flush()
        if "state" in data:
            # an order with open blocking anomalies goes straight back to issue
            propagate(db, [], [order.id], rederive=False)

    db.refresh(order)
    return order


def delete_order(db: Session, order_id: int) -> None:
    with transaction(db):
        order = get_or_404(db, ProductionOrder, order_id, "Production order")
        logger.info("production order %s deleted", order.code)
        db.delete(order)
