# services/sales_import.py
"""One-time population of an empty production order from its sales order."""
import logging
from collections import OrderedDict
from typing import Dict, List, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from database import transaction
from models import (
    ProductionOrder,
    ProductionOrderLineSize,
    SalesOrder,
    SalesOrderLine,
)
from services.errors import Conflict, InvalidState, NotFound
from services.production_queries import get_or_404, lines_of_order
from services.state_derivation import rederive_order_state
from utils.sequencer import allocate_line

logger = logging.getLogger(__name__)

GroupKey = Tuple[str, str]


def group_key_string(key: GroupKey) -> str:
    article_ref, color = key
    return f"{article_ref}|{color}"


def group_sales_lines(sales_lines) -> List[Tuple[GroupKey, "OrderedDict[str, int]"]]:
    """Group by (article_ref, color or ""), summing qty per size.

    Groups come back in ascending ordinal order of their key string; sizes
    keep their first-seen order.
    """
    groups: Dict[GroupKey, "OrderedDict[str, int]"] = {}
    for sl in sales_lines:
        key = (sl.article_ref, sl.color or "")
        sizes = groups.setdefault(key, OrderedDict())
        sizes[sl.size] = sizes.get(sl.size, 0) + (sl.qty or 0)
    return sorted(groups.items(), key=lambda item: group_key_string(item[0]))


def import_from_sales(db: Session, order_id: int) -> dict:
    with transaction(db):
        order = get_or_404(db, ProductionOrder, order_id, "Production order")
        if not order.sale_ref:
            raise InvalidState("Production order has no sales order reference")
        if lines_of_order(db, order.id):
            raise Conflict("Production order already has lines; import only fills an empty order")

        sales_order = db.scalars(select(SalesOrder).where(SalesOrder.code == order.sale_ref)).first()
        if sales_order is None:
            raise NotFound(f"Sales order {order.sale_ref} not found")

        sales_lines = db.scalars(
            select(SalesOrderLine)
            .where(SalesOrderLine.sales_order_id == sales_order.id)
            .order_by(SalesOrderLine.id.asc())
        ).all()
        if not sales_lines:
            raise InvalidState(f"Sales order {sales_order.code} has no lines")

        details = []
        for (article_ref, color), sizes in group_sales_lines(sales_lines):
            total = sum(sizes.values())
            line = allocate_line(
                db,
                order,
                article_ref=article_ref,
                color=color or None,
                qty_ordered=total,
                qty_to_produce=total,
            )
            for size, qty in sizes.items():
                db.add(ProductionOrderLineSize(
                    production_order_line_id=line.id,
                    size=size,
                    qty_ordered=qty,
                    qty_to_produce=qty,
                    qty_produced=0,
                    qty_defect=0,
                ))
            details.append({
                "line_code": line.code,
                "article_ref": article_ref,
                "color": color or None,
                "sizes": [{"size": s, "qty": q} for s, q in sizes.items()],
            })

        db.flush()
        rederive_order_state(db, order)
        logger.info(
            "imported %s line(s) from sales order %s into %s",
            len(details), sales_order.code, order.code,
        )

    return {"created_lines": len(details), "details": details}
