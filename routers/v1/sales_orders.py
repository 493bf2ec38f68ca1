# routers/v1/sales_orders.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from database import get_db, transaction
from generic_router import make_crud_router
from models import SalesOrder, SalesOrderLine
from schemas import (
    SalesOrderCreate,
    SalesOrderDetailOut,
    SalesOrderLineCreate,
    SalesOrderLineOut,
    SalesOrderLineUpdate,
    SalesOrderOut,
    SalesOrderUpdate,
)
from services.errors import NotFound
from services.production_queries import get_or_404
from utils.code_generator import next_code_yearly, wants_autogen

CODE_PREFIX = "SO"


def _assign_code(db: Session, data: dict) -> dict:
    raw_code = data.get("code")
    if wants_autogen(raw_code):
        data["code"] = next_code_yearly(db, SalesOrder, "code", prefix=CODE_PREFIX)
    else:
        data["code"] = raw_code.strip()
    return data


# ---------- CRUD (header) ----------
router = make_crud_router(
    SalesOrder,
    "sales-orders",
    create_schema=SalesOrderCreate,
    update_schema=SalesOrderUpdate,
    out_schema=SalesOrderOut,
    label="Sales order",
    list_order_by=SalesOrder.id.desc(),
    unique_fields=["code"],
    before_create=_assign_code,
)


# ---------- Lines ----------
@router.get("/{order_id}/detail", response_model=SalesOrderDetailOut)
def get_sales_order_detail(order_id: int, db: Session = Depends(get_db)):
    so = db.scalars(
        select(SalesOrder)
        .options(selectinload(SalesOrder.lines))
        .where(SalesOrder.id == order_id)
    ).first()
    if so is None:
        raise NotFound("Sales order not found")
    return so


@router.get("/{order_id}/lines", response_model=List[SalesOrderLineOut])
def list_sales_order_lines(order_id: int, db: Session = Depends(get_db)):
    so = get_or_404(db, SalesOrder, order_id, "Sales order")
    return so.lines


@router.post(
    "/{order_id}/lines",
    response_model=SalesOrderLineOut,
    status_code=status.HTTP_201_CREATED,
)
def add_sales_order_line(order_id: int, payload: SalesOrderLineCreate, db: Session = Depends(get_db)):
    with transaction(db):
        get_or_404(db, SalesOrder, order_id, "Sales order")
        line = SalesOrderLine(sales_order_id=order_id, **payload.model_dump())
        db.add(line)
    db.refresh(line)
    return line


lines_router = APIRouter(prefix="/sales-order-lines", tags=["sales_orders"])


@lines_router.patch("/{line_id}", response_model=SalesOrderLineOut)
def update_sales_order_line(line_id: int, payload: SalesOrderLineUpdate, db: Session = Depends(get_db)):
    with transaction(db):
        line = get_or_404(db, SalesOrderLine, line_id, "Sales order line")
        for k, v in payload.model_dump(exclude_unset=True).items():
            if v is None and k != "color":
                continue
            setattr(line, k, v)
    db.refresh(line)
    return line


@lines_router.delete("/{line_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sales_order_line(line_id: int, db: Session = Depends(get_db)):
    with transaction(db):
        db.delete(get_or_404(db, SalesOrderLine, line_id, "Sales order line"))
    return None
