# routers/v1/production_orders.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from schemas import (
    ImportResultOut,
    ProductionOrderCreate,
    ProductionOrderDetailOut,
    ProductionOrderLineCreate,
    ProductionOrderLineOut,
    ProductionOrderOut,
    ProductionOrderUpdate,
)
from services import production_lines, production_orders
from services.sales_import import import_from_sales

router = APIRouter(prefix="/production-orders", tags=["production_orders"])


# ---------- CREATE ----------
@router.post("", response_model=ProductionOrderOut, status_code=status.HTTP_201_CREATED)
def create_production_order(payload: ProductionOrderCreate, db: Session = Depends(get_db)):
    return production_orders.create_order(db, payload.model_dump(exclude_unset=True))


# ---------- LIST ----------
@router.get("", response_model=List[ProductionOrderOut])
def list_production_orders(
    state: Optional[str] = Query(None),
    service_current: Optional[str] = Query(None),
    q: Optional[str] = Query(None, description="search code / sale_ref / customer"),
    db: Session = Depends(get_db),
):
    return production_orders.list_orders(db, state=state, service_current=service_current, q=q)


# ---------- GET ----------
@router.get("/{order_id}", response_model=ProductionOrderDetailOut)
def get_production_order(order_id: int, db: Session = Depends(get_db)):
    return production_orders.get_order(db, order_id)


# ---------- UPDATE ----------
@router.patch("/{order_id}", response_model=ProductionOrderOut)
def update_production_order(order_id: int, payload: ProductionOrderUpdate, db: Session = Depends(get_db)):
    return production_orders.update_order_header(db, order_id, payload.model_dump(exclude_unset=True))


# ---------- DELETE ----------
@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_production_order(order_id: int, db: Session = Depends(get_db)):
    production_orders.delete_order(db, order_id)
    return None


# ---------- LINES ----------
@router.post(
    "/{order_id}/lines",
    response_model=ProductionOrderLineOut,
    status_code=status.HTTP_201_CREATED,
)
def create_production_order_line(
    order_id: int,
    payload: ProductionOrderLineCreate,
    db: Session = Depends(get_db),
):
    return production_lines.create_line(db, order_id, payload.model_dump(exclude_unset=True))


# ---------- IMPORT ----------
@router.post("/{order_id}/import-sales-lines", response_model=ImportResultOut)
def import_sales_lines(order_id: int, db: Session = Depends(get_db)):
    """Fill an empty production order with one line per (article, color) of its sales order."""
    return import_from_sales(db, order_id)
