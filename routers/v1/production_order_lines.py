# routers/v1/production_order_lines.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from schemas import (
    LineSizeOut,
    LineSizeUpdate,
    LineSizeUpsert,
    ProductionOrderLineOut,
    ProductionOrderLineUpdate,
)
from services import production_lines
from services.stage_machine import advance_line

router = APIRouter(prefix="/production-order-lines", tags=["production_order_lines"])
sizes_router = APIRouter(prefix="/production-order-line-sizes", tags=["production_order_lines"])


@router.patch("/{line_id}", response_model=ProductionOrderLineOut)
def update_production_order_line(
    line_id: int,
    payload: ProductionOrderLineUpdate,
    db: Session = Depends(get_db),
):
    return production_lines.update_line(db, line_id, payload.model_dump(exclude_unset=True))


@router.delete("/{line_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_production_order_line(line_id: int, db: Session = Depends(get_db)):
    production_lines.delete_line(db, line_id)
    return None


@router.post("/{line_id}/advance", response_model=ProductionOrderLineOut)
def advance_production_order_line(line_id: int, db: Session = Depends(get_db)):
    return advance_line(db, line_id)


# ---------- Sizes ----------
@router.get("/{line_id}/sizes", response_model=List[LineSizeOut])
def list_sizes(line_id: int, db: Session = Depends(get_db)):
    return production_lines.list_line_sizes(db, line_id)


@router.post("/{line_id}/sizes", response_model=List[LineSizeOut])
def upsert_size(line_id: int, payload: LineSizeUpsert, db: Session = Depends(get_db)):
    return production_lines.upsert_line_size(
        db, line_id, payload.size, payload.qty_ordered, payload.qty_to_produce
    )


@sizes_router.patch("/{size_id}", response_model=LineSizeOut)
def update_size(size_id: int, payload: LineSizeUpdate, db: Session = Depends(get_db)):
    return production_lines.update_line_size(db, size_id, payload.model_dump(exclude_unset=True))


@sizes_router.delete("/{size_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_size(size_id: int, db: Session = Depends(get_db)):
    production_lines.delete_line_size(db, size_id)
    return None
