# routers/v1/anomalies.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from database import get_db
from schemas import AnomalyCreate, AnomalyOut, AnomalyUpdate
from services import anomalies

router = APIRouter(prefix="/production-anomalies", tags=["production_anomalies"])


@router.get("", response_model=List[AnomalyOut])
def list_anomalies(
    production_order_id: Optional[int] = Query(None),
    production_order_line_id: Optional[int] = Query(None),
    open_only: bool = Query(False, description="unresolved only"),
    db: Session = Depends(get_db),
):
    return anomalies.list_anomalies(
        db,
        production_order_id=production_order_id,
        production_order_line_id=production_order_line_id,
        open_only=open_only,
    )


@router.post("", response_model=AnomalyOut, status_code=status.HTTP_201_CREATED)
def create_anomaly(payload: AnomalyCreate, db: Session = Depends(get_db)):
    return anomalies.create_anomaly(db, payload.model_dump())


@router.patch("/{anomaly_id}", response_model=AnomalyOut)
def update_anomaly(anomaly_id: int, payload: AnomalyUpdate, db: Session = Depends(get_db)):
    return anomalies.update_anomaly(db, anomaly_id, payload.model_dump(exclude_unset=True))


@router.delete("/{anomaly_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_anomaly(anomaly_id: int, db: Session = Depends(get_db)):
    anomalies.delete_anomaly(db, anomaly_id)
    return None
