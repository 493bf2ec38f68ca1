from typing import Callable, List, Optional, Type

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db, transaction
from services.errors import Conflict, NotFound
from utils import sa_update_from_dict


def make_crud_router(
    Model,
    prefix: str,
    *,
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    out_schema: Type[BaseModel],
    label: str = "Item",
    list_order_by=None,
    unique_fields: Optional[List[str]] = None,
    before_create: Optional[Callable[[Session, dict], dict]] = None,
    before_update: Optional[Callable[[Session, object, dict], None]] = None,
) -> APIRouter:
    """
    Build a CRUD router for Model:
    - GET    /{prefix}            : list
    - GET    /{prefix}/{id}       : get one
    - POST   /{prefix}            : create
    - PATCH  /{prefix}/{id}       : partial update
    - DELETE /{prefix}/{id}       : delete

    Missing rows raise NotFound and duplicate unique values raise Conflict,
    so the app-level ProductionError handler shapes every error response.
    """
    router = APIRouter(prefix=f"/{prefix}", tags=[prefix.replace("-", "_")])

    def _get_or_404(db: Session, item_id: int):
        obj = db.get(Model, item_id)
        if obj is None:
            raise NotFound(f"{label} not found")
        return obj

    def _check_unique(db: Session, data: dict, own_id: Optional[int] = None):
        for f in unique_fields or []:
            if data.get(f) is None:
                continue
            dup = db.scalars(select(Model).where(getattr(Model, f) == data[f])).first()
            if dup is not None and dup.id != own_id:
                raise Conflict(f"{f} already exists")

    def _flush_unique(db: Session):
        # a concurrent writer can still win the race after _check_unique
        try:
            db.flush()
        except IntegrityError as exc:
            raise Conflict(f"{label} already exists") from exc

    # List
    @router.get("", response_model=List[out_schema])
    def list_items(db: Session = Depends(get_db)):
        stmt = select(Model)
        if list_order_by is not None:
            stmt = stmt.order_by(list_order_by)
        return db.scalars(stmt).all()

    # Get one
    @router.get("/{item_id}", response_model=out_schema)
    def get_item(item_id: int, db: Session = Depends(get_db)):
        return _get_or_404(db, item_id)

    # Create
    @router.post("", response_model=out_schema, status_code=status.HTTP_201_CREATED)
    def create_item(payload: create_schema, db: Session = Depends(get_db)):
        data = payload.model_dump(exclude_unset=True)
        with transaction(db):
            if before_create:
                data = before_create(db, data)
            _check_unique(db, data)
            obj = Model()
            sa_update_from_dict(obj, data)
            db.add(obj)
            _flush_unique(db)
        db.refresh(obj)
        return obj

    # Update
    @router.patch("/{item_id}", response_model=out_schema)
    def update_item(item_id: int, payload: update_schema, db: Session = Depends(get_db)):
        data = payload.model_dump(exclude_unset=True)
        with transaction(db):
            obj = _get_or_404(db, item_id)
            _check_unique(db, data, own_id=obj.id)
            if before_update:
                before_update(db, obj, data)
            sa_update_from_dict(obj, data)
            _flush_unique(db)
        db.refresh(obj)
        return obj

    # Delete
    @router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_item(item_id: int, db: Session = Depends(get_db)):
        with transaction(db):
            db.delete(_get_or_404(db, item_id))
        return None

    return router
