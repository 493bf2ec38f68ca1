from __future__ import annotations

from typing import Optional, List
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from models import ProductionState, ServiceStage, Severity


# =========================
# ===== Base (Pydantic v2)
# =========================
class APIBase(BaseModel):
    """
    Base for read schemas:
    - from_attributes=True: build straight from SQLAlchemy objects
    """
    model_config = ConfigDict(from_attributes=True)



# =========================================
# ============== Sales orders =============
# =========================================
class SalesOrderLineCreate(BaseModel):
    article_ref: str = Field(min_length=1)
    color: Optional[str] = None
    size: str = Field(min_length=1)
    qty: int = Field(default=0, ge=0)

class SalesOrderLineUpdate(BaseModel):
    article_ref: Optional[str] = Field(default=None, min_length=1)
    color: Optional[str] = None
    size: Optional[str] = Field(default=None, min_length=1)
    qty: Optional[int] = Field(default=None, ge=0)

class SalesOrderLineOut(APIBase):
    id: int
    sales_order_id: int
    article_ref: str
    color: Optional[str] = None
    size: str
    qty: int

class SalesOrderCreate(BaseModel):
    code: Optional[str] = None          # empty / AUTO -> generated
    customer_name: Optional[str] = None
    date_order: Optional[date] = None
    date_delivery_requested: Optional[date] = None

class SalesOrderUpdate(BaseModel):
    customer_name: Optional[str] = None
    date_order: Optional[date] = None
    date_delivery_requested: Optional[date] = None

class SalesOrderOut(APIBase):
    id: int
    code: str
    customer_name: Optional[str] = None
    date_order: Optional[date] = None
    date_delivery_requested: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class SalesOrderDetailOut(SalesOrderOut):
    lines: List[SalesOrderLineOut] = []


# =========================================
# ========== Production orders ============
# =========================================
class ProductionOrderCreate(BaseModel):
    code: Optional[str] = None          # empty / AUTO -> generated
    sale_ref: Optional[str] = None
    customer_name: Optional[str] = None
    service_current: ServiceStage = ServiceStage.PLANNING
    state: ProductionState = ProductionState.DRAFT
    date_order: Optional[date] = None
    date_delivery_requested: Optional[date] = None
    date_start_plan: Optional[date] = None
    date_end_estimated: Optional[date] = None

class ProductionOrderUpdate(BaseModel):
    sale_ref: Optional[str] = None
    customer_name: Optional[str] = None
    service_current: Optional[ServiceStage] = None
    state: Optional[ProductionState] = None
    date_order: Optional[date] = None
    date_delivery_requested: Optional[date] = None
    date_start_plan: Optional[date] = None
    date_end_estimated: Optional[date] = None

class ProductionOrderOut(APIBase):
    id: int
    code: str
    sale_ref: Optional[str] = None
    customer_name: Optional[str] = None
    service_current: ServiceStage
    state: ProductionState
    date_order: Optional[date] = None
    date_delivery_requested: Optional[date] = None
    date_start_plan: Optional[date] = None
    date_end_estimated: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------- Lines ----------------
class ProductionOrderLineCreate(BaseModel):
    article_ref: str = Field(min_length=1)
    color: Optional[str] = None
    qty_ordered: int = Field(default=0, ge=0)
    qty_to_produce: Optional[int] = Field(default=None, ge=0)   # defaults to qty_ordered
    service_current: ServiceStage = ServiceStage.PLANNING
    state: ProductionState = ProductionState.DRAFT

class ProductionOrderLineUpdate(BaseModel):
    """Administrative override: bypasses the stage guards of /advance."""
    article_ref: Optional[str] = Field(default=None, min_length=1)
    color: Optional[str] = None
    qty_ordered: Optional[int] = Field(default=None, ge=0)
    qty_to_produce: Optional[int] = Field(default=None, ge=0)
    qty_produced: Optional[int] = Field(default=None, ge=0)
    qty_defect: Optional[int] = Field(default=None, ge=0)
    service_current: Optional[ServiceStage] = None
    state: Optional[ProductionState] = None

class ProductionOrderLineOut(APIBase):
    id: int
    production_order_id: int
    seq: int
    code: str
    article_ref: str
    color: Optional[str] = None
    qty_ordered: int
    qty_to_produce: int
    qty_produced: int
    qty_defect: int
    service_current: ServiceStage
    state: ProductionState
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------- Sizes ----------------
class LineSizeUpsert(BaseModel):
    size: str = Field(min_length=1)
    qty_ordered: int = Field(default=0, ge=0)
    qty_to_produce: Optional[int] = Field(default=None, ge=0)

class LineSizeUpdate(BaseModel):
    qty_ordered: Optional[int] = Field(default=None, ge=0)
    qty_to_produce: Optional[int] = Field(default=None, ge=0)
    qty_produced: Optional[int] = Field(default=None, ge=0)
    qty_defect: Optional[int] = Field(default=None, ge=0)

class LineSizeOut(APIBase):
    id: int
    production_order_line_id: int
    size: str
    qty_ordered: int
    qty_to_produce: int
    qty_produced: int
    qty_defect: int


# ---------------- Anomalies ----------------
class AnomalyCreate(BaseModel):
    production_order_id: Optional[int] = None
    production_order_line_id: Optional[int] = None
    service: ServiceStage
    severity: Severity
    description: str = Field(min_length=1)
    is_blocking: bool = False
    resolved: bool = False

class AnomalyUpdate(BaseModel):
    service: Optional[ServiceStage] = None
    severity: Optional[Severity] = None
    description: Optional[str] = Field(default=None, min_length=1)
    is_blocking: Optional[bool] = None
    resolved: Optional[bool] = None

class AnomalyOut(APIBase):
    id: int
    production_order_id: int
    production_order_line_id: Optional[int] = None
    service: ServiceStage
    severity: Severity
    description: str
    is_blocking: bool
    resolved: bool
    created_at: Optional[datetime] = None


class ProductionOrderDetailOut(ProductionOrderOut):
    lines: List[ProductionOrderLineOut] = []
    anomalies: List[AnomalyOut] = []


# ---------------- Import ----------------
class ImportedSize(BaseModel):
    size: str
    qty: int

class ImportedLine(BaseModel):
    line_code: str
    article_ref: str
    color: Optional[str] = None
    sizes: List[ImportedSize]

class ImportResultOut(BaseModel):
    created_lines: int
    details: List[ImportedLine]
