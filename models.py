# models.py
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from database import Base


# =========================================
# ============== Vocabulary ===============
# =========================================

class ServiceStage(str, Enum):
    PLANNING = "planning"
    CUTTING = "cutting"
    SERVICES = "services"
    SEWING = "sewing"
    FINISHING = "finishing"
    PRODUCED = "produced"  # terminal marker, reached only through advance


# stages a line can be created in / edited to
IN_FLIGHT_STAGES = (
    ServiceStage.PLANNING,
    ServiceStage.CUTTING,
    ServiceStage.SERVICES,
    ServiceStage.SEWING,
    ServiceStage.FINISHING,
)


class ProductionState(str, Enum):
    DRAFT = "draft"
    PLANNED = "planned"
    IN_PRODUCTION = "in_production"
    ISSUE = "issue"
    PRODUCED = "produced"
    INVOICED = "invoiced"
    SHIPPED = "shipped"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _sql_in(values) -> str:
    return ", ".join(f"'{v.value}'" for v in values)


# =========================================
# ============== Sales side ===============
# =========================================

class SalesOrder(Base):
    __tablename__ = "sales_orders"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, index=True, nullable=False)
    customer_name = Column(String, nullable=True)
    date_order = Column(Date, nullable=True)
    date_delivery_requested = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    lines = relationship(
        "SalesOrderLine",
        back_populates="sales_order",
        cascade="all, delete-orphan",
        order_by="SalesOrderLine.id",
    )

    def __repr__(self):
        return f"<SalesOrder(code={self.code})>"


class SalesOrderLine(Base):
    __tablename__ = "sales_order_lines"

    id = Column(Integer, primary_key=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    article_ref = Column(String, nullable=False)
    color = Column(String, nullable=True)
    size = Column(String, nullable=False)
    qty = Column(Integer, nullable=False, default=0)

    sales_order = relationship("SalesOrder", back_populates="lines")

    __table_args__ = (
        CheckConstraint("qty >= 0", name="ck_sol_qty_nonneg"),
    )

    def __repr__(self):
        return f"<SalesOrderLine(article_ref={self.article_ref}, color={self.color}, size={self.size}, qty={self.qty})>"


# =========================================
# ============ Production side ============
# =========================================

class ProductionOrder(Base):
    __tablename__ = "production_orders"

    id = Column(Integer, primary_key=True)
    code = Column(String, unique=True, index=True, nullable=False)
    sale_ref = Column(String, nullable=True, index=True)
    customer_name = Column(String, nullable=True)

    service_current = Column(String, nullable=False, default=ServiceStage.PLANNING.value)
    state = Column(String, nullable=False, default=ProductionState.DRAFT.value)
    # state held when the order was last forced into "issue"
    state_before_issue = Column(String, nullable=True)

    date_order = Column(Date, nullable=True)
    date_delivery_requested = Column(Date, nullable=True)
    date_start_plan = Column(Date, nullable=True)
    date_end_estimated = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    lines = relationship(
        "ProductionOrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="ProductionOrderLine.seq",
    )
    anomalies = relationship(
        "ProductionAnomaly",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="ProductionAnomaly.id.desc()",
    )

    __table_args__ = (
        CheckConstraint(f"state IN ({_sql_in(ProductionState)})", name="ck_po_state"),
        CheckConstraint(f"service_current IN ({_sql_in(ServiceStage)})", name="ck_po_service"),
        Index("ix_production_orders_state", "state"),
    )

    def __repr__(self):
        return f"<ProductionOrder(code={self.code}, state={self.state})>"


class ProductionOrderLine(Base):
    __tablename__ = "production_order_lines"

    id = Column(Integer, primary_key=True)
    production_order_id = Column(
        Integer,
        ForeignKey("production_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    seq = Column(Integer, nullable=False)
    code = Column(String, nullable=False)

    article_ref = Column(String, nullable=False)
    color = Column(String, nullable=True)

    qty_ordered = Column(Integer, nullable=False, default=0)
    qty_to_produce = Column(Integer, nullable=False, default=0)
    qty_produced = Column(Integer, nullable=False, default=0)
    qty_defect = Column(Integer, nullable=False, default=0)

    service_current = Column(String, nullable=False, default=ServiceStage.PLANNING.value)
    state = Column(String, nullable=False, default=ProductionState.DRAFT.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    order = relationship("ProductionOrder", back_populates="lines")
    sizes = relationship(
        "ProductionOrderLineSize",
        back_populates="line",
        cascade="all, delete-orphan",
        order_by="ProductionOrderLineSize.id",
    )

    __table_args__ = (
        UniqueConstraint("production_order_id", "seq", name="uq_pol_order_seq"),
        UniqueConstraint("production_order_id", "code", name="uq_pol_order_code"),
        CheckConstraint("seq >= 1", name="ck_pol_seq_positive"),
        CheckConstraint(
            "qty_ordered >= 0 AND qty_to_produce >= 0 AND qty_produced >= 0 AND qty_defect >= 0",
            name="ck_pol_qty_nonneg",
        ),
        CheckConstraint(f"state IN ({_sql_in(ProductionState)})", name="ck_pol_state"),
        CheckConstraint(f"service_current IN ({_sql_in(ServiceStage)})", name="ck_pol_service"),
        Index("ix_pol_state", "state"),
    )

    def __repr__(self):
        return f"<ProductionOrderLine(code={self.code}, stage={self.service_current}, state={self.state})>"


class ProductionOrderLineSize(Base):
    __tablename__ = "production_order_line_sizes"

    id = Column(Integer, primary_key=True)
    production_order_line_id = Column(
        Integer,
        ForeignKey("production_order_lines.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    size = Column(String, nullable=False)
    qty_ordered = Column(Integer, nullable=False, default=0)
    qty_to_produce = Column(Integer, nullable=False, default=0)
    qty_produced = Column(Integer, nullable=False, default=0)
    qty_defect = Column(Integer, nullable=False, default=0)

    line = relationship("ProductionOrderLine", back_populates="sizes")

    __table_args__ = (
        UniqueConstraint("production_order_line_id", "size", name="uq_pols_line_size"),
        CheckConstraint(
            "qty_ordered >= 0 AND qty_to_produce >= 0 AND qty_produced >= 0 AND qty_defect >= 0",
            name="ck_pols_qty_nonneg",
        ),
    )

    def __repr__(self):
        return f"<ProductionOrderLineSize(line_id={self.production_order_line_id}, size={self.size})>"


class ProductionAnomaly(Base):
    __tablename__ = "production_anomalies"

    id = Column(Integer, primary_key=True)
    production_order_id = Column(
        Integer,
        ForeignKey("production_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    production_order_line_id = Column(
        Integer,
        ForeignKey("production_order_lines.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    service = Column(String, nullable=False)
    severity = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    is_blocking = Column(Boolean, nullable=False, default=False)
    resolved = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("ProductionOrder", back_populates="anomalies")
    line = relationship("ProductionOrderLine")

    __table_args__ = (
        CheckConstraint(f"severity IN ({_sql_in(Severity)})", name="ck_pa_severity"),
        Index("ix_pa_open_blocking", "is_blocking", "resolved"),
    )

    def __repr__(self):
        return (
            f"<ProductionAnomaly(order_id={self.production_order_id}, "
            f"line_id={self.production_order_line_id}, blocking={self.is_blocking}, resolved={self.resolved})>"
        )
