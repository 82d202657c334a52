"""
Work Order model

A work order tracks one sales order item through the eight production
stages. Time spent in each stage is recorded in the append-only
ProductionStageHistory ledger.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from stitchops.db.base import Base


class WorkOrder(Base):
    """
    Work Order - production of one sales order item.

    Lifecycle: order_processing → material_procurement → cutting →
    sewing_assembly → quality_control → finishing → dispatch → delivered

    current_stage is only changed by the stage engine
    (services.production_stages) and the quality gate.
    """
    __tablename__ = "work_orders"

    id = Column(Integer, primary_key=True, index=True)
    work_order_number = Column(String(50), unique=True, nullable=False, index=True)  # WO-2025-0001

    # References
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="RESTRICT"), nullable=False, index=True)
    # One work order per sales order item
    sales_order_item_id = Column(Integer, ForeignKey("sales_order_items.id", ondelete="RESTRICT"),
                                 nullable=False, unique=True, index=True)

    current_stage = Column(String(50), nullable=False, default="order_processing", index=True)

    # Timing
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)  # Set only when delivered
    estimated_completion = Column(DateTime, nullable=True)

    # Priority: 1 (most urgent) to 10
    priority = Column(Integer, nullable=False, default=5)

    assigned_to = Column(String(100), nullable=True)

    # Metadata
    created_by = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    sales_order = relationship("SalesOrder", back_populates="work_orders")
    sales_order_item = relationship("SalesOrderItem", back_populates="work_order")
    stage_history = relationship("ProductionStageHistory", back_populates="work_order",
                                 cascade="all, delete-orphan",
                                 order_by="ProductionStageHistory.id")
    inspections = relationship("QualityInspection", back_populates="work_order",
                               cascade="all, delete-orphan")

    def __repr__(self):
        return f"<WorkOrder {self.work_order_number}: {self.current_stage}>"

    @property
    def is_delivered(self):
        return self.current_stage == "delivered"

    @property
    def open_entries(self):
        """History entries that have not been completed"""
        return [entry for entry in self.stage_history if entry.completed_at is None]


class ProductionStageHistory(Base):
    """
    One interval of time a work order spent in a stage.

    completed_at NULL means the stage is currently running. At most one
    open entry exists per (work order, stage).
    """
    __tablename__ = "production_stage_history"
    __table_args__ = (
        Index("ix_stage_history_work_order_stage", "work_order_id", "stage"),
    )

    id = Column(Integer, primary_key=True, index=True)
    work_order_id = Column(Integer, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    stage = Column(String(50), nullable=False)

    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    duration = Column(Integer, nullable=True)  # Whole minutes, set on completion

    notes = Column(Text, nullable=True)
    user_id = Column(String(100), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    work_order = relationship("WorkOrder", back_populates="stage_history")

    def __repr__(self):
        state = "open" if self.completed_at is None else f"{self.duration}m"
        return f"<ProductionStageHistory WO#{self.work_order_id} {self.stage} ({state})>"

    @property
    def is_open(self):
        return self.completed_at is None
