"""
Quality Inspection model

One row per inspection event. Counts and disposition are fixed at
creation; only repair notes and the reinspection date may be edited.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from datetime import datetime

from stitchops.db.base import Base


class QualityInspection(Base):
    """
    Quality Inspection of a work order batch at a stage.

    Invariant: passed_quantity + repaired_quantity + rejected_quantity == total_quantity

    status / final_status: pending, pass, repair, reject
    issues: list of {id, type, description, severity, position, quantity, category}
    """
    __tablename__ = "quality_inspections"

    id = Column(Integer, primary_key=True, index=True)
    work_order_id = Column(Integer, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    stage = Column(String(50), nullable=False, index=True)

    status = Column(String(20), nullable=False, default="pending", index=True)
    final_status = Column(String(20), nullable=True)

    inspected_by = Column(String(100), nullable=False, index=True)
    inspection_date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    # Unit counts
    total_quantity = Column(Integer, nullable=False, default=0)
    passed_quantity = Column(Integer, nullable=False, default=0)
    repaired_quantity = Column(Integer, nullable=False, default=0)
    rejected_quantity = Column(Integer, nullable=False, default=0)

    issues = Column(JSON, nullable=True)
    repair_notes = Column(Text, nullable=True)
    reinspection_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    work_order = relationship("WorkOrder", back_populates="inspections")

    def __repr__(self):
        return (
            f"<QualityInspection {self.id} WO#{self.work_order_id} {self.status}: "
            f"{self.passed_quantity}/{self.repaired_quantity}/{self.rejected_quantity} of {self.total_quantity}>"
        )

    @property
    def pass_rate(self):
        """Percentage of units passed"""
        if not self.total_quantity:
            return 0
        return round(self.passed_quantity / self.total_quantity * 100, 1)

    @property
    def requires_reinspection(self):
        return self.reinspection_date is not None
