"""
R&D Sample Request models

Sample requests track development garments for a customer through
draft → on_review → (revision) → approved, with material requirements,
decoration process stages and a status history.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from stitchops.db.base import Base


class SampleRequest(Base):
    """Sample Request"""
    __tablename__ = "sample_requests"

    id = Column(Integer, primary_key=True, index=True)
    sample_id = Column(String(50), unique=True, nullable=False, index=True)  # SMP-2025-0001
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)

    sample_name = Column(String(255), nullable=False)
    color = Column(String(50), nullable=True)

    # Status: draft, on_review, approved, revision, canceled
    status = Column(String(20), nullable=False, default="draft", index=True)

    total_order_quantity = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    created_by = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    customer = relationship("Customer", back_populates="sample_requests")
    material_requirements = relationship("SampleMaterialRequirement", back_populates="sample_request",
                                         cascade="all, delete-orphan",
                                         order_by="SampleMaterialRequirement.id")
    process_stages = relationship("SampleProcessStage", back_populates="sample_request",
                                  cascade="all, delete-orphan",
                                  order_by="SampleProcessStage.sequence")
    status_history = relationship("SampleStatusHistory", back_populates="sample_request",
                                  cascade="all, delete-orphan",
                                  order_by="SampleStatusHistory.id")

    def __repr__(self):
        return f"<SampleRequest {self.sample_id}: {self.status}>"


class SampleMaterialRequirement(Base):
    """Material needed to make a sample"""
    __tablename__ = "sample_material_requirements"

    id = Column(Integer, primary_key=True, index=True)
    sample_request_id = Column(Integer, ForeignKey("sample_requests.id", ondelete="CASCADE"), nullable=False, index=True)

    material_type = Column(String(100), nullable=False, index=True)
    quantity = Column(Numeric(10, 2), nullable=False, default=0)
    unit = Column(String(20), nullable=False, default="pieces")  # meters, kilograms, yards, pieces
    specifications = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    sample_request = relationship("SampleRequest", back_populates="material_requirements")


class SampleProcessStage(Base):
    """Decoration process applied to a sample, in sequence order"""
    __tablename__ = "sample_process_stages"

    id = Column(Integer, primary_key=True, index=True)
    sample_request_id = Column(Integer, ForeignKey("sample_requests.id", ondelete="CASCADE"), nullable=False, index=True)

    # embroidery, dtf_printing, jersey_printing, sublimation, dtf_sublimation
    process_stage = Column(String(50), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    sample_request = relationship("SampleRequest", back_populates="process_stages")


class SampleStatusHistory(Base):
    """Audit trail of sample request status changes"""
    __tablename__ = "sample_status_history"

    id = Column(Integer, primary_key=True, index=True)
    sample_request_id = Column(Integer, ForeignKey("sample_requests.id", ondelete="CASCADE"), nullable=False, index=True)

    previous_status = Column(String(20), nullable=True)
    new_status = Column(String(20), nullable=False)
    changed_by = Column(String(100), nullable=False)
    change_reason = Column(Text, nullable=True)
    changed_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    sample_request = relationship("SampleRequest", back_populates="status_history")
