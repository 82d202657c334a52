"""
Customer Model

Customers own sales orders and R&D sample requests.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from stitchops.db.base import Base


class Customer(Base):
    """Customer account"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    contact_person = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(50), nullable=False)
    address = Column(Text, nullable=True)
    shipping_address = Column(Text, nullable=True)

    # Status: active, inactive, prospect
    status = Column(String(20), nullable=False, default="active", index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    sales_orders = relationship("SalesOrder", back_populates="customer")
    sample_requests = relationship("SampleRequest", back_populates="customer")

    def __repr__(self):
        return f"<Customer {self.id}: {self.name}>"
