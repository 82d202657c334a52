"""
Sales Order Model

Sales orders and their line items. The production workflow only reads
them: an item of an approved order can be converted into one work order.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import relationship
from datetime import datetime

from stitchops.db.base import Base


class SalesOrder(Base):
    """Sales Order - customer order for one or more garments"""
    __tablename__ = "sales_orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(50), unique=True, nullable=False, index=True)  # SO-2025-001
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)

    order_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    target_delivery_date = Column(DateTime, nullable=False, index=True)
    actual_delivery_date = Column(DateTime, nullable=True)

    # Status: draft → on_review → approve, or cancelled
    # Only "approve" orders can feed work orders
    status = Column(String(20), nullable=False, default="draft", index=True)

    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    created_by = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    customer = relationship("Customer", back_populates="sales_orders")
    items = relationship("SalesOrderItem", back_populates="sales_order",
                         cascade="all, delete-orphan", order_by="SalesOrderItem.id")
    work_orders = relationship("WorkOrder", back_populates="sales_order")

    def __repr__(self):
        return f"<SalesOrder {self.order_number}: {self.status}>"

    @property
    def is_approved(self):
        return self.status == "approve"


class SalesOrderItem(Base):
    """A garment line on a sales order"""
    __tablename__ = "sales_order_items"

    id = Column(Integer, primary_key=True, index=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True)

    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    size = Column(String(50), nullable=True)
    color = Column(String(50), nullable=True)
    design_file_url = Column(Text, nullable=True)

    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)

    # Free-form garment specifications (fabric, trims, print placement...)
    specifications = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    sales_order = relationship("SalesOrder", back_populates="items")
    work_order = relationship("WorkOrder", back_populates="sales_order_item", uselist=False)

    def __repr__(self):
        return f"<SalesOrderItem {self.id}: {self.quantity} x {self.product_name}>"
