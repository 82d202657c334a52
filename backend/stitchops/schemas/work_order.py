"""
Work Order Pydantic Schemas

Work orders, stage transitions and the list of sales order items still
available for conversion.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from stitchops.core.status_config import ProductionStage


# ============================================================================
# Stage History Schemas
# ============================================================================

class StageHistoryResponse(BaseModel):
    """One stage history interval"""
    id: int
    work_order_id: int
    stage: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration: Optional[int] = None
    notes: Optional[str] = None
    user_id: str

    class Config:
        from_attributes = True


class StageTimelineResponse(BaseModel):
    """History entries in order plus the total recorded minutes"""
    work_order_id: int
    current_stage: str
    entries: List[StageHistoryResponse]
    total_minutes: int
    open_stage: Optional[str] = None


# ============================================================================
# Stage Transition Schemas
# ============================================================================

class StageActionRequest(BaseModel):
    """Start or finish a production stage"""
    stage: ProductionStage
    notes: Optional[str] = None


class StageUpdateRequest(BaseModel):
    """Administrative jump to an arbitrary stage"""
    new_stage: ProductionStage
    notes: Optional[str] = None


# ============================================================================
# Work Order Schemas
# ============================================================================

class WorkOrderOptions(BaseModel):
    """Optional fields applied at creation"""
    # Range is checked by the service so the error comes back as VALIDATION_ERROR
    priority: Optional[int] = None
    estimated_completion: Optional[datetime] = None
    assigned_to: Optional[str] = Field(None, max_length=100)


class WorkOrderCreate(WorkOrderOptions):
    """Create a work order from a sales order item"""
    sales_order_item_id: int


class BulkWorkOrderCreate(BaseModel):
    """Create work orders for several sales order items"""
    sales_order_item_ids: List[int]
    options: Optional[WorkOrderOptions] = None


class WorkOrderResponse(BaseModel):
    """Work order row"""
    id: int
    work_order_number: str
    sales_order_id: int
    sales_order_item_id: int
    current_stage: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    estimated_completion: Optional[datetime] = None
    priority: int
    assigned_to: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class WorkOrderListItem(WorkOrderResponse):
    """Work order joined with its sales order, customer and item"""
    order_number: Optional[str] = None
    customer_name: Optional[str] = None
    product_name: Optional[str] = None
    quantity: Optional[int] = None
    size: Optional[str] = None
    color: Optional[str] = None


class WorkOrderDetail(WorkOrderListItem):
    """Work order with its full stage history"""
    specifications: Optional[Dict[str, Any]] = None
    stage_history: List[StageHistoryResponse] = []


class StageStartResponse(BaseModel):
    """Result of starting a stage"""
    entry: StageHistoryResponse
    work_order: WorkOrderResponse


class StageFinishResponse(BaseModel):
    """Result of finishing a stage"""
    entry: StageHistoryResponse
    work_order: WorkOrderResponse
    duration: int = Field(..., description="Whole minutes spent in the finished stage")
    next_stage: str
    next_entry: Optional[StageHistoryResponse] = None


class StageUpdateResponse(BaseModel):
    """Result of an administrative stage jump"""
    work_order: WorkOrderResponse
    closed_entries: List[StageHistoryResponse]
    entry: StageHistoryResponse


class BulkCreationError(BaseModel):
    """Per-item failure from bulk creation"""
    item_id: int
    error: str
    message: str


class BulkCreationSummary(BaseModel):
    total: int
    successful: int
    failed: int


class BulkCreationResponse(BaseModel):
    """Partial-success result of bulk creation"""
    created: List[WorkOrderResponse]
    errors: List[BulkCreationError]
    summary: BulkCreationSummary


# ============================================================================
# Available Sales Order Items
# ============================================================================

class AvailableItem(BaseModel):
    """Sales order item with no work order yet"""
    id: int
    product_name: str
    quantity: int
    size: Optional[str] = None
    color: Optional[str] = None
    design_file_url: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True


class AvailableSalesOrder(BaseModel):
    """Approved sales order grouped with its unconverted items"""
    id: int
    order_number: str
    customer_id: int
    customer_name: Optional[str] = None
    order_date: datetime
    target_delivery_date: datetime
    is_urgent: bool
    items: List[AvailableItem]


class AvailableSalesOrderList(BaseModel):
    orders: List[AvailableSalesOrder]
    total_items: int
