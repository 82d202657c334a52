"""
Work Order Service

Converts approved sales order items into work orders and provides the
read models used by the production board.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Session

from stitchops.core.settings import settings
from stitchops.core.status_config import INITIAL_STAGE, SalesOrderStatus, parse_stage
from stitchops.exceptions import (
    NotFoundError,
    SalesOrderNotApprovedError,
    StitchOpsException,
    ValidationError,
    WorkOrderExistsError,
)
from stitchops.logging_config import get_logger
from stitchops.models.customer import Customer
from stitchops.models.sales_order import SalesOrder, SalesOrderItem
from stitchops.models.work_order import WorkOrder, ProductionStageHistory
from stitchops.schemas.work_order import WorkOrderOptions
from stitchops.services.production_stages import open_entry

logger = get_logger(__name__)


@dataclass
class BulkCreationResult:
    """Partial-success outcome of create_bulk_work_orders"""
    created: List[WorkOrder] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "total": len(self.created) + len(self.errors),
            "successful": len(self.created),
            "failed": len(self.errors),
        }


def generate_work_order_number(db: Session) -> str:
    """Generate next work order number: WO-{year}-{seq:04d}"""
    prefix = settings.WORK_ORDER_NUMBER_PREFIX
    year = datetime.utcnow().year

    # Longest suffix first so -10000 sorts above -9999
    result = (
        db.query(WorkOrder.work_order_number)
        .filter(WorkOrder.work_order_number.like(f"{prefix}-{year}-%"))
        .order_by(
            desc(func.length(WorkOrder.work_order_number)),
            desc(WorkOrder.work_order_number),
        )
        .first()
    )

    if result:
        try:
            seq = int(result[0].split("-")[2]) + 1
        except (IndexError, ValueError):
            seq = 1
    else:
        seq = 1

    return f"{prefix}-{year}-{seq:04d}"


def _validate_options(options: WorkOrderOptions) -> int:
    """Return the effective priority."""
    priority = options.priority
    if priority is None:
        return settings.DEFAULT_WORK_ORDER_PRIORITY
    low, high = settings.MIN_WORK_ORDER_PRIORITY, settings.MAX_WORK_ORDER_PRIORITY
    if not low <= priority <= high:
        raise ValidationError(
            f"Priority must be between {low} and {high}",
            field="priority",
            value=priority,
        )
    return priority


def create_work_order(
    db: Session,
    sales_order_item_id: int,
    created_by: str,
    options: Optional[WorkOrderOptions] = None,
) -> WorkOrder:
    """
    Create the work order for a sales order item.

    The work order starts at order_processing with an open history entry
    sharing its started_at timestamp.

    Raises:
        NotFoundError: Item or its sales order does not exist
        SalesOrderNotApprovedError: Sales order status is not "approve"
        WorkOrderExistsError: The item already has a work order
        ValidationError: Priority out of range
    """
    options = options or WorkOrderOptions()

    item = db.get(SalesOrderItem, sales_order_item_id)
    if not item:
        raise NotFoundError("Sales order item", sales_order_item_id)

    sales_order = item.sales_order
    if not sales_order:
        raise NotFoundError("Sales order", item.sales_order_id)

    if sales_order.status != SalesOrderStatus.APPROVE.value:
        logger.warning(
            f"Rejected work order for item {item.id}: {sales_order.order_number} is {sales_order.status}"
        )
        raise SalesOrderNotApprovedError(sales_order.order_number, sales_order.status)

    existing = db.query(WorkOrder).filter(
        WorkOrder.sales_order_item_id == item.id
    ).first()
    if existing:
        logger.warning(
            f"Rejected work order for item {item.id}: already converted to {existing.work_order_number}"
        )
        raise WorkOrderExistsError(item.id, existing.work_order_number)

    priority = _validate_options(options)
    now = datetime.utcnow()

    work_order = WorkOrder(
        work_order_number=generate_work_order_number(db),
        sales_order_id=sales_order.id,
        sales_order_item_id=item.id,
        current_stage=INITIAL_STAGE.value,
        started_at=now,
        estimated_completion=options.estimated_completion,
        priority=priority,
        assigned_to=options.assigned_to,
        created_by=created_by,
    )
    db.add(work_order)
    db.flush()

    open_entry(db, work_order, INITIAL_STAGE, created_by, notes="Work order created", started_at=now)
    db.flush()

    logger.info(
        f"Created {work_order.work_order_number} for {sales_order.order_number} item {item.id}",
        extra={"work_order_id": work_order.id, "user_id": created_by},
    )
    return work_order


def create_bulk_work_orders(
    db: Session,
    sales_order_item_ids: List[int],
    created_by: str,
    options: Optional[WorkOrderOptions] = None,
) -> BulkCreationResult:
    """
    Create work orders for several items, one at a time.

    A business failure on one item is recorded in errors and the batch
    continues. Database faults propagate.
    """
    if not sales_order_item_ids:
        raise ValidationError("At least one sales order item is required", field="sales_order_item_ids")

    options = options or WorkOrderOptions()
    _validate_options(options)

    result = BulkCreationResult()
    for item_id in sales_order_item_ids:
        try:
            result.created.append(create_work_order(db, item_id, created_by, options))
        except StitchOpsException as e:
            result.errors.append({
                "item_id": item_id,
                "error": e.error_code,
                "message": e.message,
            })

    summary = result.summary
    logger.info(
        f"Bulk work order creation: {summary['successful']}/{summary['total']} created",
        extra={"user_id": created_by, **summary},
    )
    return result


# ============================================================================
# Read models
# ============================================================================

def _joined_query(db: Session):
    return (
        db.query(
            WorkOrder,
            SalesOrder.order_number,
            Customer.name.label("customer_name"),
            SalesOrderItem.product_name,
            SalesOrderItem.quantity,
            SalesOrderItem.size,
            SalesOrderItem.color,
            SalesOrderItem.specifications,
        )
        .join(SalesOrder, WorkOrder.sales_order_id == SalesOrder.id)
        .join(Customer, SalesOrder.customer_id == Customer.id)
        .join(SalesOrderItem, WorkOrder.sales_order_item_id == SalesOrderItem.id)
    )


def _work_order_row(row) -> Dict[str, Any]:
    wo = row[0]
    return {
        "id": wo.id,
        "work_order_number": wo.work_order_number,
        "sales_order_id": wo.sales_order_id,
        "sales_order_item_id": wo.sales_order_item_id,
        "current_stage": wo.current_stage,
        "started_at": wo.started_at,
        "completed_at": wo.completed_at,
        "estimated_completion": wo.estimated_completion,
        "priority": wo.priority,
        "assigned_to": wo.assigned_to,
        "created_by": wo.created_by,
        "created_at": wo.created_at,
        "updated_at": wo.updated_at,
        "order_number": row.order_number,
        "customer_name": row.customer_name,
        "product_name": row.product_name,
        "quantity": row.quantity,
        "size": row.size,
        "color": row.color,
        "specifications": row.specifications,
    }


def list_work_orders(
    db: Session,
    stage: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Work orders newest first, optionally filtered by stage and search text."""
    query = _joined_query(db)

    if stage:
        query = query.filter(WorkOrder.current_stage == parse_stage(stage).value)

    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                WorkOrder.work_order_number.ilike(pattern),
                SalesOrder.order_number.ilike(pattern),
                Customer.name.ilike(pattern),
                SalesOrderItem.product_name.ilike(pattern),
            )
        )

    rows = query.order_by(desc(WorkOrder.created_at), desc(WorkOrder.id)).all()
    return [_work_order_row(row) for row in rows]


def get_work_order_detail(db: Session, work_order_id: int) -> Dict[str, Any]:
    """Joined work order view with stage history ordered by start time."""
    row = _joined_query(db).filter(WorkOrder.id == work_order_id).first()
    if not row:
        raise NotFoundError("Work order", work_order_id)

    detail = _work_order_row(row)
    detail["stage_history"] = (
        db.query(ProductionStageHistory)
        .filter(ProductionStageHistory.work_order_id == work_order_id)
        .order_by(ProductionStageHistory.started_at, ProductionStageHistory.id)
        .all()
    )
    return detail


def get_available_sales_order_items(
    db: Session,
    search: Optional[str] = None,
    customer_id: Optional[int] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    urgent_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> Dict[str, Any]:
    """
    Approved sales orders with the items that have no work order yet.

    Orders whose items are all converted are omitted. An order is urgent
    when its target delivery date is within URGENT_DELIVERY_DAYS.
    Dates filter on the target delivery date.
    """
    urgent_cutoff = datetime.utcnow() + timedelta(days=settings.URGENT_DELIVERY_DAYS)

    query = (
        db.query(SalesOrder, Customer.name.label("customer_name"))
        .join(Customer, SalesOrder.customer_id == Customer.id)
        .filter(SalesOrder.status == SalesOrderStatus.APPROVE.value)
    )
    if customer_id:
        query = query.filter(SalesOrder.customer_id == customer_id)
    if date_from:
        query = query.filter(SalesOrder.target_delivery_date >= date_from)
    if date_to:
        query = query.filter(SalesOrder.target_delivery_date <= date_to)
    if urgent_only:
        query = query.filter(SalesOrder.target_delivery_date <= urgent_cutoff)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(SalesOrder.order_number.ilike(pattern), Customer.name.ilike(pattern))
        )

    orders = query.order_by(SalesOrder.target_delivery_date, SalesOrder.id).all()
    if not orders:
        return {"orders": [], "total_items": 0}

    items = (
        db.query(SalesOrderItem)
        .outerjoin(WorkOrder, WorkOrder.sales_order_item_id == SalesOrderItem.id)
        .filter(
            SalesOrderItem.sales_order_id.in_([so.id for so, _ in orders]),
            WorkOrder.id.is_(None),
        )
        .order_by(SalesOrderItem.id)
        .all()
    )
    items_by_order: Dict[int, List[SalesOrderItem]] = {}
    for item in items:
        items_by_order.setdefault(item.sales_order_id, []).append(item)

    groups = []
    for so, customer_name in orders:
        remaining = items_by_order.get(so.id)
        if not remaining:
            continue
        groups.append({
            "id": so.id,
            "order_number": so.order_number,
            "customer_id": so.customer_id,
            "customer_name": customer_name,
            "order_date": so.order_date,
            "target_delivery_date": so.target_delivery_date,
            "is_urgent": so.target_delivery_date <= urgent_cutoff,
            "items": remaining,
        })

    page = groups[offset:offset + limit]
    return {
        "orders": page,
        "total_items": sum(len(group["items"]) for group in page),
    }
