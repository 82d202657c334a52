"""
Test data factories for StitchOps.

Provides functions to create test entities with sensible defaults.

Usage:
    from tests.factories import create_test_sales_order, create_test_work_order

    def test_something(db_session):
        so = create_test_sales_order(db_session, items=[{"quantity": 50}])
        wo = create_test_work_order(db_session, item=so.items[0])
"""
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session


# =============================================================================
# SEQUENCE MANAGEMENT
# =============================================================================

_sequences: Dict[str, int] = {}


def reset_sequences():
    """Reset all sequences. Call between tests for predictable IDs."""
    global _sequences
    _sequences = {}


def _next(name: str) -> int:
    """Get next sequence number for a given entity type."""
    _sequences[name] = _sequences.get(name, 0) + 1
    return _sequences[name]


def _code(prefix: str, name: str) -> str:
    """Generate a code like SO-2025-0001."""
    seq = _next(name)
    return f"{prefix}-{datetime.utcnow().year}-{seq:04d}"


# =============================================================================
# CUSTOMER / SALES ORDER FACTORIES
# =============================================================================

def create_test_customer(db: Session, **overrides) -> "Customer":
    from stitchops.models.customer import Customer

    seq = _next("customer")
    customer = Customer(
        name=overrides.pop("name", f"Test Apparel Co {seq}"),
        contact_person=overrides.pop("contact_person", "Dana Buyer"),
        email=overrides.pop("email", f"buyer{seq}@example.com"),
        phone=overrides.pop("phone", "+1-555-0100"),
        status=overrides.pop("status", "active"),
        **overrides
    )
    db.add(customer)
    db.flush()
    return customer


def create_test_sales_order(
    db: Session,
    customer: Optional["Customer"] = None,
    items: Optional[List[Dict[str, Any]]] = None,
    **overrides
) -> "SalesOrder":
    """
    Create a test sales order with line items.

    Args:
        db: Database session
        customer: Ordering customer (created if not provided)
        items: List of SalesOrderItem field dicts; one default item if omitted
        **overrides: SalesOrder field overrides (status defaults to "approve")
    """
    from stitchops.models.sales_order import SalesOrder, SalesOrderItem

    customer = customer or create_test_customer(db)
    so = SalesOrder(
        order_number=overrides.pop("order_number", _code("SO", "sales_order")),
        customer_id=customer.id,
        target_delivery_date=overrides.pop(
            "target_delivery_date", datetime.utcnow() + timedelta(days=30)
        ),
        status=overrides.pop("status", "approve"),
        total_amount=overrides.pop("total_amount", Decimal("0")),
        created_by=overrides.pop("created_by", "sales-1"),
        **overrides
    )
    db.add(so)
    db.flush()

    for item_data in items if items is not None else [{}]:
        data = dict(item_data)
        quantity = data.pop("quantity", 10)
        unit_price = Decimal(str(data.pop("unit_price", "12.50")))
        db.add(SalesOrderItem(
            sales_order_id=so.id,
            product_name=data.pop("product_name", f"Crew Neck Tee {_next('product')}"),
            quantity=quantity,
            size=data.pop("size", "M"),
            color=data.pop("color", "Navy"),
            unit_price=unit_price,
            total_price=unit_price * quantity,
            specifications=data.pop("specifications", {"fabric": "cotton 180gsm"}),
            **data
        ))
    db.flush()
    db.refresh(so)
    return so


# =============================================================================
# WORK ORDER FACTORIES
# =============================================================================

def create_test_work_order(
    db: Session,
    item: Optional["SalesOrderItem"] = None,
    stage: str = "order_processing",
    open_stage: bool = True,
    user_id: str = "operator-1",
    **overrides
) -> "WorkOrder":
    """
    Create a work order directly (bypassing the service).

    With open_stage, an open history entry is created for `stage`.
    """
    from stitchops.models.work_order import WorkOrder

    if item is None:
        item = create_test_sales_order(db).items[0]

    now = datetime.utcnow()
    wo = WorkOrder(
        work_order_number=overrides.pop("work_order_number", _code("WO", "work_order")),
        sales_order_id=item.sales_order_id,
        sales_order_item_id=item.id,
        current_stage=stage,
        started_at=overrides.pop("started_at", now),
        priority=overrides.pop("priority", 5),
        created_by=overrides.pop("created_by", user_id),
        **overrides
    )
    db.add(wo)
    db.flush()

    if open_stage:
        create_test_stage_entry(db, wo, stage=stage, user_id=user_id, started_at=now)
    return wo


def create_test_stage_entry(
    db: Session,
    work_order: "WorkOrder",
    stage: str,
    user_id: str = "operator-1",
    started_at: Optional[datetime] = None,
    completed_at: Optional[datetime] = None,
    duration: Optional[int] = None,
    notes: Optional[str] = None,
) -> "ProductionStageHistory":
    from stitchops.models.work_order import ProductionStageHistory

    entry = ProductionStageHistory(
        work_order_id=work_order.id,
        stage=stage,
        started_at=started_at or datetime.utcnow(),
        completed_at=completed_at,
        duration=duration,
        notes=notes,
        user_id=user_id,
    )
    db.add(entry)
    db.flush()
    return entry


# =============================================================================
# QUALITY FACTORIES
# =============================================================================

def create_test_inspection(
    db: Session,
    work_order: "WorkOrder",
    passed: int = 10,
    repaired: int = 0,
    rejected: int = 0,
    status: str = "pass",
    **overrides
) -> "QualityInspection":
    from stitchops.models.quality_inspection import QualityInspection

    inspection = QualityInspection(
        work_order_id=work_order.id,
        stage=overrides.pop("stage", "quality_control"),
        status=status,
        final_status=status,
        inspected_by=overrides.pop("inspected_by", "inspector-1"),
        inspection_date=overrides.pop("inspection_date", datetime.utcnow()),
        total_quantity=passed + repaired + rejected,
        passed_quantity=passed,
        repaired_quantity=repaired,
        rejected_quantity=rejected,
        issues=overrides.pop("issues", []),
        **overrides
    )
    db.add(inspection)
    db.flush()
    return inspection


def make_issue(category: str = "repair", severity: str = "minor", **overrides) -> Dict[str, Any]:
    """Issue payload as submitted by an inspector."""
    issue = {
        "type": "loose_thread",
        "description": "Loose thread at hem",
        "severity": severity,
        "position": "hem",
        "quantity": 1,
        "category": category,
    }
    issue.update(overrides)
    return issue


# =============================================================================
# SAMPLE REQUEST FACTORIES
# =============================================================================

def create_test_sample_request(
    db: Session,
    customer: Optional["Customer"] = None,
    status: str = "draft",
    **overrides
) -> "SampleRequest":
    from stitchops.models.sample_request import SampleRequest

    customer = customer or create_test_customer(db)
    sample = SampleRequest(
        sample_id=overrides.pop("sample_id", _code("SMP", "sample")),
        customer_id=customer.id,
        sample_name=overrides.pop("sample_name", "Team Jersey Prototype"),
        status=status,
        created_by=overrides.pop("created_by", "designer-1"),
        **overrides
    )
    db.add(sample)
    db.flush()
    return sample
