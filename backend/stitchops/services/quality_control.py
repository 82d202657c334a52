"""
Quality Control Service

Records quality inspections, derives their disposition and, for
inspections at quality_control, moves the work order on to finishing
when the batch has salvageable output and no rejected units.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from stitchops.core.settings import settings
from stitchops.core.status_config import ProductionStage, QualityStatus, parse_stage
from stitchops.exceptions import (
    MissingIssuesError,
    MissingReinspectionDateError,
    NotFoundError,
    QuantityMismatchError,
    ValidationError,
)
from stitchops.logging_config import get_logger
from stitchops.models.customer import Customer
from stitchops.models.quality_inspection import QualityInspection
from stitchops.models.sales_order import SalesOrder, SalesOrderItem
from stitchops.models.work_order import WorkOrder, ProductionStageHistory
from stitchops.schemas.quality_inspection import InspectionCounts, QualityIssue, Reinspection
from stitchops.services.production_stages import (
    close_entry,
    get_open_entry,
    get_work_order_for_update,
    open_entry,
)

logger = get_logger(__name__)


@dataclass
class InspectionOutcome:
    inspection: QualityInspection
    work_order: WorkOrder
    stage_advanced: bool
    disposition_label: str


# ============================================================================
# Disposition
# ============================================================================

def derive_disposition(counts: InspectionCounts) -> QualityStatus:
    """
    Overall verdict for a batch.

    Uniform batches map directly; in a mixed batch any rejected unit
    makes it reject, otherwise any repaired unit makes it repair.
    """
    if counts.passed == counts.total:
        return QualityStatus.PASS
    if counts.rejected == counts.total:
        return QualityStatus.REJECT
    if counts.repaired == counts.total:
        return QualityStatus.REPAIR
    if counts.rejected > 0:
        return QualityStatus.REJECT
    if counts.repaired > 0:
        return QualityStatus.REPAIR
    return QualityStatus.PASS


def disposition_label(counts: InspectionCounts) -> str:
    """Short description shown next to the disposition."""
    if counts.passed == counts.total:
        return "All Passed"
    if counts.rejected == counts.total:
        return "All Rejected"
    if counts.repaired == counts.total:
        return "All Repaired"
    return f"Mixed: {counts.passed} passed, {counts.repaired} repaired, {counts.rejected} rejected"


def should_advance(counts: InspectionCounts) -> bool:
    """Whether a quality_control inspection releases the work order to finishing."""
    return counts.rejected == 0 and (counts.passed > 0 or counts.repaired > 0)


def validate_inspection(
    counts: InspectionCounts,
    issues: List[QualityIssue],
    reinspection: Optional[Reinspection] = None,
    repair_notes: Optional[str] = None,
) -> None:
    """
    Raises:
        QuantityMismatchError: passed + repaired + rejected != total
        MissingIssuesError: repaired or rejected units without any issue
        ValidationError: repaired units without repair notes
        MissingReinspectionDateError: reinspection required without a date
    """
    if counts.passed + counts.repaired + counts.rejected != counts.total:
        raise QuantityMismatchError(
            total=counts.total,
            passed=counts.passed,
            repaired=counts.repaired,
            rejected=counts.rejected,
        )
    if (counts.repaired > 0 or counts.rejected > 0) and not issues:
        raise MissingIssuesError(repaired=counts.repaired, rejected=counts.rejected)
    if counts.repaired > 0 and not (repair_notes or "").strip():
        raise ValidationError(
            "Repair notes are required when units are repaired",
            field="repair_notes",
        )
    if reinspection is not None and reinspection.required and reinspection.date is None:
        raise MissingReinspectionDateError()


def _normalize_issues(issues: Optional[Iterable[Any]]) -> List[QualityIssue]:
    normalized = []
    for issue in issues or []:
        if not isinstance(issue, QualityIssue):
            issue = QualityIssue.model_validate(issue)
        if not issue.id:
            issue = issue.model_copy(update={"id": uuid.uuid4().hex[:12]})
        normalized.append(issue)
    return normalized


# ============================================================================
# Recording
# ============================================================================

def record_inspection(
    db: Session,
    work_order_id: int,
    stage,
    counts: InspectionCounts,
    issues: Optional[Iterable[Any]],
    inspector_id: str,
    repair_notes: Optional[str] = None,
    reinspection: Optional[Reinspection] = None,
) -> InspectionOutcome:
    """
    Validate and persist an inspection.

    At quality_control, a batch with passed or repaired units and no
    rejects closes the quality_control entry, opens finishing and moves
    the work order there. Only a work order currently at quality_control
    is released; otherwise the work order stays where it is.

    Raises:
        InvalidStageError, QuantityMismatchError, MissingIssuesError,
        ValidationError, MissingReinspectionDateError, NotFoundError
    """
    stage = parse_stage(stage)
    issue_list = _normalize_issues(issues)

    try:
        validate_inspection(counts, issue_list, reinspection, repair_notes)
    except (
        QuantityMismatchError,
        MissingIssuesError,
        MissingReinspectionDateError,
        ValidationError,
    ) as e:
        logger.warning(
            f"Rejected inspection for work order {work_order_id}: {e.error_code}",
            extra={"work_order_id": work_order_id, "inspector": inspector_id},
        )
        raise

    work_order = get_work_order_for_update(db, work_order_id)

    now = datetime.utcnow()
    disposition = derive_disposition(counts)
    inspection = QualityInspection(
        work_order_id=work_order.id,
        stage=stage.value,
        status=disposition.value,
        final_status=disposition.value,
        inspected_by=inspector_id,
        inspection_date=now,
        total_quantity=counts.total,
        passed_quantity=counts.passed,
        repaired_quantity=counts.repaired,
        rejected_quantity=counts.rejected,
        issues=[issue.model_dump(mode="json") for issue in issue_list],
        repair_notes=repair_notes,
        reinspection_date=reinspection.date if reinspection else None,
    )
    db.add(inspection)

    advanced = False
    if stage == ProductionStage.QUALITY_CONTROL and should_advance(counts):
        if work_order.current_stage == ProductionStage.QUALITY_CONTROL.value:
            _release_to_finishing(db, work_order, counts, inspector_id, now)
            advanced = True
        else:
            logger.warning(
                f"Inspection on {work_order.work_order_number} not released: "
                f"work order is at {work_order.current_stage}",
                extra={"work_order_id": work_order.id, "inspector": inspector_id},
            )

    db.flush()
    logger.info(
        f"Inspection {inspection.id} on {work_order.work_order_number} at {stage.value}: "
        f"{disposition.value}" + (" (advanced to finishing)" if advanced else ""),
        extra={
            "work_order_id": work_order.id,
            "inspection_id": inspection.id,
            "disposition": disposition.value,
            "inspector": inspector_id,
        },
    )
    return InspectionOutcome(
        inspection=inspection,
        work_order=work_order,
        stage_advanced=advanced,
        disposition_label=disposition_label(counts),
    )


def _release_to_finishing(
    db: Session,
    work_order: WorkOrder,
    counts: InspectionCounts,
    inspector_id: str,
    now: datetime,
) -> None:
    note = (
        f"Quality control completed: {counts.passed} passed, {counts.repaired} repaired, "
        f"{counts.rejected} rejected. Inspector: {inspector_id}"
    )
    qc_entry = get_open_entry(db, work_order.id, ProductionStage.QUALITY_CONTROL)
    if qc_entry is None:
        qc_entry = open_entry(db, work_order, ProductionStage.QUALITY_CONTROL, inspector_id, started_at=now)
    close_entry(qc_entry, now, notes=note, duration=settings.QC_STAGE_CLOSE_DURATION_MINUTES)

    if get_open_entry(db, work_order.id, ProductionStage.FINISHING) is None:
        open_entry(
            db,
            work_order,
            ProductionStage.FINISHING,
            inspector_id,
            notes="Started after quality control",
            started_at=now,
        )
    work_order.current_stage = ProductionStage.FINISHING.value


# ============================================================================
# Administrative edit
# ============================================================================

def get_inspection(db: Session, inspection_id: int) -> QualityInspection:
    inspection = db.get(QualityInspection, inspection_id)
    if not inspection:
        raise NotFoundError("Quality inspection", inspection_id)
    return inspection


def update_inspection_notes(
    db: Session,
    inspection_id: int,
    user_id: str,
    repair_notes: Optional[str] = None,
    reinspection_date: Optional[datetime] = None,
) -> QualityInspection:
    """Edit repair notes or the reinspection date; counts never change."""
    inspection = get_inspection(db, inspection_id)
    if repair_notes is not None:
        inspection.repair_notes = repair_notes
    if reinspection_date is not None:
        inspection.reinspection_date = reinspection_date
    db.flush()
    logger.info(
        f"Inspection {inspection.id} notes updated",
        extra={"inspection_id": inspection.id, "user_id": user_id},
    )
    return inspection


# ============================================================================
# Read models
# ============================================================================

def list_inspections(
    db: Session,
    status: Optional[str] = None,
    stage: Optional[str] = None,
    inspector_id: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[Dict[str, Any]], int]:
    """Inspections newest first with work order, product and customer names."""
    query = (
        db.query(
            QualityInspection,
            WorkOrder.work_order_number,
            SalesOrderItem.product_name,
            Customer.name.label("customer_name"),
        )
        .join(WorkOrder, QualityInspection.work_order_id == WorkOrder.id)
        .join(SalesOrderItem, WorkOrder.sales_order_item_id == SalesOrderItem.id)
        .join(SalesOrder, WorkOrder.sales_order_id == SalesOrder.id)
        .join(Customer, SalesOrder.customer_id == Customer.id)
    )

    if status:
        query = query.filter(QualityInspection.status == status)
    if stage:
        query = query.filter(QualityInspection.stage == parse_stage(stage).value)
    if inspector_id:
        query = query.filter(QualityInspection.inspected_by == inspector_id)
    if date_from:
        query = query.filter(QualityInspection.inspection_date >= date_from)
    if date_to:
        query = query.filter(QualityInspection.inspection_date <= date_to)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                WorkOrder.work_order_number.ilike(pattern),
                SalesOrderItem.product_name.ilike(pattern),
                Customer.name.ilike(pattern),
            )
        )

    total = query.count()
    rows = (
        query.order_by(QualityInspection.inspection_date.desc(), QualityInspection.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    items = []
    for inspection, work_order_number, product_name, customer_name in rows:
        items.append({
            "inspection": inspection,
            "work_order_number": work_order_number,
            "product_name": product_name,
            "customer_name": customer_name,
        })
    return items, total


def _percent(part: int, whole: int) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, 2)


def get_quality_metrics(
    db: Session,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    inspector_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Inspection and unit rates plus the average recorded QC dwell time."""
    query = db.query(QualityInspection)
    if date_from:
        query = query.filter(QualityInspection.inspection_date >= date_from)
    if date_to:
        query = query.filter(QualityInspection.inspection_date <= date_to)
    if inspector_id:
        query = query.filter(QualityInspection.inspected_by == inspector_id)
    inspections = query.all()

    by_status = {status.value: 0 for status in QualityStatus}
    by_stage: Dict[str, int] = {}
    by_inspector: Dict[str, int] = {}
    total_units = passed_units = repaired_units = rejected_units = 0

    for inspection in inspections:
        by_status[inspection.status] = by_status.get(inspection.status, 0) + 1
        by_stage[inspection.stage] = by_stage.get(inspection.stage, 0) + 1
        by_inspector[inspection.inspected_by] = by_inspector.get(inspection.inspected_by, 0) + 1
        total_units += inspection.total_quantity
        passed_units += inspection.passed_quantity
        repaired_units += inspection.repaired_quantity
        rejected_units += inspection.rejected_quantity

    qc_query = db.query(func.avg(ProductionStageHistory.duration)).filter(
        ProductionStageHistory.stage == ProductionStage.QUALITY_CONTROL.value,
        ProductionStageHistory.duration.isnot(None),
    )
    if date_from:
        qc_query = qc_query.filter(ProductionStageHistory.completed_at >= date_from)
    if date_to:
        qc_query = qc_query.filter(ProductionStageHistory.completed_at <= date_to)
    average_qc = qc_query.scalar()

    total = len(inspections)
    return {
        "total_inspections": total,
        "passed_inspections": by_status[QualityStatus.PASS.value],
        "repaired_inspections": by_status[QualityStatus.REPAIR.value],
        "rejected_inspections": by_status[QualityStatus.REJECT.value],
        "pass_rate": _percent(by_status[QualityStatus.PASS.value], total),
        "repair_rate": _percent(by_status[QualityStatus.REPAIR.value], total),
        "reject_rate": _percent(by_status[QualityStatus.REJECT.value], total),
        "total_units": total_units,
        "passed_units": passed_units,
        "repaired_units": repaired_units,
        "rejected_units": rejected_units,
        "unit_pass_rate": _percent(passed_units, total_units),
        "unit_repair_rate": _percent(repaired_units, total_units),
        "unit_reject_rate": _percent(rejected_units, total_units),
        "average_qc_minutes": round(float(average_qc), 2) if average_qc is not None else 0.0,
        "by_stage": by_stage,
        "by_inspector": by_inspector,
    }


def get_quality_queue(db: Session) -> List[Dict[str, Any]]:
    """Work orders waiting at quality_control, most urgent first."""
    rows = (
        db.query(
            WorkOrder,
            SalesOrderItem.product_name,
            SalesOrderItem.quantity,
            Customer.name.label("customer_name"),
        )
        .join(SalesOrderItem, WorkOrder.sales_order_item_id == SalesOrderItem.id)
        .join(SalesOrder, WorkOrder.sales_order_id == SalesOrder.id)
        .join(Customer, SalesOrder.customer_id == Customer.id)
        .filter(WorkOrder.current_stage == ProductionStage.QUALITY_CONTROL.value)
        .order_by(WorkOrder.priority, WorkOrder.created_at, WorkOrder.id)
        .all()
    )

    queue = []
    for work_order, product_name, quantity, customer_name in rows:
        latest = (
            db.query(QualityInspection)
            .filter(QualityInspection.work_order_id == work_order.id)
            .order_by(QualityInspection.inspection_date.desc(), QualityInspection.id.desc())
            .first()
        )
        entry = get_open_entry(db, work_order.id, ProductionStage.QUALITY_CONTROL)
        queue.append({
            "work_order_id": work_order.id,
            "work_order_number": work_order.work_order_number,
            "priority": work_order.priority,
            "product_name": product_name,
            "quantity": quantity,
            "customer_name": customer_name,
            "entered_stage_at": entry.started_at if entry else None,
            "latest_status": latest.status if latest else None,
            "latest_inspection_id": latest.id if latest else None,
        })
    return queue
