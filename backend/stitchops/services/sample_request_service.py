"""
R&D Sample Request Service

Sample requests move draft → on_review → approved, with revision loops
and cancellation. Every status change is written to SampleStatusHistory.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Session

from stitchops.core.settings import settings
from stitchops.core.status_config import (
    SampleRequestStatus,
    get_allowed_sample_transitions,
    is_valid_sample_transition,
)
from stitchops.exceptions import (
    InvalidStateError,
    InvalidStatusTransitionError,
    NotFoundError,
    ValidationError,
)
from stitchops.logging_config import get_logger
from stitchops.models.customer import Customer
from stitchops.models.sample_request import (
    SampleMaterialRequirement,
    SampleProcessStage,
    SampleRequest,
    SampleStatusHistory,
)
from stitchops.schemas.sample_request import SampleRequestCreate, SampleRequestUpdate

logger = get_logger(__name__)


def generate_sample_id(db: Session) -> str:
    """Generate next sample id: SMP-{year}-{seq:04d}"""
    prefix = settings.SAMPLE_ID_PREFIX
    year = datetime.utcnow().year

    # Longest suffix first so -10000 sorts above -9999
    last = (
        db.query(SampleRequest.sample_id)
        .filter(SampleRequest.sample_id.like(f"{prefix}-{year}-%"))
        .order_by(desc(func.length(SampleRequest.sample_id)), desc(SampleRequest.sample_id))
        .first()
    )
    if last:
        try:
            seq = int(last[0].split("-")[2]) + 1
        except (IndexError, ValueError):
            seq = 1
    else:
        seq = 1

    return f"{prefix}-{year}-{seq:04d}"


def create_sample_request(db: Session, data: SampleRequestCreate, created_by: str) -> SampleRequest:
    """
    Create a draft sample request with its materials and process stages.

    Raises:
        NotFoundError: Customer does not exist
    """
    customer = db.get(Customer, data.customer_id)
    if not customer:
        raise NotFoundError("Customer", data.customer_id)

    sample = SampleRequest(
        sample_id=generate_sample_id(db),
        customer_id=customer.id,
        sample_name=data.sample_name,
        color=data.color,
        status=SampleRequestStatus.DRAFT.value,
        total_order_quantity=data.total_order_quantity,
        notes=data.notes,
        created_by=created_by,
    )
    db.add(sample)
    db.flush()

    for material in data.material_requirements:
        db.add(SampleMaterialRequirement(
            sample_request_id=sample.id,
            material_type=material.material_type,
            quantity=material.quantity,
            unit=material.unit,
            specifications=material.specifications,
        ))

    for sequence, process_stage in enumerate(data.process_stages, start=1):
        db.add(SampleProcessStage(
            sample_request_id=sample.id,
            process_stage=process_stage.value,
            sequence=sequence,
        ))

    db.add(SampleStatusHistory(
        sample_request_id=sample.id,
        previous_status=None,
        new_status=SampleRequestStatus.DRAFT.value,
        changed_by=created_by,
        change_reason="Sample request created",
    ))
    db.flush()

    logger.info(f"Created sample request {sample.sample_id} for customer {customer.id}")
    return sample


def get_sample_request(db: Session, sample_request_id: int) -> SampleRequest:
    sample = db.get(SampleRequest, sample_request_id)
    if not sample:
        raise NotFoundError("Sample request", sample_request_id)
    return sample


def _require_draft(sample: SampleRequest, action: str) -> None:
    if sample.status != SampleRequestStatus.DRAFT.value:
        raise InvalidStateError(
            f"Only draft sample requests can be {action}",
            current_state=sample.status,
            allowed_states=[SampleRequestStatus.DRAFT.value],
        )


def update_sample_request(
    db: Session,
    sample_request_id: int,
    data: SampleRequestUpdate,
    updated_by: str,
) -> SampleRequest:
    """
    Edit a draft sample request.

    Only fields present in the request are changed. A material or process
    stage list, when given, replaces the existing one.

    Raises:
        NotFoundError: Sample request does not exist
        InvalidStateError: Sample request is no longer a draft
    """
    sample = get_sample_request(db, sample_request_id)
    _require_draft(sample, "edited")

    changes = data.model_dump(exclude_unset=True, exclude={"material_requirements", "process_stages"})
    for field_name, value in changes.items():
        if field_name == "sample_name" and not value:
            continue
        setattr(sample, field_name, value)

    if data.material_requirements is not None:
        sample.material_requirements = [
            SampleMaterialRequirement(
                material_type=material.material_type,
                quantity=material.quantity,
                unit=material.unit,
                specifications=material.specifications,
            )
            for material in data.material_requirements
        ]

    if data.process_stages is not None:
        sample.process_stages = [
            SampleProcessStage(process_stage=process_stage.value, sequence=sequence)
            for sequence, process_stage in enumerate(data.process_stages, start=1)
        ]

    db.flush()
    logger.info(
        f"Updated sample request {sample.sample_id}",
        extra={"sample_request_id": sample.id, "updated_by": updated_by},
    )
    return sample


def delete_sample_request(db: Session, sample_request_id: int, deleted_by: str) -> str:
    """
    Delete a draft sample request with its materials, stages and history.

    Returns the deleted sample id.

    Raises:
        NotFoundError: Sample request does not exist
        InvalidStateError: Sample request is no longer a draft
    """
    sample = get_sample_request(db, sample_request_id)
    _require_draft(sample, "deleted")

    sample_id = sample.sample_id
    db.delete(sample)
    db.flush()

    logger.info(
        f"Deleted sample request {sample_id}",
        extra={"sample_request_id": sample_request_id, "deleted_by": deleted_by},
    )
    return sample_id


def list_sample_requests(
    db: Session,
    status: Optional[str] = None,
    customer_id: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[SampleRequest], int]:
    query = db.query(SampleRequest)
    if status:
        query = query.filter(SampleRequest.status == status)
    if customer_id:
        query = query.filter(SampleRequest.customer_id == customer_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(SampleRequest.sample_id.ilike(pattern), SampleRequest.sample_name.ilike(pattern))
        )

    total = query.count()
    samples = (
        query.order_by(desc(SampleRequest.created_at), desc(SampleRequest.id))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return samples, total


def change_sample_status(
    db: Session,
    sample_request_id: int,
    new_status: str,
    changed_by: str,
    reason: Optional[str] = None,
) -> SampleRequest:
    """
    Move a sample request to a new status and record the change.

    Raises:
        NotFoundError: Sample request does not exist
        ValidationError: Unknown status value
        InvalidStatusTransitionError: Transition not allowed from the current status
    """
    try:
        new_status = SampleRequestStatus(new_status).value
    except ValueError:
        raise ValidationError(f"Unknown sample status '{new_status}'", field="new_status", value=new_status)
    sample = get_sample_request(db, sample_request_id)
    old_status = sample.status

    if not is_valid_sample_transition(old_status, new_status):
        logger.warning(f"Sample {sample.sample_id}: rejected transition {old_status} → {new_status}")
        raise InvalidStatusTransitionError(
            old_status, new_status, get_allowed_sample_transitions(old_status)
        )

    sample.status = new_status
    db.add(SampleStatusHistory(
        sample_request_id=sample.id,
        previous_status=old_status,
        new_status=new_status,
        changed_by=changed_by,
        change_reason=reason,
    ))
    db.flush()

    logger.info(f"Sample {sample.sample_id}: {old_status} → {new_status}")
    return sample


def get_rd_dashboard(db: Session, recent_limit: int = 10) -> Dict[str, Any]:
    """Status counts, material and process usage, and recent status changes."""
    status_counts = {status.value: 0 for status in SampleRequestStatus}
    for status, count in (
        db.query(SampleRequest.status, func.count(SampleRequest.id))
        .group_by(SampleRequest.status)
        .all()
    ):
        status_counts[status] = count

    top_materials = (
        db.query(SampleMaterialRequirement.material_type, func.count(SampleMaterialRequirement.id))
        .group_by(SampleMaterialRequirement.material_type)
        .order_by(desc(func.count(SampleMaterialRequirement.id)), SampleMaterialRequirement.material_type)
        .limit(5)
        .all()
    )

    process_usage = (
        db.query(SampleProcessStage.process_stage, func.count(SampleProcessStage.id))
        .group_by(SampleProcessStage.process_stage)
        .order_by(SampleProcessStage.process_stage)
        .all()
    )

    recent = (
        db.query(SampleStatusHistory, SampleRequest.sample_id, SampleRequest.sample_name)
        .join(SampleRequest, SampleStatusHistory.sample_request_id == SampleRequest.id)
        .order_by(desc(SampleStatusHistory.changed_at), desc(SampleStatusHistory.id))
        .limit(recent_limit)
        .all()
    )

    return {
        "total": sum(status_counts.values()),
        "status_counts": status_counts,
        "top_materials": {material: count for material, count in top_materials},
        "process_usage": {stage: count for stage, count in process_usage},
        "recent_changes": [
            {
                "id": history.id,
                "previous_status": history.previous_status,
                "new_status": history.new_status,
                "changed_by": history.changed_by,
                "change_reason": history.change_reason,
                "changed_at": history.changed_at,
                "sample_id": sample_id,
                "sample_name": sample_name,
            }
            for history, sample_id, sample_name in recent
        ],
    }
