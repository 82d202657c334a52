"""
Quality Control API Endpoints

Recording inspections, the narrow post-inspection edit, and the
inspection list, metrics and queue used by the QC dashboard.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stitchops.api.v1.deps import PageParams, get_current_actor
from stitchops.core.status_config import ProductionStage, QualityStatus
from stitchops.db.session import get_db
from stitchops.exceptions import StitchOpsException
from stitchops.logging_config import get_logger
from stitchops.schemas.common import build_page_meta
from stitchops.schemas.quality_inspection import (
    InspectionCreate,
    InspectionListItem,
    InspectionListResponse,
    InspectionNotesUpdate,
    InspectionRecordResponse,
    InspectionResponse,
    QualityMetrics,
    QualityQueueItem,
)
from stitchops.services import quality_control

router = APIRouter()
logger = get_logger(__name__)


@router.post("/inspections", response_model=InspectionRecordResponse, status_code=status.HTTP_201_CREATED)
async def record_inspection(
    request: InspectionCreate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_current_actor),
):
    """
    Record an inspection

    Counts must add up to the total, and repaired or rejected units need
    at least one issue. At quality_control, a batch with no rejected
    units moves the work order to finishing.
    """
    try:
        outcome = quality_control.record_inspection(
            db,
            request.work_order_id,
            request.stage,
            request.counts,
            request.issues,
            inspector_id=actor,
            repair_notes=request.repair_notes,
            reinspection=request.reinspection,
        )
        db.commit()
    except StitchOpsException:
        db.rollback()
        raise

    return InspectionRecordResponse(
        inspection=InspectionResponse.model_validate(outcome.inspection),
        disposition_label=outcome.disposition_label,
        stage_advanced=outcome.stage_advanced,
        current_stage=outcome.work_order.current_stage,
    )


@router.get("/inspections", response_model=InspectionListResponse)
async def list_inspections(
    inspection_status: Optional[QualityStatus] = None,
    stage: Optional[ProductionStage] = None,
    inspector_id: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    search: Optional[str] = None,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    rows, total = quality_control.list_inspections(
        db,
        status=inspection_status.value if inspection_status else None,
        stage=stage,
        inspector_id=inspector_id,
        date_from=date_from,
        date_to=date_to,
        search=search,
        page=paging.page,
        limit=paging.limit,
    )
    items = [
        InspectionListItem(
            **InspectionResponse.model_validate(row["inspection"]).model_dump(),
            work_order_number=row["work_order_number"],
            product_name=row["product_name"],
            customer_name=row["customer_name"],
        )
        for row in rows
    ]
    return InspectionListResponse(
        items=items,
        pagination=build_page_meta(paging.page, paging.limit, total),
    )


@router.get("/inspections/{inspection_id}", response_model=InspectionResponse)
async def get_inspection(inspection_id: int, db: Session = Depends(get_db)):
    return InspectionResponse.model_validate(quality_control.get_inspection(db, inspection_id))


@router.patch("/inspections/{inspection_id}", response_model=InspectionResponse)
async def update_inspection_notes(
    inspection_id: int,
    request: InspectionNotesUpdate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_current_actor),
):
    """Edit repair notes or the reinspection date. Counts cannot be changed."""
    try:
        inspection = quality_control.update_inspection_notes(
            db,
            inspection_id,
            actor,
            repair_notes=request.repair_notes,
            reinspection_date=request.reinspection_date,
        )
        db.commit()
    except StitchOpsException:
        db.rollback()
        raise

    db.refresh(inspection)
    return InspectionResponse.model_validate(inspection)


@router.get("/metrics", response_model=QualityMetrics)
async def get_quality_metrics(
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    inspector_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return QualityMetrics(
        **quality_control.get_quality_metrics(
            db, date_from=date_from, date_to=date_to, inspector_id=inspector_id
        )
    )


@router.get("/queue", response_model=List[QualityQueueItem])
async def get_quality_queue(db: Session = Depends(get_db)):
    """Work orders waiting at quality control, by priority"""
    return [QualityQueueItem(**item) for item in quality_control.get_quality_queue(db)]
