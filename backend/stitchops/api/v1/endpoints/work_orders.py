"""
Work Order API Endpoints

Conversion of approved sales order items into work orders and the stage
transitions that move them through production.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from stitchops.api.v1.deps import get_current_actor
from stitchops.core.status_config import ProductionStage
from stitchops.db.session import get_db
from stitchops.exceptions import StitchOpsException
from stitchops.logging_config import get_logger
from stitchops.schemas.work_order import (
    AvailableSalesOrderList,
    BulkCreationResponse,
    BulkWorkOrderCreate,
    StageActionRequest,
    StageFinishResponse,
    StageHistoryResponse,
    StageStartResponse,
    StageTimelineResponse,
    StageUpdateRequest,
    StageUpdateResponse,
    WorkOrderCreate,
    WorkOrderDetail,
    WorkOrderListItem,
    WorkOrderOptions,
    WorkOrderResponse,
)
from stitchops.services import production_stages, work_order_service

router = APIRouter()
logger = get_logger(__name__)


def _history(entries) -> List[StageHistoryResponse]:
    return [StageHistoryResponse.model_validate(entry) for entry in entries]


# ============================================================================
# Read endpoints
# ============================================================================

@router.get("/", response_model=List[WorkOrderListItem])
async def list_work_orders(
    stage: Optional[ProductionStage] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    """
    List work orders, newest first

    - **stage**: Only work orders currently at this stage
    - **search**: Match work order number, order number, customer or product
    """
    rows = work_order_service.list_work_orders(db, stage=stage, search=search)
    return [WorkOrderListItem(**row) for row in rows]


@router.get("/available-items", response_model=AvailableSalesOrderList)
async def list_available_items(
    search: Optional[str] = None,
    customer_id: Optional[int] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    urgent_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Approved sales order items that do not have a work order yet"""
    result = work_order_service.get_available_sales_order_items(
        db,
        search=search,
        customer_id=customer_id,
        date_from=date_from,
        date_to=date_to,
        urgent_only=urgent_only,
        limit=limit,
        offset=offset,
    )
    return AvailableSalesOrderList.model_validate(result, from_attributes=True)


@router.get("/{work_order_id}", response_model=WorkOrderDetail)
async def get_work_order(work_order_id: int, db: Session = Depends(get_db)):
    detail = work_order_service.get_work_order_detail(db, work_order_id)
    detail["stage_history"] = _history(detail["stage_history"])
    return WorkOrderDetail(**detail)


@router.get("/{work_order_id}/timeline", response_model=StageTimelineResponse)
async def get_stage_timeline(work_order_id: int, db: Session = Depends(get_db)):
    """Stage history with total recorded minutes"""
    timeline = production_stages.get_stage_timeline(db, work_order_id)
    timeline["entries"] = _history(timeline["entries"])
    return StageTimelineResponse(**timeline)


# ============================================================================
# Creation
# ============================================================================

@router.post("/", response_model=WorkOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_work_order(
    request: WorkOrderCreate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_current_actor),
):
    """Create the work order for an approved sales order item"""
    options = WorkOrderOptions(
        priority=request.priority,
        estimated_completion=request.estimated_completion,
        assigned_to=request.assigned_to,
    )
    try:
        work_order = work_order_service.create_work_order(
            db, request.sales_order_item_id, actor, options
        )
        db.commit()
    except StitchOpsException:
        db.rollback()
        raise

    db.refresh(work_order)
    return WorkOrderResponse.model_validate(work_order)


@router.post("/bulk", response_model=BulkCreationResponse)
async def create_bulk_work_orders(
    request: BulkWorkOrderCreate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_current_actor),
):
    """
    Create work orders for several items

    Items that fail are reported in `errors`; the rest are created.
    """
    try:
        result = work_order_service.create_bulk_work_orders(
            db, request.sales_order_item_ids, actor, request.options
        )
        db.commit()
    except StitchOpsException:
        db.rollback()
        raise

    return BulkCreationResponse(
        created=[WorkOrderResponse.model_validate(wo) for wo in result.created],
        errors=result.errors,
        summary=result.summary,
    )


# ============================================================================
# Stage transitions
# ============================================================================

@router.post("/{work_order_id}/stages/start", response_model=StageStartResponse)
async def start_stage(
    work_order_id: int,
    request: StageActionRequest,
    db: Session = Depends(get_db),
    actor: str = Depends(get_current_actor),
):
    try:
        result = production_stages.start_stage(
            db, work_order_id, request.stage, actor, notes=request.notes
        )
        db.commit()
    except StitchOpsException:
        db.rollback()
        raise

    return StageStartResponse(
        entry=StageHistoryResponse.model_validate(result.entry),
        work_order=WorkOrderResponse.model_validate(result.work_order),
    )


@router.post("/{work_order_id}/stages/finish", response_model=StageFinishResponse)
async def finish_stage(
    work_order_id: int,
    request: StageActionRequest,
    db: Session = Depends(get_db),
    actor: str = Depends(get_current_actor),
):
    """
    Finish a running stage

    The work order moves to the next stage, which is started
    automatically unless it is delivered.
    """
    try:
        result = production_stages.finish_stage(
            db, work_order_id, request.stage, actor, notes=request.notes
        )
        db.commit()
    except StitchOpsException:
        db.rollback()
        raise

    return StageFinishResponse(
        entry=StageHistoryResponse.model_validate(result.entry),
        work_order=WorkOrderResponse.model_validate(result.work_order),
        duration=result.duration,
        next_stage=result.next_stage.value,
        next_entry=StageHistoryResponse.model_validate(result.next_entry) if result.next_entry else None,
    )


@router.put("/{work_order_id}/stage", response_model=StageUpdateResponse)
async def update_stage(
    work_order_id: int,
    request: StageUpdateRequest,
    db: Session = Depends(get_db),
    actor: str = Depends(get_current_actor),
):
    """
    Move a work order to any stage (administrative correction)

    Does not follow the stage sequence. Prefer start/finish.
    """
    try:
        result = production_stages.update_stage(
            db, work_order_id, request.new_stage, actor, notes=request.notes
        )
        db.commit()
    except StitchOpsException:
        db.rollback()
        raise

    return StageUpdateResponse(
        work_order=WorkOrderResponse.model_validate(result.work_order),
        closed_entries=_history(result.closed_entries),
        entry=StageHistoryResponse.model_validate(result.entry),
    )
