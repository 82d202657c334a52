"""
R&D Sample Request API Endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from stitchops.api.v1.deps import PageParams, get_current_actor
from stitchops.core.status_config import SampleRequestStatus, get_allowed_sample_transitions
from stitchops.db.session import get_db
from stitchops.exceptions import StitchOpsException
from stitchops.logging_config import get_logger
from stitchops.models.sample_request import SampleRequest
from stitchops.schemas.common import MessageResponse, build_page_meta
from stitchops.schemas.sample_request import (
    MaterialRequirementResponse,
    ProcessStageResponse,
    RdDashboard,
    SampleRequestCreate,
    SampleRequestDetail,
    SampleRequestListResponse,
    SampleRequestResponse,
    SampleRequestUpdate,
    SampleStatusChange,
    StatusHistoryResponse,
)
from stitchops.services import sample_request_service

router = APIRouter()
logger = get_logger(__name__)


def _to_response(sample: SampleRequest) -> SampleRequestResponse:
    response = SampleRequestResponse.model_validate(sample)
    response.customer_name = sample.customer.name if sample.customer else None
    return response


def _to_detail(sample: SampleRequest) -> SampleRequestDetail:
    """Sample request with requirements, stages and newest-first history"""
    return SampleRequestDetail(
        **_to_response(sample).model_dump(),
        allowed_transitions=get_allowed_sample_transitions(sample.status),
        material_requirements=[
            MaterialRequirementResponse.model_validate(m) for m in sample.material_requirements
        ],
        process_stages=[ProcessStageResponse.model_validate(s) for s in sample.process_stages],
        status_history=[
            StatusHistoryResponse.model_validate(h) for h in reversed(sample.status_history)
        ],
    )


@router.post("/", response_model=SampleRequestDetail, status_code=status.HTTP_201_CREATED)
async def create_sample_request(
    request: SampleRequestCreate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_current_actor),
):
    try:
        sample = sample_request_service.create_sample_request(db, request, actor)
        db.commit()
    except StitchOpsException:
        db.rollback()
        raise

    db.refresh(sample)
    return _to_detail(sample)


@router.get("/", response_model=SampleRequestListResponse)
async def list_sample_requests(
    sample_status: Optional[SampleRequestStatus] = None,
    customer_id: Optional[int] = None,
    search: Optional[str] = None,
    paging: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    """
    List sample requests, newest first

    - **sample_status**: Filter by status
    - **search**: Match sample id or sample name
    """
    samples, total = sample_request_service.list_sample_requests(
        db,
        status=sample_status.value if sample_status else None,
        customer_id=customer_id,
        search=search,
        page=paging.page,
        limit=paging.limit,
    )
    return SampleRequestListResponse(
        items=[_to_response(sample) for sample in samples],
        pagination=build_page_meta(paging.page, paging.limit, total),
    )


@router.get("/dashboard", response_model=RdDashboard)
async def get_rd_dashboard(db: Session = Depends(get_db)):
    return RdDashboard(**sample_request_service.get_rd_dashboard(db))


@router.get("/{sample_request_id}", response_model=SampleRequestDetail)
async def get_sample_request(sample_request_id: int, db: Session = Depends(get_db)):
    return _to_detail(sample_request_service.get_sample_request(db, sample_request_id))


@router.post("/{sample_request_id}/status", response_model=SampleRequestDetail)
async def change_sample_status(
    sample_request_id: int,
    request: SampleStatusChange,
    db: Session = Depends(get_db),
    actor: str = Depends(get_current_actor),
):
    """Move a sample request to another status"""
    try:
        sample = sample_request_service.change_sample_status(
            db, sample_request_id, request.new_status, actor, reason=request.reason
        )
        db.commit()
    except StitchOpsException:
        db.rollback()
        raise

    db.refresh(sample)
    return _to_detail(sample)


@router.put("/{sample_request_id}", response_model=SampleRequestDetail)
async def update_sample_request(
    sample_request_id: int,
    request: SampleRequestUpdate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_current_actor),
):
    """
    Edit a draft sample request

    Omitted fields are left alone. Sending **material_requirements** or
    **process_stages** replaces the whole list.
    """
    try:
        sample = sample_request_service.update_sample_request(db, sample_request_id, request, actor)
        db.commit()
    except StitchOpsException:
        db.rollback()
        raise

    db.refresh(sample)
    return _to_detail(sample)


@router.delete("/{sample_request_id}", response_model=MessageResponse)
async def delete_sample_request(
    sample_request_id: int,
    db: Session = Depends(get_db),
    actor: str = Depends(get_current_actor),
):
    """Delete a draft sample request"""
    try:
        sample_id = sample_request_service.delete_sample_request(db, sample_request_id, actor)
        db.commit()
    except StitchOpsException:
        db.rollback()
        raise

    return MessageResponse(
        message=f"Sample request {sample_id} deleted",
        data={"id": sample_request_id, "sample_id": sample_id},
    )
