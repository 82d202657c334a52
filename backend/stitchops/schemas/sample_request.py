"""
R&D Sample Request Pydantic Schemas
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime
from decimal import Decimal

from stitchops.core.status_config import ProcessStage, SampleRequestStatus
from stitchops.schemas.common import PageMeta


class MaterialRequirementBase(BaseModel):
    material_type: str = Field(..., min_length=1, max_length=100)
    quantity: Decimal = Field(..., ge=0)
    unit: str = Field("pieces", max_length=20)
    specifications: Optional[str] = None


class MaterialRequirementResponse(MaterialRequirementBase):
    id: int

    class Config:
        from_attributes = True


class ProcessStageResponse(BaseModel):
    id: int
    process_stage: str
    sequence: int

    class Config:
        from_attributes = True


class StatusHistoryResponse(BaseModel):
    id: int
    previous_status: Optional[str] = None
    new_status: str
    changed_by: str
    change_reason: Optional[str] = None
    changed_at: datetime

    class Config:
        from_attributes = True


class SampleRequestCreate(BaseModel):
    """Create a sample request in draft"""
    customer_id: int
    sample_name: str = Field(..., min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=50)
    total_order_quantity: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    material_requirements: List[MaterialRequirementBase] = []
    # Applied in list order
    process_stages: List[ProcessStage] = []


class SampleRequestUpdate(BaseModel):
    """Edit a draft sample request; a given list replaces the stored one"""
    sample_name: Optional[str] = Field(None, min_length=1, max_length=255)
    color: Optional[str] = Field(None, max_length=50)
    total_order_quantity: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    material_requirements: Optional[List[MaterialRequirementBase]] = None
    process_stages: Optional[List[ProcessStage]] = None


class SampleStatusChange(BaseModel):
    new_status: SampleRequestStatus
    reason: Optional[str] = None


class SampleRequestResponse(BaseModel):
    id: int
    sample_id: str
    customer_id: int
    customer_name: Optional[str] = None
    sample_name: str
    color: Optional[str] = None
    status: str
    total_order_quantity: Optional[int] = None
    notes: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SampleRequestDetail(SampleRequestResponse):
    allowed_transitions: List[str] = []
    material_requirements: List[MaterialRequirementResponse] = []
    process_stages: List[ProcessStageResponse] = []
    status_history: List[StatusHistoryResponse] = []


class SampleRequestListResponse(BaseModel):
    items: List[SampleRequestResponse]
    pagination: PageMeta


class RecentStatusChange(StatusHistoryResponse):
    sample_id: str
    sample_name: str


class RdDashboard(BaseModel):
    total: int
    status_counts: Dict[str, int]
    top_materials: Dict[str, int]
    process_usage: Dict[str, int]
    recent_changes: List[RecentStatusChange]
