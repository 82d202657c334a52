"""
Quality Inspection Pydantic Schemas
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime

from stitchops.core.status_config import IssueCategory, IssueSeverity, ProductionStage
from stitchops.schemas.common import PageMeta


class QualityIssue(BaseModel):
    """A structured defect record"""
    id: Optional[str] = None
    type: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    severity: IssueSeverity
    position: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    category: IssueCategory


class InspectionCounts(BaseModel):
    """Unit counts of an inspected batch"""
    total: int = Field(..., ge=0)
    passed: int = Field(0, ge=0)
    repaired: int = Field(0, ge=0)
    rejected: int = Field(0, ge=0)


class Reinspection(BaseModel):
    """Follow-up request; date is checked by the quality gate"""
    required: bool = False
    date: Optional[datetime] = None


class InspectionCreate(BaseModel):
    """Record an inspection"""
    work_order_id: int
    stage: ProductionStage = ProductionStage.QUALITY_CONTROL
    counts: InspectionCounts
    issues: List[QualityIssue] = []
    repair_notes: Optional[str] = None
    reinspection: Optional[Reinspection] = None


class InspectionNotesUpdate(BaseModel):
    """The only edit allowed after an inspection is recorded"""
    repair_notes: Optional[str] = None
    reinspection_date: Optional[datetime] = None


class InspectionResponse(BaseModel):
    """Inspection record"""
    id: int
    work_order_id: int
    stage: str
    status: str
    final_status: Optional[str] = None
    inspected_by: str
    inspection_date: datetime
    total_quantity: int
    passed_quantity: int
    repaired_quantity: int
    rejected_quantity: int
    issues: Optional[List[QualityIssue]] = None
    repair_notes: Optional[str] = None
    reinspection_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InspectionRecordResponse(BaseModel):
    """Result of recording an inspection"""
    inspection: InspectionResponse
    disposition_label: str
    stage_advanced: bool
    current_stage: str


class InspectionListItem(InspectionResponse):
    work_order_number: Optional[str] = None
    product_name: Optional[str] = None
    customer_name: Optional[str] = None


class InspectionListResponse(BaseModel):
    items: List[InspectionListItem]
    pagination: PageMeta


class QualityMetrics(BaseModel):
    """Aggregate inspection statistics"""
    total_inspections: int
    passed_inspections: int
    repaired_inspections: int
    rejected_inspections: int
    pass_rate: float
    repair_rate: float
    reject_rate: float

    total_units: int
    passed_units: int
    repaired_units: int
    rejected_units: int
    unit_pass_rate: float
    unit_repair_rate: float
    unit_reject_rate: float

    average_qc_minutes: float
    by_stage: Dict[str, int]
    by_inspector: Dict[str, int]


class QualityQueueItem(BaseModel):
    """Work order waiting at quality control"""
    work_order_id: int
    work_order_number: str
    priority: int
    product_name: Optional[str] = None
    quantity: Optional[int] = None
    customer_name: Optional[str] = None
    entered_stage_at: Optional[datetime] = None
    latest_status: Optional[str] = None
    latest_inspection_id: Optional[int] = None
