"""Status Configuration and Transition Rules

This module defines the production stage sequence and the valid status
values for Sales Orders, Quality Inspections and Sample Requests.

STAGE_SEQUENCE is the single ordered list both the stage engine and the
quality gate consume; "next stage" is always an index lookup into it.
"""
from enum import Enum
from typing import Dict, List, Optional, Set

from stitchops.exceptions import InvalidStageError


# =============================================================================
# Production Stages (Work Order)
# =============================================================================

class ProductionStage(str, Enum):
    """The eight production stages, in sequence order"""
    ORDER_PROCESSING = "order_processing"
    MATERIAL_PROCUREMENT = "material_procurement"
    CUTTING = "cutting"
    SEWING_ASSEMBLY = "sewing_assembly"
    QUALITY_CONTROL = "quality_control"
    FINISHING = "finishing"
    DISPATCH = "dispatch"
    DELIVERED = "delivered"  # Terminal


STAGE_SEQUENCE: List[ProductionStage] = [
    ProductionStage.ORDER_PROCESSING,
    ProductionStage.MATERIAL_PROCUREMENT,
    ProductionStage.CUTTING,
    ProductionStage.SEWING_ASSEMBLY,
    ProductionStage.QUALITY_CONTROL,
    ProductionStage.FINISHING,
    ProductionStage.DISPATCH,
    ProductionStage.DELIVERED,
]

INITIAL_STAGE = STAGE_SEQUENCE[0]
TERMINAL_STAGE = STAGE_SEQUENCE[-1]


def parse_stage(stage) -> ProductionStage:
    """Coerce a stage name to ProductionStage, raising InvalidStageError."""
    if isinstance(stage, ProductionStage):
        return stage
    try:
        return ProductionStage(stage)
    except ValueError:
        raise InvalidStageError(stage)


def stage_index(stage) -> int:
    """Position of a stage in the sequence (0-based)."""
    return STAGE_SEQUENCE.index(parse_stage(stage))


def get_next_stage(stage) -> ProductionStage:
    """
    Stage that follows `stage` in the sequence.

    The terminal stage maps to itself.
    """
    index = stage_index(stage)
    if index >= len(STAGE_SEQUENCE) - 1:
        return TERMINAL_STAGE
    return STAGE_SEQUENCE[index + 1]


def get_previous_stage(stage) -> Optional[ProductionStage]:
    """Stage before `stage`, or None for the first stage."""
    index = stage_index(stage)
    if index == 0:
        return None
    return STAGE_SEQUENCE[index - 1]


def is_terminal_stage(stage) -> bool:
    return parse_stage(stage) == TERMINAL_STAGE


def stage_label(stage) -> str:
    """Human-readable stage name, e.g. 'sewing assembly'."""
    return parse_stage(stage).value.replace("_", " ")


# =============================================================================
# Sales Order Status
# =============================================================================

class SalesOrderStatus(str, Enum):
    """Valid status values for Sales Orders"""
    DRAFT = "draft"
    ON_REVIEW = "on_review"
    APPROVE = "approve"
    CANCELLED = "cancelled"


class CustomerStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PROSPECT = "prospect"


# =============================================================================
# Quality Inspection
# =============================================================================

class QualityStatus(str, Enum):
    """Disposition of a quality inspection"""
    PENDING = "pending"
    PASS = "pass"
    REPAIR = "repair"
    REJECT = "reject"


class IssueSeverity(str, Enum):
    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"


class IssueCategory(str, Enum):
    REPAIR = "repair"
    REJECT = "reject"


# =============================================================================
# Sample Request Status (R&D)
# =============================================================================

class SampleRequestStatus(str, Enum):
    """Valid status values for Sample Requests"""
    DRAFT = "draft"
    ON_REVIEW = "on_review"
    APPROVED = "approved"
    REVISION = "revision"
    CANCELED = "canceled"


SAMPLE_REQUEST_TRANSITIONS: Dict[str, Set[str]] = {
    SampleRequestStatus.DRAFT.value: {
        SampleRequestStatus.ON_REVIEW.value,
        SampleRequestStatus.APPROVED.value,
        SampleRequestStatus.CANCELED.value,
    },
    SampleRequestStatus.ON_REVIEW.value: {
        SampleRequestStatus.APPROVED.value,
        SampleRequestStatus.REVISION.value,
        SampleRequestStatus.CANCELED.value,
    },
    SampleRequestStatus.REVISION.value: {
        SampleRequestStatus.ON_REVIEW.value,
        SampleRequestStatus.APPROVED.value,
        SampleRequestStatus.CANCELED.value,
    },
    SampleRequestStatus.APPROVED.value: set(),  # Terminal state
    SampleRequestStatus.CANCELED.value: set(),  # Terminal state
}


def get_allowed_sample_transitions(current_status: str) -> List[str]:
    """Get sorted list of allowed next statuses for a sample request"""
    return sorted(SAMPLE_REQUEST_TRANSITIONS.get(current_status, set()))


def is_valid_sample_transition(current_status: str, new_status: str) -> bool:
    """Check if a sample request status transition is valid"""
    allowed = SAMPLE_REQUEST_TRANSITIONS.get(current_status, set())
    return new_status in allowed


class ProcessStage(str, Enum):
    """Decoration processes a sample may go through"""
    EMBROIDERY = "embroidery"
    DTF_PRINTING = "dtf_printing"
    JERSEY_PRINTING = "jersey_printing"
    SUBLIMATION = "sublimation"
    DTF_SUBLIMATION = "dtf_sublimation"
