"""
Common API Response Schemas

Standardized error responses and pagination models shared by every router.
"""
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


# ============================================================================
# Error Response Models
# ============================================================================

class ErrorResponse(BaseModel):
    """
    Structured failure result returned for every business-rule violation.

    Error Codes:
        - VALIDATION_ERROR: Request validation failed (400)
        - INVALID_STAGE: Unknown production stage (400)
        - INVALID_STATE: Operation not allowed in the current state (400)
        - INVALID_STATUS_TRANSITION: Status change not allowed (400)
        - QUANTITY_MISMATCH: Inspection counts do not add up (422)
        - MISSING_ISSUES: Repaired/rejected units without issues (422)
        - MISSING_REINSPECTION_DATE: Reinspection required without a date (422)
        - MISSING_ACTOR: X-User-Id header missing (401)
        - NOT_FOUND: Resource not found (404)
        - STAGE_NOT_FOUND: No open history entry for the stage (404)
        - ALREADY_EXISTS: Work order already exists for the item (409)
        - STAGE_ALREADY_STARTED: Stage already has an open entry (409)
        - NOT_APPROVED: Sales order is not approved (422)
        - DATABASE_ERROR: Database operation failed (500)
        - INTERNAL_ERROR: Unexpected internal error (500)
    """
    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional error context"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the error occurred (UTC)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error": "STAGE_ALREADY_STARTED",
                "message": "Stage cutting has already been started for work order 12",
                "details": {"work_order_id": 12, "stage": "cutting"},
                "timestamp": "2025-06-02T10:30:00Z"
            }
        }


# ============================================================================
# Pagination Models
# ============================================================================

class PageMeta(BaseModel):
    """Page-number pagination metadata"""
    page: int = Field(..., description="Current page (1-based)")
    limit: int = Field(..., description="Maximum records per page")
    total: int = Field(..., description="Total number of records matching the query")
    total_pages: int = Field(..., description="Number of pages at this limit")


def build_page_meta(page: int, limit: int, total: int) -> PageMeta:
    """Build PageMeta, rounding total_pages up."""
    total_pages = (total + limit - 1) // limit if limit else 0
    return PageMeta(page=page, limit=limit, total=total, total_pages=total_pages)


class MessageResponse(BaseModel):
    """Simple acknowledgement"""
    success: bool = True
    message: str
    data: Optional[Dict[str, Any]] = None
