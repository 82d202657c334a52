"""
API v1 Router - StitchOps
"""
from fastapi import APIRouter
from stitchops.api.v1.endpoints import (
    work_orders,
    quality_inspections,
    sample_requests,
)
from stitchops.schemas.common import ErrorResponse

# Failure results documented on every route
ERROR_RESPONSES = {
    code: {"model": ErrorResponse}
    for code in (400, 401, 404, 409, 422, 500)
}

router = APIRouter(responses=ERROR_RESPONSES)

# Production workflow
router.include_router(
    work_orders.router,
    prefix="/work-orders",
    tags=["work-orders"]
)

# Quality control
router.include_router(
    quality_inspections.router,
    prefix="/quality",
    tags=["quality"]
)

# R&D samples
router.include_router(
    sample_requests.router,
    prefix="/sample-requests",
    tags=["samples"]
)
