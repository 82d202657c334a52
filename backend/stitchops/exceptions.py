"""
StitchOps - Custom Exception Hierarchy

Provides structured, typed exceptions with error codes for consistent
error handling across the application.

Business-rule violations raised by the services are converted into the
structured ``{"success": false, "error": ..., "details": ...}`` result at
the operation boundary (see ``stitchops.main``).

Usage:
    from stitchops.exceptions import NotFoundError, StageNotFoundError

    raise NotFoundError("Work order", work_order_id)
    raise StageNotFoundError(work_order_id, "cutting")
"""
from typing import Any, Dict, Optional


class StitchOpsException(Exception):
    """
    Base exception for all StitchOps errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code (e.g., "NOT_FOUND", "VALIDATION_ERROR")
        status_code: HTTP status code to return
        details: Additional context for debugging
    """

    error_code: str = "STITCHOPS_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the structured failure result."""
        result = {
            "success": False,
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# ===================
# 400 Bad Request Errors
# ===================


class ValidationError(StitchOpsException):
    """Raised when input validation fails."""

    error_code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        *,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, details=details)


class InvalidStageError(ValidationError):
    """Raised when a stage name is not part of the production sequence."""

    error_code = "INVALID_STAGE"

    def __init__(self, stage: Any):
        super().__init__(f"Unknown production stage '{stage}'", field="stage", value=stage)


class InvalidStateError(StitchOpsException):
    """Raised when an operation is invalid for the current state."""

    error_code = "INVALID_STATE"
    status_code = 400

    def __init__(
        self,
        message: str = "Operation not allowed in current state",
        *,
        current_state: Optional[str] = None,
        allowed_states: Optional[list] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if current_state:
            details["current_state"] = current_state
        if allowed_states is not None:
            details["allowed_states"] = allowed_states
        super().__init__(message, details=details)


class InvalidStatusTransitionError(InvalidStateError):
    """Raised when a status change is not an allowed transition."""

    error_code = "INVALID_STATUS_TRANSITION"

    def __init__(self, from_status: str, to_status: str, allowed: list):
        super().__init__(
            f"Invalid status transition from {from_status} to {to_status}",
            current_state=from_status,
            allowed_states=allowed,
            details={"requested_state": to_status},
        )


# ===================
# 401 Unauthorized Errors
# ===================


class MissingActorError(StitchOpsException):
    """Raised when a mutating request does not identify its actor."""

    error_code = "MISSING_ACTOR"
    status_code = 401

    def __init__(self, message: str = "An acting user id is required"):
        super().__init__(message)


# ===================
# 404 Not Found Errors
# ===================


class NotFoundError(StitchOpsException):
    """Raised when a resource is not found."""

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Any = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["resource"] = resource
        if resource_id is not None:
            details["resource_id"] = str(resource_id)
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, details=details)


class StageNotFoundError(StitchOpsException):
    """Raised when finishing a stage that has no open history entry."""

    error_code = "STAGE_NOT_FOUND"
    status_code = 404

    def __init__(self, work_order_id: Any, stage: str):
        super().__init__(
            f"Stage '{stage}' is not running on work order {work_order_id} or is already completed",
            details={"work_order_id": str(work_order_id), "stage": stage},
        )


# ===================
# 409 Conflict Errors
# ===================


class DuplicateError(StitchOpsException):
    """Raised when attempting to create a duplicate resource."""

    error_code = "DUPLICATE_ERROR"
    status_code = 409

    def __init__(
        self,
        resource: str = "Resource",
        *,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        details["resource"] = resource
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        message = f"{resource} already exists"
        if field and value:
            message = f"{resource} with {field}='{value}' already exists"
        super().__init__(message, details=details)


class WorkOrderExistsError(DuplicateError):
    """Raised when a sales order item has already been converted."""

    error_code = "ALREADY_EXISTS"

    def __init__(self, sales_order_item_id: Any, work_order_number: Optional[str] = None):
        details = {"resource": "Work order", "sales_order_item_id": str(sales_order_item_id)}
        if work_order_number:
            details["work_order_number"] = work_order_number
        StitchOpsException.__init__(
            self,
            "Work order already exists for this sales order item",
            details=details,
        )


class StageAlreadyStartedError(StitchOpsException):
    """Raised when starting a stage that already has an open history entry."""

    error_code = "STAGE_ALREADY_STARTED"
    status_code = 409

    def __init__(self, work_order_id: Any, stage: str):
        super().__init__(
            f"Stage '{stage}' is already started on work order {work_order_id}",
            details={"work_order_id": str(work_order_id), "stage": stage},
        )


# ===================
# 422 Unprocessable Entity Errors
# ===================


class BusinessRuleError(StitchOpsException):
    """Raised when a business rule is violated."""

    error_code = "BUSINESS_RULE_ERROR"
    status_code = 422

    def __init__(
        self,
        message: str = "Business rule violation",
        *,
        rule: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if rule:
            details["rule"] = rule
        super().__init__(message, details=details)


class SalesOrderNotApprovedError(BusinessRuleError):
    """Raised when converting an item whose sales order is not approved."""

    error_code = "NOT_APPROVED"

    def __init__(self, order_number: str, status: str):
        super().__init__(
            "Can only create work orders from approved sales orders",
            details={"order_number": order_number, "status": status},
        )


class QuantityMismatchError(BusinessRuleError):
    """Raised when inspected unit counts do not add up to the total."""

    error_code = "QUANTITY_MISMATCH"

    def __init__(self, *, total: int, passed: int, repaired: int, rejected: int):
        counted = passed + repaired + rejected
        super().__init__(
            f"Passed, repaired and rejected quantities sum to {counted}, expected {total}",
            details={
                "total": total,
                "passed": passed,
                "repaired": repaired,
                "rejected": rejected,
            },
        )


class MissingIssuesError(BusinessRuleError):
    """Raised when repaired or rejected units are reported without issues."""

    error_code = "MISSING_ISSUES"

    def __init__(self, *, repaired: int, rejected: int):
        super().__init__(
            "At least one issue must be recorded when units are repaired or rejected",
            details={"repaired": repaired, "rejected": rejected},
        )


class MissingReinspectionDateError(BusinessRuleError):
    """Raised when a reinspection is requested without a date."""

    error_code = "MISSING_REINSPECTION_DATE"

    def __init__(self):
        super().__init__("A reinspection date is required when reinspection is requested")


# ===================
# 500 Internal Server Errors
# ===================


class DatabaseError(StitchOpsException):
    """Raised when a database operation fails."""

    error_code = "DATABASE_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str = "Database operation failed",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
