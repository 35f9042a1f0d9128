"""Common module — shared utilities for leaveledger."""

from leaveledger.common.audit import AuditTrail, create_audit_entry
from leaveledger.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_LEAVE_DAYS,
    MAX_PAGE_SIZE,
    PERMISSIONS,
    BalancePolicy,
    LeaveStatus,
    UserRole,
)
from leaveledger.common.exceptions import (
    AppException,
    BalanceInconsistencyError,
    ConcurrentUpdateError,
    ConflictError,
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from leaveledger.common.pagination import (
    PaginatedResponse,
    PaginationMeta,
    PaginationParams,
    paginate,
)
from leaveledger.common.schemas import ActionResult

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "BalancePolicy",
    "LeaveStatus",
    "UserRole",
    "PERMISSIONS",
    "DEFAULT_PAGE_SIZE",
    "MAX_LEAVE_DAYS",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AppException",
    "BalanceInconsistencyError",
    "ConcurrentUpdateError",
    "ConflictError",
    "ForbiddenException",
    "NotFoundException",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
    # Pagination
    "PaginatedResponse",
    "PaginationMeta",
    "PaginationParams",
    "paginate",
    # Envelopes
    "ActionResult",
]
