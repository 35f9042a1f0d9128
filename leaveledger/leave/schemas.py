"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update / *Request  → request bodies (write)
  - *Out                          → response bodies (read)
  - *Brief                        → compact embedded representations
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leaveledger.common.constants import MAX_LEAVE_DAYS, LeaveStatus


# ═════════════════════════════════════════════════════════════════════
# Embedded / shared
# ═════════════════════════════════════════════════════════════════════


class EmployeeBrief(BaseModel):
    """Minimal employee info embedded in leave responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_code: str
    full_name: str
    email: Optional[str] = None


class LeaveTypeBrief(BaseModel):
    """Minimal leave type info embedded in leave responses."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    code: str
    name: str
    is_paid: bool = True


# ═════════════════════════════════════════════════════════════════════
# Leave Type
# ═════════════════════════════════════════════════════════════════════


class LeaveTypeCreate(BaseModel):
    """Payload for creating a leave type."""

    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=10)
    description: Optional[str] = None
    max_days_per_year: Optional[Decimal] = Field(
        None, ge=0, le=MAX_LEAVE_DAYS,
        description="Annual allotment; null means unlimited",
    )
    is_paid: bool = True
    requires_approval: bool = True
    carry_forward: bool = False
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class LeaveTypeUpdate(BaseModel):
    """Partial update of a leave type; omitted fields are left unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    code: Optional[str] = Field(None, min_length=1, max_length=10)
    description: Optional[str] = None
    max_days_per_year: Optional[Decimal] = Field(None, ge=0, le=MAX_LEAVE_DAYS)
    is_paid: Optional[bool] = None
    requires_approval: Optional[bool] = None
    carry_forward: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v is not None else v


class LeaveTypeOut(BaseModel):
    """Full leave type representation."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    organization_id: uuid.UUID
    code: str
    name: str
    description: Optional[str] = None
    max_days_per_year: Optional[Decimal] = None
    is_paid: bool = True
    requires_approval: bool = True
    carry_forward: bool = False
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


# ═════════════════════════════════════════════════════════════════════
# Leave Balance
# ═════════════════════════════════════════════════════════════════════


class LeaveBalanceOut(BaseModel):
    """Balance for one (employee, leave type, year) with derived availability.

    ``persisted`` is False when no row exists yet and the figures come from
    the leave type's annual allotment.
    """

    model_config = ConfigDict(from_attributes=True)

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    year: int
    allocated_days: Decimal
    carried_forward_days: Decimal
    used_days: Decimal
    pending_days: Decimal
    available: Decimal
    persisted: bool

    leave_type: Optional[LeaveTypeBrief] = None


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Create / Update
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for submitting a leave request.

    ``employee_id`` defaults to the caller's own employee record; HR and
    managers may submit on behalf of another employee.
    """

    employee_id: Optional[uuid.UUID] = None
    leave_type_id: Optional[uuid.UUID] = None
    start_date: Optional[date] = Field(None, description="Leave start date (inclusive)")
    end_date: Optional[date] = Field(None, description="Leave end date (inclusive)")
    reason: str = Field("", max_length=1000)


class LeaveRequestUpdate(BaseModel):
    """Edit of an existing request; omitted fields keep their current value."""

    leave_type_id: Optional[uuid.UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    reason: Optional[str] = Field(None, max_length=1000)
    status: Optional[LeaveStatus] = None
    rejection_reason: Optional[str] = Field(None, max_length=500)


class LeaveRejectRequest(BaseModel):
    """Payload for rejecting a leave request."""

    reason: str = Field("", max_length=500)


class LeaveCancelRequest(BaseModel):
    """Payload for cancelling a leave request."""

    reason: Optional[str] = Field(None, max_length=500)


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Response
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestRecord(BaseModel):
    """Column values of a leave request."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    days_requested: Decimal
    reason: str
    status: LeaveStatus
    approved_by: Optional[uuid.UUID] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


class LeaveRequestOut(LeaveRequestRecord):
    """Full leave request response, enriched by the service."""

    employee: Optional[EmployeeBrief] = None
    leave_type: Optional[LeaveTypeBrief] = None
