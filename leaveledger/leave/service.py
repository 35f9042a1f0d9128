"""Leave service layer — leave types, balances, requests and their transitions.

Business logic:
  - Leave type administration per organization
  - Balance lookup with synthesized defaults for employees without a row
  - Request creation, approval, rejection, edit and cancellation, each moving
    the request's days between the pending and used buckets of its balance
  - Request listing with scope and filters

Every mutating operation changes the request row and the balance row(s) in
the same session; the caller's transaction commits both or neither.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from leaveledger.auth.schemas import Actor
from leaveledger.common.audit import create_audit_entry
from leaveledger.common.constants import MAX_LEAVE_DAYS, BalancePolicy, LeaveStatus
from leaveledger.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from leaveledger.common.pagination import (
    PaginatedResponse,
    PaginationParams,
    paginate,
)
from leaveledger.config import settings
from leaveledger.core_hr.models import Employee
from leaveledger.database import utcnow
from leaveledger.leave.days import count_leave_days
from leaveledger.leave.ledger import (
    BalanceSnapshot,
    check_transition,
    ensure_sufficient,
)
from leaveledger.leave.models import LeaveRequest, LeaveType
from leaveledger.leave.repository import LeaveRepository
from leaveledger.leave.schemas import (
    EmployeeBrief,
    LeaveBalanceOut,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveRequestRecord,
    LeaveRequestUpdate,
    LeaveTypeBrief,
    LeaveTypeCreate,
    LeaveTypeOut,
    LeaveTypeUpdate,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Placement:
    """Where a request's days sit: which balance row, which bucket, how many."""

    leave_type: LeaveType
    year: int
    status: Optional[LeaveStatus]
    days: Decimal


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave operations on behalf of an explicit actor."""

    def __init__(
        self,
        repo: LeaveRepository,
        *,
        policy: Optional[BalancePolicy] = None,
    ) -> None:
        self.repo = repo
        self.policy = policy or BalancePolicy(settings.BALANCE_POLICY)

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _require(actor: Actor, permission: str, message: str) -> None:
        if not actor.can(permission):
            raise ForbiddenException(message)

    @staticmethod
    def _build_request_response(
        req: LeaveRequest,
        *,
        employee: Optional[Employee],
        leave_type: Optional[LeaveType],
    ) -> LeaveRequestOut:
        """Build LeaveRequestOut from ORM without touching lazy relationships."""
        record = LeaveRequestRecord.model_validate(req)
        return LeaveRequestOut(
            **record.model_dump(),
            employee=EmployeeBrief.model_validate(employee) if employee else None,
            leave_type=LeaveTypeBrief.model_validate(leave_type) if leave_type else None,
        )

    @staticmethod
    def _build_balance_response(
        snapshot: BalanceSnapshot,
        leave_type: Optional[LeaveType] = None,
    ) -> LeaveBalanceOut:
        out = LeaveBalanceOut.model_validate(snapshot)
        if leave_type is not None:
            out.leave_type = LeaveTypeBrief.model_validate(leave_type)
        return out

    async def _resolve_employee(
        self,
        actor: Actor,
        employee_id: Optional[uuid.UUID],
        *,
        other_permission: str,
    ) -> Employee:
        """Default to the actor's own employee; others need *other_permission*."""
        target_id = employee_id or actor.employee_id
        if target_id is None:
            raise ValidationException({"employee_id": ["Please select an employee"]})
        if target_id != actor.employee_id:
            self._require(
                actor, other_permission,
                "You can only act on your own leave records.",
            )
        employee = await self.repo.get_employee(actor.organization_id, target_id)
        if employee is None:
            raise NotFoundException("Employee", str(target_id))
        return employee

    async def _load_request(self, actor: Actor, request_id: uuid.UUID) -> LeaveRequest:
        req = await self.repo.get_request(actor.organization_id, request_id)
        if req is None:
            raise NotFoundException("LeaveRequest", str(request_id))
        return req

    async def _ensure_no_overlap(
        self,
        employee_id: uuid.UUID,
        start_date: date,
        end_date: date,
        *,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        if await self.repo.has_overlapping_request(
            employee_id, start_date, end_date, exclude_id=exclude_id,
        ):
            raise ValidationException(
                {"dates": [
                    "A pending or approved leave request already covers "
                    "some of these dates."
                ]}
            )

    @staticmethod
    def _forbid_self_review(actor: Actor, req: LeaveRequest, verb: str) -> None:
        if actor.employee_id is not None and req.employee_id == actor.employee_id:
            raise ForbiddenException(f"You cannot {verb} your own leave request.")

    @staticmethod
    def _require_reason(reason: Optional[str], field: str, message: str) -> str:
        cleaned = (reason or "").strip()
        if not cleaned:
            raise ValidationException({field: [message]})
        return cleaned

    async def _rebalance(
        self,
        employee_id: uuid.UUID,
        old: Optional[_Placement],
        new: _Placement,
    ) -> None:
        """Move a request's contribution from *old* to *new* placement.

        All snapshots are read and checked before anything is written, so a
        failed availability or policy check leaves the balances untouched.
        """
        new_snap = await self.repo.read_balance(employee_id, new.leave_type, new.year)
        same_row = old is not None and (
            old.leave_type.id == new.leave_type.id and old.year == new.year
        )

        old_snap: Optional[BalanceSnapshot] = None
        if old is not None and not same_row:
            old_snap = await self.repo.read_balance(employee_id, old.leave_type, old.year)

        if same_row:
            base = new_snap.released(old.status, old.days, self.policy)
        else:
            base = new_snap

        ensure_sufficient(
            base, new.status, new.days, unlimited=new.leave_type.is_unlimited,
        )

        writes: list[tuple[BalanceSnapshot, BalanceSnapshot]] = []
        if old_snap is not None:
            writes.append((old_snap, old_snap.released(old.status, old.days, self.policy)))
        writes.append((new_snap, base.reserved(new.status, new.days)))

        for _, after in writes:
            if max(after.used_days, after.pending_days) > MAX_LEAVE_DAYS:
                raise ValidationException(
                    {"days": [
                        f"A leave balance cannot hold more than {MAX_LEAVE_DAYS} days."
                    ]}
                )

        for before, after in writes:
            if (before.used_days, before.pending_days) == (after.used_days, after.pending_days):
                continue
            await self.repo.write_balance(before, after.used_days, after.pending_days)
            logger.info(
                "Balance %s: used %s → %s, pending %s → %s",
                before.key, before.used_days, after.used_days,
                before.pending_days, after.pending_days,
            )

    # ─────────────────────────────────────────────────────────────────
    # Leave Types
    # ─────────────────────────────────────────────────────────────────

    async def list_leave_types(
        self,
        actor: Actor,
        *,
        is_active: Optional[bool] = None,
    ) -> list[LeaveTypeOut]:
        """List the organization's leave types, optionally by active flag."""
        types = await self.repo.list_leave_types(actor.organization_id, is_active=is_active)
        return [LeaveTypeOut.model_validate(lt) for lt in types]

    async def create_leave_type(
        self,
        actor: Actor,
        data: LeaveTypeCreate,
    ) -> LeaveTypeOut:
        self._require(actor, "leave:configure", "You cannot configure leave types.")
        if await self.repo.leave_type_code_exists(actor.organization_id, data.code):
            raise ConflictError("code", data.code)

        leave_type = LeaveType(
            id=uuid.uuid4(),
            organization_id=actor.organization_id,
            **data.model_dump(),
        )
        await self.repo.add(leave_type)

        await create_audit_entry(
            self.repo.db,
            action="create",
            entity_type="leave_type",
            entity_id=leave_type.id,
            actor_id=actor.user_id,
            organization_id=actor.organization_id,
            new_values=data.model_dump(mode="json"),
        )
        logger.info("Leave type %s created in org %s", leave_type.code, actor.organization_id)
        return LeaveTypeOut.model_validate(leave_type)

    async def update_leave_type(
        self,
        actor: Actor,
        leave_type_id: uuid.UUID,
        data: LeaveTypeUpdate,
    ) -> LeaveTypeOut:
        self._require(actor, "leave:configure", "You cannot configure leave types.")
        leave_type = await self.repo.get_leave_type(actor.organization_id, leave_type_id)
        if leave_type is None:
            raise NotFoundException("LeaveType", str(leave_type_id))

        changes = data.model_dump(exclude_unset=True)
        if "code" in changes and await self.repo.leave_type_code_exists(
            actor.organization_id, changes["code"], exclude_id=leave_type.id,
        ):
            raise ConflictError("code", changes["code"])

        old_values = {
            k: str(getattr(leave_type, k)) if getattr(leave_type, k) is not None else None
            for k in changes
        }
        for field, value in changes.items():
            setattr(leave_type, field, value)
        leave_type.updated_at = utcnow()
        await self.repo.flush()

        await create_audit_entry(
            self.repo.db,
            action="update",
            entity_type="leave_type",
            entity_id=leave_type.id,
            actor_id=actor.user_id,
            organization_id=actor.organization_id,
            old_values=old_values,
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return LeaveTypeOut.model_validate(leave_type)

    async def set_leave_type_active(
        self,
        actor: Actor,
        leave_type_id: uuid.UUID,
        is_active: bool,
    ) -> LeaveTypeOut:
        """Activate or deactivate a leave type; inactive types take no new requests."""
        return await self.update_leave_type(
            actor, leave_type_id, LeaveTypeUpdate(is_active=is_active),
        )

    async def delete_leave_type(self, actor: Actor, leave_type_id: uuid.UUID) -> None:
        """Delete a leave type that no request or balance refers to."""
        self._require(actor, "leave:configure", "You cannot configure leave types.")
        leave_type = await self.repo.get_leave_type(actor.organization_id, leave_type_id)
        if leave_type is None:
            raise NotFoundException("LeaveType", str(leave_type_id))
        if await self.repo.leave_type_in_use(leave_type.id):
            raise ConflictError(
                "leave_type_id", leave_type.code,
                detail=(
                    f"Leave type '{leave_type.name}' has requests or balances; "
                    "deactivate it instead."
                ),
            )

        await create_audit_entry(
            self.repo.db,
            action="delete",
            entity_type="leave_type",
            entity_id=leave_type.id,
            actor_id=actor.user_id,
            organization_id=actor.organization_id,
            old_values={"code": leave_type.code, "name": leave_type.name},
        )
        await self.repo.delete(leave_type)

    # ─────────────────────────────────────────────────────────────────
    # Balance
    # ─────────────────────────────────────────────────────────────────

    async def get_balance(
        self,
        actor: Actor,
        employee_id: Optional[uuid.UUID],
        leave_type_id: uuid.UUID,
        year: Optional[int] = None,
    ) -> LeaveBalanceOut:
        """Balance for one leave type; year defaults to the current year."""
        employee = await self._resolve_employee(
            actor, employee_id, other_permission="leave:read_all",
        )
        leave_type = await self.repo.get_leave_type(actor.organization_id, leave_type_id)
        if leave_type is None:
            raise NotFoundException("LeaveType", str(leave_type_id))

        snapshot = await self.repo.read_balance(employee.id, leave_type, year)
        return self._build_balance_response(snapshot, leave_type)

    async def get_balances(
        self,
        actor: Actor,
        employee_id: Optional[uuid.UUID] = None,
        year: Optional[int] = None,
    ) -> list[LeaveBalanceOut]:
        """One balance per active leave type, stored or synthesized."""
        employee = await self._resolve_employee(
            actor, employee_id, other_permission="leave:read_all",
        )
        types = await self.repo.list_leave_types(actor.organization_id, is_active=True)

        output: list[LeaveBalanceOut] = []
        for leave_type in types:
            snapshot = await self.repo.read_balance(employee.id, leave_type, year)
            output.append(self._build_balance_response(snapshot, leave_type))
        return output

    # ─────────────────────────────────────────────────────────────────
    # Create
    # ─────────────────────────────────────────────────────────────────

    async def create_request(
        self,
        actor: Actor,
        data: LeaveRequestCreate,
    ) -> LeaveRequestOut:
        """Submit a leave request in ``pending`` and reserve its days.

        Validation (no writes on failure):
        - employee and leave type selected, active, in the actor's organization
        - dates present and end on or after start
        - non-empty reason
        - no pending or approved request of the employee on the same days
        - days fit in the available balance (limited leave types only)
        """
        errors: dict[str, list[str]] = {}
        if data.leave_type_id is None:
            errors["leave_type_id"] = ["Please select a leave type"]
        if data.start_date is None:
            errors["start_date"] = ["Please select a start date"]
        if data.end_date is None:
            errors["end_date"] = ["Please select an end date"]
        if not data.reason.strip():
            errors["reason"] = ["Please provide a reason for the leave request"]
        if errors:
            raise ValidationException(errors)

        employee = await self._resolve_employee(
            actor, data.employee_id, other_permission="leave:request_any",
        )
        leave_type = await self.repo.get_leave_type(
            actor.organization_id, data.leave_type_id, active_only=True,
        )
        if leave_type is None:
            raise NotFoundException("LeaveType", str(data.leave_type_id))

        days = Decimal(count_leave_days(data.start_date, data.end_date))
        await self._ensure_no_overlap(employee.id, data.start_date, data.end_date)
        placement = _Placement(
            leave_type=leave_type,
            year=data.start_date.year,
            status=LeaveStatus.pending,
            days=days,
        )

        leave_request = LeaveRequest(
            id=uuid.uuid4(),
            employee_id=employee.id,
            leave_type_id=leave_type.id,
            start_date=data.start_date,
            end_date=data.end_date,
            days_requested=days,
            reason=data.reason.strip(),
            status=LeaveStatus.pending,
            created_by=actor.user_id,
        )

        await self._rebalance(employee.id, None, placement)
        await self.repo.add(leave_request)

        await create_audit_entry(
            self.repo.db,
            action="create",
            entity_type="leave_request",
            entity_id=leave_request.id,
            actor_id=actor.user_id,
            organization_id=actor.organization_id,
            new_values={
                "employee_id": str(employee.id),
                "leave_type": leave_type.code,
                "start_date": data.start_date.isoformat(),
                "end_date": data.end_date.isoformat(),
                "days_requested": str(days),
                "status": LeaveStatus.pending.value,
            },
        )
        logger.info(
            "Leave request %s created: employee=%s type=%s days=%s",
            leave_request.id, employee.id, leave_type.code, days,
        )
        return self._build_request_response(
            leave_request, employee=employee, leave_type=leave_type,
        )

    # ─────────────────────────────────────────────────────────────────
    # Approve / Reject
    # ─────────────────────────────────────────────────────────────────

    async def approve_request(
        self,
        actor: Actor,
        request_id: uuid.UUID,
    ) -> LeaveRequestOut:
        """Approve a pending request: its days move from pending to used."""
        self._require(actor, "leave:approve", "You are not authorized to approve leave requests.")
        req = await self._load_request(actor, request_id)
        self._forbid_self_review(actor, req, "approve")
        if req.status != LeaveStatus.pending:
            raise ValidationException(
                {"status": [f"Leave request is already {req.status.value}."]}
            )

        await self._rebalance(
            req.employee_id,
            _Placement(req.leave_type, req.balance_year, req.status, req.days_requested),
            _Placement(req.leave_type, req.balance_year, LeaveStatus.approved, req.days_requested),
        )

        now = utcnow()
        req.status = LeaveStatus.approved
        req.approved_by = actor.user_id
        req.approved_at = now
        req.updated_at = now
        await self.repo.flush()

        await create_audit_entry(
            self.repo.db,
            action="approve",
            entity_type="leave_request",
            entity_id=req.id,
            actor_id=actor.user_id,
            organization_id=actor.organization_id,
            old_values={"status": LeaveStatus.pending.value},
            new_values={"status": LeaveStatus.approved.value},
        )
        logger.info("Leave request %s approved by %s", req.id, actor.user_id)
        return self._build_request_response(
            req, employee=req.employee, leave_type=req.leave_type,
        )

    async def reject_request(
        self,
        actor: Actor,
        request_id: uuid.UUID,
        reason: Optional[str],
    ) -> LeaveRequestOut:
        """Reject a pending request: its days leave the pending bucket."""
        self._require(actor, "leave:reject", "You are not authorized to reject leave requests.")
        reason = self._require_reason(
            reason, "reason", "Please provide a reason for rejection",
        )
        req = await self._load_request(actor, request_id)
        self._forbid_self_review(actor, req, "reject")
        if req.status != LeaveStatus.pending:
            raise ValidationException(
                {"status": [f"Leave request is already {req.status.value}."]}
            )

        await self._rebalance(
            req.employee_id,
            _Placement(req.leave_type, req.balance_year, req.status, req.days_requested),
            _Placement(req.leave_type, req.balance_year, LeaveStatus.rejected, req.days_requested),
        )

        now = utcnow()
        req.status = LeaveStatus.rejected
        req.approved_by = actor.user_id
        req.approved_at = now
        req.rejection_reason = reason
        req.updated_at = now
        await self.repo.flush()

        await create_audit_entry(
            self.repo.db,
            action="reject",
            entity_type="leave_request",
            entity_id=req.id,
            actor_id=actor.user_id,
            organization_id=actor.organization_id,
            old_values={"status": LeaveStatus.pending.value},
            new_values={"status": LeaveStatus.rejected.value, "reason": reason},
        )
        logger.info("Leave request %s rejected by %s", req.id, actor.user_id)
        return self._build_request_response(
            req, employee=req.employee, leave_type=req.leave_type,
        )

    # ─────────────────────────────────────────────────────────────────
    # Edit
    # ─────────────────────────────────────────────────────────────────

    async def edit_request(
        self,
        actor: Actor,
        request_id: uuid.UUID,
        data: LeaveRequestUpdate,
    ) -> LeaveRequestOut:
        """Edit leave type, dates, reason and/or status of a request.

        The old contribution is released from the bucket (and balance row)
        of the old status, and the new contribution reserved in the bucket
        (and row) of the new status. Moving into pending or approved must
        fit in the balance that remains once the old contribution is gone.
        """
        self._require(actor, "leave:edit", "You are not authorized to edit leave requests.")
        req = await self._load_request(actor, request_id)

        old_status = req.status
        new_status = data.status or old_status
        check_transition(old_status, new_status)
        if new_status != old_status and new_status in (LeaveStatus.approved, LeaveStatus.rejected):
            self._forbid_self_review(actor, req, "review")

        start_date = data.start_date or req.start_date
        end_date = data.end_date or req.end_date
        new_days = Decimal(count_leave_days(start_date, end_date))
        reason = req.reason
        if data.reason is not None:
            reason = self._require_reason(
                data.reason, "reason", "Please provide a reason for the leave request",
            )

        leave_type = req.leave_type
        if data.leave_type_id is not None and data.leave_type_id != req.leave_type_id:
            leave_type = await self.repo.get_leave_type(
                actor.organization_id, data.leave_type_id, active_only=True,
            )
            if leave_type is None:
                raise NotFoundException("LeaveType", str(data.leave_type_id))

        if new_status in (LeaveStatus.pending, LeaveStatus.approved):
            await self._ensure_no_overlap(
                req.employee_id, start_date, end_date, exclude_id=req.id,
            )

        rejection_reason = req.rejection_reason
        if new_status == LeaveStatus.rejected and new_status != old_status:
            rejection_reason = self._require_reason(
                data.rejection_reason, "rejection_reason",
                "Please provide a reason for rejection",
            )

        old_values = {
            "leave_type_id": str(req.leave_type_id),
            "start_date": req.start_date.isoformat(),
            "end_date": req.end_date.isoformat(),
            "days_requested": str(req.days_requested),
            "status": old_status.value,
        }

        await self._rebalance(
            req.employee_id,
            _Placement(req.leave_type, req.balance_year, old_status, req.days_requested),
            _Placement(leave_type, start_date.year, new_status, new_days),
        )

        now = utcnow()
        req.leave_type_id = leave_type.id
        req.start_date = start_date
        req.end_date = end_date
        req.days_requested = new_days
        req.reason = reason
        req.status = new_status
        req.updated_at = now

        if new_status != old_status:
            if new_status in (LeaveStatus.approved, LeaveStatus.rejected):
                req.approved_by = actor.user_id
                req.approved_at = now
                req.rejection_reason = (
                    rejection_reason if new_status == LeaveStatus.rejected else None
                )
            elif new_status == LeaveStatus.pending:
                req.approved_by = None
                req.approved_at = None
                req.rejection_reason = None
            elif new_status == LeaveStatus.cancelled:
                req.cancelled_at = now
        await self.repo.flush()

        await create_audit_entry(
            self.repo.db,
            action="update",
            entity_type="leave_request",
            entity_id=req.id,
            actor_id=actor.user_id,
            organization_id=actor.organization_id,
            old_values=old_values,
            new_values={
                "leave_type_id": str(leave_type.id),
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "days_requested": str(new_days),
                "status": new_status.value,
            },
        )
        logger.info(
            "Leave request %s edited by %s: %s/%s → %s/%s",
            req.id, actor.user_id, old_status.value, old_values["days_requested"],
            new_status.value, new_days,
        )
        return self._build_request_response(
            req, employee=req.employee, leave_type=leave_type,
        )

    # ─────────────────────────────────────────────────────────────────
    # Cancel
    # ─────────────────────────────────────────────────────────────────

    async def cancel_request(
        self,
        actor: Actor,
        request_id: uuid.UUID,
        reason: Optional[str] = None,
    ) -> LeaveRequestOut:
        """Cancel a pending or approved request and free its days.

        Employees may cancel their own requests; HR may cancel any.
        """
        req = await self._load_request(actor, request_id)
        if req.employee_id != actor.employee_id:
            self._require(
                actor, "leave:cancel_any",
                "You can only cancel your own leave requests.",
            )
        if req.status not in (LeaveStatus.pending, LeaveStatus.approved):
            raise ValidationException(
                {"status": [
                    f"Cannot cancel a leave request with status '{req.status.value}'."
                ]}
            )

        old_status = req.status
        await self._rebalance(
            req.employee_id,
            _Placement(req.leave_type, req.balance_year, old_status, req.days_requested),
            _Placement(req.leave_type, req.balance_year, LeaveStatus.cancelled, req.days_requested),
        )

        now = utcnow()
        req.status = LeaveStatus.cancelled
        req.cancelled_at = now
        req.updated_at = now
        await self.repo.flush()

        await create_audit_entry(
            self.repo.db,
            action="cancel",
            entity_type="leave_request",
            entity_id=req.id,
            actor_id=actor.user_id,
            organization_id=actor.organization_id,
            old_values={"status": old_status.value},
            new_values={"status": LeaveStatus.cancelled.value, "reason": reason},
        )
        logger.info("Leave request %s cancelled by %s", req.id, actor.user_id)
        return self._build_request_response(
            req, employee=req.employee, leave_type=req.leave_type,
        )

    # ─────────────────────────────────────────────────────────────────
    # Read
    # ─────────────────────────────────────────────────────────────────

    async def get_request(self, actor: Actor, request_id: uuid.UUID) -> LeaveRequestOut:
        req = await self._load_request(actor, request_id)
        if req.employee_id != actor.employee_id:
            self._require(actor, "leave:read_all", "You can only view your own leave requests.")
        return self._build_request_response(
            req, employee=req.employee, leave_type=req.leave_type,
        )

    async def list_requests(
        self,
        actor: Actor,
        params: PaginationParams,
        *,
        scope: str = "my",
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[LeaveStatus] = None,
        leave_type_id: Optional[uuid.UUID] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> PaginatedResponse[LeaveRequestOut]:
        """List leave requests, newest first.

        Scopes:
          - my: the actor's own requests
          - all: every request in the organization (managers and HR)
        """
        if scope == "all":
            self._require(actor, "leave:read_all", "You cannot view all leave requests.")
        elif scope == "my":
            if actor.employee_id is None:
                raise NotFoundException("Employee", f"user:{actor.user_id}")
            employee_id = actor.employee_id
        else:
            raise ValidationException({"scope": ["Scope must be 'my' or 'all'."]})

        query = self.repo.requests_query(
            actor.organization_id,
            employee_id=employee_id,
            status=status,
            leave_type_id=leave_type_id,
            from_date=from_date,
            to_date=to_date,
        )
        page = await paginate(self.repo.db, query, params, model=LeaveRequest)
        return PaginatedResponse[LeaveRequestOut](
            data=[
                self._build_request_response(
                    r, employee=r.employee, leave_type=r.leave_type,
                )
                for r in page.data
            ],
            meta=page.meta,
        )
