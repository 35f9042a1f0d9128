"""Leave router — leave types, balances, requests and their transitions.

All endpoints require authentication. Approval and configuration endpoints
enforce role checks here; ownership rules live in LeaveService.
"""


import uuid
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leaveledger.auth.dependencies import get_current_actor, require_role
from leaveledger.auth.schemas import Actor
from leaveledger.common.constants import LeaveStatus, UserRole
from leaveledger.common.pagination import PaginatedResponse, PaginationParams
from leaveledger.common.schemas import ActionResult
from leaveledger.database import get_db
from leaveledger.leave.repository import LeaveRepository
from leaveledger.leave.schemas import (
    LeaveBalanceOut,
    LeaveCancelRequest,
    LeaveRejectRequest,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveRequestUpdate,
    LeaveTypeCreate,
    LeaveTypeOut,
    LeaveTypeUpdate,
)
from leaveledger.leave.service import LeaveService

router = APIRouter(prefix="", tags=["leave"])

_APPROVERS = (UserRole.manager, UserRole.hr_admin, UserRole.system_admin)
_CONFIGURERS = (UserRole.hr_admin, UserRole.system_admin)


def get_leave_service(db: AsyncSession = Depends(get_db)) -> LeaveService:
    """Request-scoped service bound to the request's session."""
    return LeaveService(LeaveRepository(db))


# ── GET /types ──────────────────────────────────────────────────────

@router.get("/types", response_model=ActionResult[list[LeaveTypeOut]])
async def list_leave_types(
    is_active: Optional[bool] = Query(None),
    actor: Actor = Depends(get_current_actor),
    service: LeaveService = Depends(get_leave_service),
):
    """List the organization's leave types."""
    types = await service.list_leave_types(actor, is_active=is_active)
    return ActionResult[list[LeaveTypeOut]].ok(types)


# ── POST /types ─────────────────────────────────────────────────────

@router.post("/types", response_model=ActionResult[LeaveTypeOut], status_code=201)
async def create_leave_type(
    body: LeaveTypeCreate,
    actor: Actor = Depends(require_role(*_CONFIGURERS)),
    service: LeaveService = Depends(get_leave_service),
):
    """Create a leave type. Code must be unique within the organization."""
    return ActionResult[LeaveTypeOut].ok(await service.create_leave_type(actor, body))


# ── PATCH /types/{id} ───────────────────────────────────────────────

@router.patch("/types/{leave_type_id}", response_model=ActionResult[LeaveTypeOut])
async def update_leave_type(
    leave_type_id: uuid.UUID,
    body: LeaveTypeUpdate,
    actor: Actor = Depends(require_role(*_CONFIGURERS)),
    service: LeaveService = Depends(get_leave_service),
):
    return ActionResult[LeaveTypeOut].ok(
        await service.update_leave_type(actor, leave_type_id, body)
    )


# ── PUT /types/{id}/activate | /deactivate ──────────────────────────

@router.put("/types/{leave_type_id}/activate", response_model=ActionResult[LeaveTypeOut])
async def activate_leave_type(
    leave_type_id: uuid.UUID,
    actor: Actor = Depends(require_role(*_CONFIGURERS)),
    service: LeaveService = Depends(get_leave_service),
):
    return ActionResult[LeaveTypeOut].ok(
        await service.set_leave_type_active(actor, leave_type_id, True)
    )


@router.put("/types/{leave_type_id}/deactivate", response_model=ActionResult[LeaveTypeOut])
async def deactivate_leave_type(
    leave_type_id: uuid.UUID,
    actor: Actor = Depends(require_role(*_CONFIGURERS)),
    service: LeaveService = Depends(get_leave_service),
):
    return ActionResult[LeaveTypeOut].ok(
        await service.set_leave_type_active(actor, leave_type_id, False)
    )


# ── DELETE /types/{id} ──────────────────────────────────────────────

@router.delete("/types/{leave_type_id}", response_model=ActionResult[None])
async def delete_leave_type(
    leave_type_id: uuid.UUID,
    actor: Actor = Depends(require_role(*_CONFIGURERS)),
    service: LeaveService = Depends(get_leave_service),
):
    """Delete an unused leave type; types with history must be deactivated."""
    await service.delete_leave_type(actor, leave_type_id)
    return ActionResult[None].ok()


# ── GET /balances ───────────────────────────────────────────────────

@router.get("/balances", response_model=ActionResult[list[LeaveBalanceOut]])
async def get_balances(
    employee_id: Optional[uuid.UUID] = Query(None, description="Defaults to the caller"),
    year: Optional[int] = Query(None, description="Leave year; defaults to current year"),
    actor: Actor = Depends(get_current_actor),
    service: LeaveService = Depends(get_leave_service),
):
    """Balances for every active leave type, stored or synthesized."""
    balances = await service.get_balances(actor, employee_id, year)
    return ActionResult[list[LeaveBalanceOut]].ok(balances)


# ── GET /balances/{leave_type_id} ───────────────────────────────────

@router.get("/balances/{leave_type_id}", response_model=ActionResult[LeaveBalanceOut])
async def get_balance(
    leave_type_id: uuid.UUID,
    employee_id: Optional[uuid.UUID] = Query(None, description="Defaults to the caller"),
    year: Optional[int] = Query(None, description="Leave year; defaults to current year"),
    actor: Actor = Depends(get_current_actor),
    service: LeaveService = Depends(get_leave_service),
):
    balance = await service.get_balance(actor, employee_id, leave_type_id, year)
    return ActionResult[LeaveBalanceOut].ok(balance)


# ── GET /requests ───────────────────────────────────────────────────

@router.get(
    "/requests",
    response_model=ActionResult[PaginatedResponse[LeaveRequestOut]],
)
async def list_requests(
    scope: Literal["my", "all"] = Query("my"),
    status: Optional[LeaveStatus] = Query(None),
    employee_id: Optional[uuid.UUID] = Query(None),
    leave_type_id: Optional[uuid.UUID] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    actor: Actor = Depends(get_current_actor),
    service: LeaveService = Depends(get_leave_service),
):
    """The caller's own requests, or the whole organization's (managers and HR)."""
    page = await service.list_requests(
        actor,
        pagination,
        scope=scope,
        employee_id=employee_id,
        status=status,
        leave_type_id=leave_type_id,
        from_date=from_date,
        to_date=to_date,
    )
    return ActionResult[PaginatedResponse[LeaveRequestOut]].ok(page)


# ── GET /requests/{id} ──────────────────────────────────────────────

@router.get("/requests/{request_id}", response_model=ActionResult[LeaveRequestOut])
async def get_request(
    request_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    service: LeaveService = Depends(get_leave_service),
):
    return ActionResult[LeaveRequestOut].ok(await service.get_request(actor, request_id))


# ── POST /requests ──────────────────────────────────────────────────

@router.post("/requests", response_model=ActionResult[LeaveRequestOut])
async def create_request(
    body: LeaveRequestCreate,
    actor: Actor = Depends(get_current_actor),
    service: LeaveService = Depends(get_leave_service),
):
    """Submit a leave request. Validates dates, reason and available balance."""
    return ActionResult[LeaveRequestOut].ok(await service.create_request(actor, body))


# ── PUT /requests/{id}/approve ──────────────────────────────────────

@router.put("/requests/{request_id}/approve", response_model=ActionResult[LeaveRequestOut])
async def approve_request(
    request_id: uuid.UUID,
    actor: Actor = Depends(require_role(*_APPROVERS)),
    service: LeaveService = Depends(get_leave_service),
):
    """Approve a pending leave request. Moves its days from pending to used."""
    return ActionResult[LeaveRequestOut].ok(
        await service.approve_request(actor, request_id)
    )


# ── PUT /requests/{id}/reject ───────────────────────────────────────

@router.put("/requests/{request_id}/reject", response_model=ActionResult[LeaveRequestOut])
async def reject_request(
    request_id: uuid.UUID,
    body: LeaveRejectRequest,
    actor: Actor = Depends(require_role(*_APPROVERS)),
    service: LeaveService = Depends(get_leave_service),
):
    """Reject a pending leave request. Frees its pending days."""
    return ActionResult[LeaveRequestOut].ok(
        await service.reject_request(actor, request_id, body.reason)
    )


# ── PATCH /requests/{id} ────────────────────────────────────────────

@router.patch("/requests/{request_id}", response_model=ActionResult[LeaveRequestOut])
async def edit_request(
    request_id: uuid.UUID,
    body: LeaveRequestUpdate,
    actor: Actor = Depends(require_role(*_APPROVERS)),
    service: LeaveService = Depends(get_leave_service),
):
    """Edit dates, leave type, reason or status; balances follow the change."""
    return ActionResult[LeaveRequestOut].ok(
        await service.edit_request(actor, request_id, body)
    )


# ── PUT /requests/{id}/cancel ───────────────────────────────────────

@router.put("/requests/{request_id}/cancel", response_model=ActionResult[LeaveRequestOut])
async def cancel_request(
    request_id: uuid.UUID,
    body: Optional[LeaveCancelRequest] = None,
    actor: Actor = Depends(get_current_actor),
    service: LeaveService = Depends(get_leave_service),
):
    """Cancel a pending or approved request. Own requests, or any for HR."""
    return ActionResult[LeaveRequestOut].ok(
        await service.cancel_request(actor, request_id, body.reason if body else None)
    )
