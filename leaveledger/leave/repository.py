"""Leave data access — the only place leave queries and writes are issued.

The service receives a ``LeaveRepository`` instead of a raw session, which
keeps the balance arithmetic testable against a fake store.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from leaveledger.common.constants import LeaveStatus
from leaveledger.common.exceptions import ConcurrentUpdateError
from leaveledger.core_hr.models import Employee
from leaveledger.database import utcnow
from leaveledger.leave.ledger import ZERO, BalanceSnapshot
from leaveledger.leave.models import LeaveBalance, LeaveRequest, LeaveType

logger = logging.getLogger(__name__)


class LeaveRepository:
    """Async queries and writes for leave types, requests and balances."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ─────────────────────────────────────────────────────────────────
    # Generic
    # ─────────────────────────────────────────────────────────────────

    async def add(self, obj) -> None:
        self.db.add(obj)
        await self.db.flush()

    async def delete(self, obj) -> None:
        await self.db.delete(obj)
        await self.db.flush()

    async def flush(self) -> None:
        await self.db.flush()

    # ─────────────────────────────────────────────────────────────────
    # Employees
    # ─────────────────────────────────────────────────────────────────

    async def get_employee(
        self,
        organization_id: uuid.UUID,
        employee_id: uuid.UUID,
    ) -> Optional[Employee]:
        result = await self.db.execute(
            select(Employee).where(
                Employee.id == employee_id,
                Employee.organization_id == organization_id,
                Employee.is_active.is_(True),
            )
        )
        return result.scalars().first()

    # ─────────────────────────────────────────────────────────────────
    # Leave types
    # ─────────────────────────────────────────────────────────────────

    async def get_leave_type(
        self,
        organization_id: uuid.UUID,
        leave_type_id: uuid.UUID,
        *,
        active_only: bool = False,
    ) -> Optional[LeaveType]:
        query = select(LeaveType).where(
            LeaveType.id == leave_type_id,
            LeaveType.organization_id == organization_id,
        )
        if active_only:
            query = query.where(LeaveType.is_active.is_(True))
        result = await self.db.execute(query)
        return result.scalars().first()

    async def list_leave_types(
        self,
        organization_id: uuid.UUID,
        *,
        is_active: Optional[bool] = None,
    ) -> Sequence[LeaveType]:
        query = (
            select(LeaveType)
            .where(LeaveType.organization_id == organization_id)
            .order_by(LeaveType.name)
        )
        if is_active is not None:
            query = query.where(LeaveType.is_active.is_(is_active))
        result = await self.db.execute(query)
        return result.scalars().all()

    async def leave_type_code_exists(
        self,
        organization_id: uuid.UUID,
        code: str,
        *,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> bool:
        query = select(func.count()).select_from(LeaveType).where(
            LeaveType.organization_id == organization_id,
            func.upper(LeaveType.code) == code.upper(),
        )
        if exclude_id is not None:
            query = query.where(LeaveType.id != exclude_id)
        return (await self.db.execute(query)).scalar_one() > 0

    async def leave_type_in_use(self, leave_type_id: uuid.UUID) -> bool:
        requests = await self.db.execute(
            select(func.count()).select_from(LeaveRequest).where(
                LeaveRequest.leave_type_id == leave_type_id,
            )
        )
        balances = await self.db.execute(
            select(func.count()).select_from(LeaveBalance).where(
                LeaveBalance.leave_type_id == leave_type_id,
            )
        )
        return requests.scalar_one() > 0 or balances.scalar_one() > 0

    # ─────────────────────────────────────────────────────────────────
    # Leave requests
    # ─────────────────────────────────────────────────────────────────

    async def get_request(
        self,
        organization_id: uuid.UUID,
        request_id: uuid.UUID,
    ) -> Optional[LeaveRequest]:
        result = await self.db.execute(
            select(LeaveRequest)
            .join(Employee, LeaveRequest.employee_id == Employee.id)
            .where(
                LeaveRequest.id == request_id,
                Employee.organization_id == organization_id,
            )
            .options(
                selectinload(LeaveRequest.employee),
                selectinload(LeaveRequest.leave_type),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    def requests_query(
        self,
        organization_id: uuid.UUID,
        *,
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[LeaveStatus] = None,
        leave_type_id: Optional[uuid.UUID] = None,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> Select:
        """Filtered, newest-first request query for pagination."""
        query = (
            select(LeaveRequest)
            .join(Employee, LeaveRequest.employee_id == Employee.id)
            .where(Employee.organization_id == organization_id)
            .options(
                selectinload(LeaveRequest.employee),
                selectinload(LeaveRequest.leave_type),
            )
            .order_by(LeaveRequest.created_at.desc())
        )
        if employee_id:
            query = query.where(LeaveRequest.employee_id == employee_id)
        if status:
            query = query.where(LeaveRequest.status == status)
        if leave_type_id:
            query = query.where(LeaveRequest.leave_type_id == leave_type_id)
        if from_date:
            query = query.where(LeaveRequest.end_date >= from_date)
        if to_date:
            query = query.where(LeaveRequest.start_date <= to_date)
        return query

    async def has_overlapping_request(
        self,
        employee_id: uuid.UUID,
        start_date: date,
        end_date: date,
        *,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """True if a pending or approved request of the employee shares a day."""
        query = select(func.count()).select_from(LeaveRequest).where(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status.in_([LeaveStatus.pending, LeaveStatus.approved]),
            LeaveRequest.start_date <= end_date,
            LeaveRequest.end_date >= start_date,
        )
        if exclude_id is not None:
            query = query.where(LeaveRequest.id != exclude_id)
        result = await self.db.execute(query)
        return result.scalar_one() > 0

    # ─────────────────────────────────────────────────────────────────
    # Balances
    # ─────────────────────────────────────────────────────────────────

    async def read_balance(
        self,
        employee_id: uuid.UUID,
        leave_type: LeaveType,
        year: Optional[int] = None,
    ) -> BalanceSnapshot:
        """Return the stored balance, or a synthesized one if no row exists.

        The synthesized snapshot allocates the leave type's annual allotment
        and is not persisted; the row is created by ``write_balance``.
        """
        target_year = year or date.today().year
        result = await self.db.execute(
            select(LeaveBalance)
            .where(
                LeaveBalance.employee_id == employee_id,
                LeaveBalance.leave_type_id == leave_type.id,
                LeaveBalance.year == target_year,
            )
            .execution_options(populate_existing=True)
        )
        row = result.scalars().first()
        if row is None:
            return BalanceSnapshot(
                employee_id=employee_id,
                leave_type_id=leave_type.id,
                year=target_year,
                allocated_days=Decimal(leave_type.max_days_per_year or ZERO),
            )
        return BalanceSnapshot(
            employee_id=row.employee_id,
            leave_type_id=row.leave_type_id,
            year=row.year,
            allocated_days=Decimal(row.allocated_days or ZERO),
            carried_forward_days=Decimal(row.carried_forward_days or ZERO),
            used_days=Decimal(row.used_days or ZERO),
            pending_days=Decimal(row.pending_days or ZERO),
            id=row.id,
            version=row.version,
            persisted=True,
        )

    async def write_balance(
        self,
        snapshot: BalanceSnapshot,
        used_days: Decimal,
        pending_days: Decimal,
    ) -> BalanceSnapshot:
        """Store absolute used/pending totals computed from *snapshot*.

        Inserts the row for a synthesized snapshot; otherwise updates it only
        if its version still matches the one *snapshot* was read at.
        Raises ConcurrentUpdateError when another writer got there first.
        """
        if not snapshot.persisted:
            row = LeaveBalance(
                id=uuid.uuid4(),
                employee_id=snapshot.employee_id,
                leave_type_id=snapshot.leave_type_id,
                year=snapshot.year,
                allocated_days=snapshot.allocated_days,
                carried_forward_days=snapshot.carried_forward_days,
                used_days=used_days,
                pending_days=pending_days,
                version=1,
            )
            self.db.add(row)
            try:
                await self.db.flush()
            except IntegrityError:
                logger.warning(
                    "Balance row for %s created concurrently", snapshot.key,
                )
                raise ConcurrentUpdateError("LeaveBalance", "/".join(map(str, snapshot.key)))
            return replace(
                snapshot,
                used_days=used_days,
                pending_days=pending_days,
                id=row.id,
                version=1,
                persisted=True,
            )

        result = await self.db.execute(
            update(LeaveBalance)
            .where(
                LeaveBalance.id == snapshot.id,
                LeaveBalance.version == snapshot.version,
            )
            .values(
                used_days=used_days,
                pending_days=pending_days,
                version=LeaveBalance.version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(
                "Stale balance write for %s at version %s", snapshot.key, snapshot.version,
            )
            raise ConcurrentUpdateError("LeaveBalance", snapshot.id)

        return replace(
            snapshot,
            used_days=used_days,
            pending_days=pending_days,
            version=snapshot.version + 1,
        )
