"""Leave balance ledger — request state machine and bucket arithmetic.

Pure functions and immutable values only; nothing here touches the database.

Each status maps to at most one bucket of a LeaveBalance row:

    pending   → pending_days
    approved  → used_days
    rejected  → (none)
    cancelled → (none)

A request "contributes" its days to the bucket of its current status. Any
status or day-count change is: release the old contribution from the old
bucket, then reserve the new contribution in the new bucket.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional

from leaveledger.common.constants import BalancePolicy, LeaveStatus
from leaveledger.common.exceptions import (
    BalanceInconsistencyError,
    ValidationException,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

BUCKET_BY_STATUS: dict[LeaveStatus, str] = {
    LeaveStatus.pending: "pending_days",
    LeaveStatus.approved: "used_days",
}

# cancelled is terminal
ALLOWED_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.pending: frozenset(LeaveStatus),
    LeaveStatus.approved: frozenset(LeaveStatus),
    LeaveStatus.rejected: frozenset(LeaveStatus),
    LeaveStatus.cancelled: frozenset(),
}

# Targets that consume capacity and so must fit in the available balance
CONSUMING_STATUSES = frozenset(BUCKET_BY_STATUS)


# ═════════════════════════════════════════════════════════════════════
# Values
# ═════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class BalanceDelta:
    """Signed change to the two buckets of a balance row."""

    pending_days: Decimal = ZERO
    used_days: Decimal = ZERO

    def __add__(self, other: BalanceDelta) -> BalanceDelta:
        return BalanceDelta(
            pending_days=self.pending_days + other.pending_days,
            used_days=self.used_days + other.used_days,
        )

    def __neg__(self) -> BalanceDelta:
        return BalanceDelta(
            pending_days=-self.pending_days,
            used_days=-self.used_days,
        )

    def __sub__(self, other: BalanceDelta) -> BalanceDelta:
        return self + (-other)

    @property
    def is_zero(self) -> bool:
        return self.pending_days == ZERO and self.used_days == ZERO


@dataclass(frozen=True)
class BalanceSnapshot:
    """A balance row as read, or synthesized when no row exists yet.

    ``persisted`` is False for synthesized snapshots; ``version`` is the
    row version the snapshot was read at and is what the writer
    compares against.
    """

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    year: int
    allocated_days: Decimal = ZERO
    carried_forward_days: Decimal = ZERO
    used_days: Decimal = ZERO
    pending_days: Decimal = ZERO
    id: Optional[uuid.UUID] = None
    version: Optional[int] = None
    persisted: bool = False

    @property
    def available(self) -> Decimal:
        return (
            self.allocated_days
            + self.carried_forward_days
            - self.used_days
            - self.pending_days
        )

    @property
    def key(self) -> tuple[uuid.UUID, uuid.UUID, int]:
        return (self.employee_id, self.leave_type_id, self.year)

    def released(
        self,
        status: Optional[LeaveStatus],
        days: Decimal,
        policy: BalancePolicy = BalancePolicy.clamp,
    ) -> BalanceSnapshot:
        """Remove *days* from the bucket *status* occupies."""
        bucket = BUCKET_BY_STATUS.get(status) if status else None
        if bucket is None or not days:
            return self
        current: Decimal = getattr(self, bucket)
        remaining = current - Decimal(days)
        if remaining < ZERO:
            if policy == BalancePolicy.strict:
                raise BalanceInconsistencyError(bucket, current, -Decimal(days))
            logger.warning(
                "Clamping %s for employee=%s leave_type=%s year=%s: %s - %s < 0",
                bucket, self.employee_id, self.leave_type_id, self.year,
                current, days,
            )
            remaining = ZERO
        return replace(self, **{bucket: remaining})

    def reserved(self, status: Optional[LeaveStatus], days: Decimal) -> BalanceSnapshot:
        """Add *days* to the bucket *status* occupies."""
        bucket = BUCKET_BY_STATUS.get(status) if status else None
        if bucket is None or not days:
            return self
        return replace(self, **{bucket: getattr(self, bucket) + Decimal(days)})


# ═════════════════════════════════════════════════════════════════════
# Transition rules
# ═════════════════════════════════════════════════════════════════════


def contribution(status: Optional[LeaveStatus], days: Decimal) -> BalanceDelta:
    """The buckets a request holding *days* in *status* occupies."""
    bucket = BUCKET_BY_STATUS.get(status) if status else None
    if bucket is None:
        return BalanceDelta()
    return BalanceDelta(**{bucket: Decimal(days)})


def compute_delta(
    old_status: Optional[LeaveStatus],
    new_status: LeaveStatus,
    old_days: Decimal,
    new_days: Decimal,
) -> BalanceDelta:
    """Net bucket change for moving a request between statuses.

    ``old_status=None`` models creation.
    """
    return contribution(new_status, new_days) - contribution(old_status, old_days)


def check_transition(old_status: LeaveStatus, new_status: LeaveStatus) -> None:
    """Raise ValidationException if *old_status* may not move to *new_status*."""
    if new_status not in ALLOWED_TRANSITIONS[old_status]:
        raise ValidationException(
            {"status": [
                f"Cannot change a {old_status.value} leave request to {new_status.value}."
            ]}
        )


def apply_transition(
    snapshot: BalanceSnapshot,
    old_status: Optional[LeaveStatus],
    new_status: LeaveStatus,
    old_days: Decimal,
    new_days: Decimal,
    policy: BalancePolicy = BalancePolicy.clamp,
) -> BalanceSnapshot:
    """Release the old contribution, then reserve the new one, on one row."""
    return snapshot.released(old_status, old_days, policy).reserved(new_status, new_days)


def ensure_sufficient(
    snapshot: BalanceSnapshot,
    new_status: LeaveStatus,
    days: Decimal,
    *,
    unlimited: bool = False,
) -> None:
    """Advisory balance check against a snapshot that excludes the request's own days.

    Only statuses that consume capacity are checked; rejected and cancelled
    free capacity and always pass.
    """
    if unlimited or new_status not in CONSUMING_STATUSES:
        return
    if Decimal(days) > snapshot.available:
        raise ValidationException(
            {"days": [
                f"Insufficient leave balance. Available: {snapshot.available} days"
            ]}
        )
