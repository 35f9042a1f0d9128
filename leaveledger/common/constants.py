"""Enums and constants for leaveledger — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum
from decimal import Decimal


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    hr_admin = "hr_admin"
    system_admin = "system_admin"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"


class BalancePolicy(str, enum.Enum):
    """What to do when a bucket would drop below zero."""

    clamp = "clamp"
    strict = "strict"


# ── Role-based permissions ──────────────────────────────────────────
# Only elevated rights are listed; acting on one's own records needs none.

PERMISSIONS: dict[UserRole, list[str]] = {
    UserRole.employee: [],
    UserRole.manager: [
        "leave:read_all",
        "leave:request_any",
        "leave:approve",
        "leave:reject",
        "leave:edit",
    ],
    UserRole.hr_admin: [
        "leave:read_all",
        "leave:request_any",
        "leave:approve",
        "leave:reject",
        "leave:edit",
        "leave:cancel_any",
        "leave:configure",
    ],
    UserRole.system_admin: [
        "leave:read_all",
        "leave:request_any",
        "leave:approve",
        "leave:reject",
        "leave:edit",
        "leave:cancel_any",
        "leave:configure",
    ],
}

# ── Misc constants ──────────────────────────────────────────────────

# Largest value a NUMERIC(5, 1) day column holds.
MAX_LEAVE_DAYS = Decimal("9999.9")
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
