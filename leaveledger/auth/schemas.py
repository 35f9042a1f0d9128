"""Auth Pydantic schemas."""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict

from leaveledger.common.constants import PERMISSIONS, UserRole


class Actor(BaseModel):
    """The authenticated user an operation runs on behalf of.

    Passed explicitly into every service call instead of being re-derived
    from the HTTP session.
    """

    model_config = ConfigDict(frozen=True)

    user_id: uuid.UUID
    organization_id: uuid.UUID
    role: UserRole
    employee_id: Optional[uuid.UUID] = None

    def can(self, permission: str) -> bool:
        return permission in PERMISSIONS.get(self.role, [])
