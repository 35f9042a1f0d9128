"""Response envelopes shared by all routers."""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ActionResult(BaseModel, Generic[T]):
    """``{"success": true, "data": ...}`` on success.

    Failures never reach this model: they are raised as ``AppException``
    and rendered by the problem-detail handlers with ``success: false``.
    """

    success: bool = True
    error: Optional[str] = None
    data: Optional[T] = None

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "ActionResult[T]":
        return cls(success=True, data=data)
