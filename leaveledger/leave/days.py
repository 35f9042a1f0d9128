"""Inclusive calendar-day span of a leave request."""

from __future__ import annotations

from datetime import date
from typing import Optional

from leaveledger.common.constants import MAX_LEAVE_DAYS
from leaveledger.common.exceptions import ValidationException


def count_leave_days(start_date: Optional[date], end_date: Optional[date]) -> int:
    """Return the number of calendar days from *start_date* to *end_date*, inclusive.

    Dates are naive calendar dates; weekends and holidays are counted.
    A range ending before it starts is a validation error, never a
    negative count, and so is a span longer than a day column can store.

    >>> count_leave_days(date(2024, 1, 10), date(2024, 1, 10))
    1
    """
    errors: dict[str, list[str]] = {}
    if start_date is None:
        errors["start_date"] = ["Please select a start date"]
    if end_date is None:
        errors["end_date"] = ["Please select an end date"]
    if errors:
        raise ValidationException(errors)

    if end_date < start_date:
        raise ValidationException(
            {"end_date": ["End date cannot be before start date"]}
        )
    days = (end_date - start_date).days + 1
    if days > MAX_LEAVE_DAYS:
        raise ValidationException(
            {"days": [f"A leave request cannot exceed {MAX_LEAVE_DAYS} days"]}
        )
    return days
