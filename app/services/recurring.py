# app/services/recurring.py
from __future__ import annotations

import calendar
from datetime import datetime, timedelta

# frequency -> (unit, size)
_STEPS = {
    "daily": ("days", 1),
    "weekly": ("days", 7),
    "monthly": ("months", 1),
    "quarterly": ("months", 3),
    "annually": ("months", 12),
}


def _add_months(dt: datetime, months: int) -> datetime:
    # Clamp to the last day of the target month (Jan 31 + 1 month -> Feb 28/29)
    idx = dt.month - 1 + months
    year = dt.year + idx // 12
    month = idx % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def advance_due_date(due: datetime, frequency: str, interval: int = 1) -> datetime:
    """Next due date one cycle (frequency x interval) after `due`."""
    try:
        unit, size = _STEPS[(frequency or "").lower()]
    except KeyError:
        raise ValueError(f"Unsupported recurring frequency: {frequency!r}")

    step = size * max(int(interval or 1), 1)
    if unit == "days":
        return due + timedelta(days=step)
    return _add_months(due, step)
