import calendar
from dataclasses import dataclass
from datetime import date, datetime
from typing import Union

from ..ports.machine_repo import WarrantyStatus

DEFAULT_WARRANTY_MONTHS = 12


@dataclass(frozen=True)
class WarrantyWindow:
    start: date
    end: date
    status: WarrantyStatus


def add_months(start: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month's length.

    2026-01-31 + 12 -> 2027-01-31, 2024-02-29 + 12 -> 2025-02-28.
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def compute_warranty(installation_date: Union[date, datetime], today: Union[date, datetime],
                     months: int = DEFAULT_WARRANTY_MONTHS) -> WarrantyWindow:
    """Warranty window for a machine installed on ``installation_date``.

    Status is evaluated once, against ``today``; nothing re-evaluates it later.
    """
    if isinstance(installation_date, datetime):
        installation_date = installation_date.date()
    if isinstance(today, datetime):
        today = today.date()
    end = add_months(installation_date, months)
    status = WarrantyStatus.ACTIVE if end >= today else WarrantyStatus.EXPIRED
    return WarrantyWindow(start=installation_date, end=end, status=status)
