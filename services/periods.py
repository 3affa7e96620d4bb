# services/periods.py
"""
Billing period helpers.

A period is a calendar month written as ``YYYY-MM``. Periods compare
correctly as strings, which is what the SQL filters rely on.
"""
import re
from datetime import datetime
from typing import Optional

from .exceptions import ValidationFailedError

PERIOD_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
_PERIOD_RE = re.compile(PERIOD_PATTERN)

# Payments become overdue after this day of the current month, at 23:59:59
OVERDUE_DAY = 28

_MONTH_NAMES = (
     "January", "February", "March", "April", "May", "June",
     "July", "August", "September", "October", "November", "December",
)


def parse_period(period: str) -> tuple[int, int]:
     """Split ``YYYY-MM`` into (year, month), rejecting anything else."""
     if not isinstance(period, str) or not _PERIOD_RE.match(period):
          raise ValidationFailedError(f"Invalid period '{period}', expected YYYY-MM")
     year, month = period.split("-")
     return int(year), int(month)


def format_period(year: int, month: int) -> str:
     return f"{year:04d}-{month:02d}"


def add_months(period: str, months: int) -> str:
     """Shift a period by a (possibly negative) number of months."""
     year, month = parse_period(period)
     index = year * 12 + (month - 1) + months
     return format_period(index // 12, index % 12 + 1)


def compute_end_month(start_month: str, duration: int) -> str:
     """Last payout month of a group running ``duration`` months from ``start_month``."""
     if duration < 1:
          raise ValidationFailedError("Duration must be at least one month")
     return add_months(start_month, duration - 1)


def current_period(now: Optional[datetime] = None) -> str:
     now = now or datetime.now()
     return format_period(now.year, now.month)


def overdue_deadline(now: Optional[datetime] = None) -> datetime:
     """23:59:59 on the 28th of ``now``'s month."""
     now = now or datetime.now()
     return datetime(now.year, now.month, OVERDUE_DAY, 23, 59, 59)


def format_period_label(period: str) -> str:
     """``2025-03`` -> ``March 2025``."""
     year, month = parse_period(period)
     return f"{_MONTH_NAMES[month - 1]} {year}"
