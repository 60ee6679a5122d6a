# workschedule/core/types.py

"""
Type definitions shared by the repositories and the pure calculation code.
"""

from typing import NewType, TypedDict

DateKey = NewType("DateKey", str)
ShiftId = NewType("ShiftId", str)
Year = NewType("Year", int)
Month = NewType("Month", int)

# Date key -> ordered shift ids. An empty list means the same as a missing key.
DaySchedule = dict[str, list[str]]

# Date key -> special flag. Only True carries meaning.
SpecialDates = dict[str, bool]

Hours = float
MonetaryAmount = float


class PayrollTotals(TypedDict):
    """Earnings for the viewed month."""

    monthly_total: MonetaryAmount
    month_to_date_total: MonetaryAmount


class DayPay(TypedDict):
    """Type definition for one scheduled day in a month summary."""

    date: DateKey
    weekday_name: str
    is_special: bool
    shift_ids: list[ShiftId]
    unknown_shift_ids: list[ShiftId]
    hours: Hours
    amount: MonetaryAmount


class MonthSummary(TypedDict):
    """Type definition for monthly summary data."""

    year: Year
    month: Month
    days: list[DayPay]
    total_hours: Hours
    shift_counts: dict[str, int]
    monthly_total: MonetaryAmount
    month_to_date_total: MonetaryAmount


class BackupStatus(TypedDict):
    """Type definition for the monthly backup overview."""

    enabled: bool
    backup_count: int
    latest_backup: dict | None
    current_month_due: bool
