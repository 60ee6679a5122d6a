"""Earnings for a month from the schedule and the pay settings.

Special dates decide which shifts can be assigned (see availability) but
never change how a shift is paid.
"""

import datetime
import logging
from collections.abc import Mapping

from workschedule.core.availability import is_special_date, weekday_name
from workschedule.core.config import DEFAULT_OVERTIME_MULTIPLIER
from workschedule.core.models import CustomShift, WorkSettings
from workschedule.core.time_utils import parse_date_key, to_date_key
from workschedule.core.types import DayPay, MonthSummary, PayrollTotals

logger = logging.getLogger(__name__)


def hourly_rate_from_salary(basic_salary: float) -> float:
    """Standard conversion: salary * 12 months / 52 weeks / 40 hours."""
    return (basic_salary * 12) / 52 / 40


def calculate_shift_amount(
    shift: CustomShift,
    hourly_rate: float,
    overtime_multiplier: float | None = None,
) -> float:
    """
    Pay for one assigned shift.

    With a normal/overtime split:
        normal_hours * rate + overtime_hours * rate * multiplier
    Without one (both missing or zero) the total hours are paid at the
    normal rate.
    """
    multiplier = overtime_multiplier or DEFAULT_OVERTIME_MULTIPLIER
    if shift.has_hour_split:
        normal_hours = shift.normal_hours or 0
        overtime_hours = shift.overtime_hours or 0
        return normal_hours * hourly_rate + overtime_hours * hourly_rate * multiplier
    return (shift.hours or 0) * hourly_rate


def _is_month_to_date(date: datetime.date, today: datetime.date) -> bool:
    return date.year == today.year and date.month == today.month and date.day <= today.day


def calculate_payroll(
    schedule: Mapping[str, list[str]] | None,
    settings: WorkSettings | None,
    special_dates: Mapping[str, bool] | None,
    year: int,
    month: int,
    today: datetime.date | None = None,
) -> PayrollTotals:
    """
    Monthly and month-to-date earnings for the viewed month.

    Args:
        schedule: Date key -> assigned shift ids
        settings: Pay settings with the shift definitions
        special_dates: Special date flags (do not affect pay)
        year: Viewed year
        month: Viewed month (1-12)
        today: Cut-off for month-to-date, defaults to the current date

    Returns:
        PayrollTotals, both 0 when there is nothing to pay
    """
    summary = summarize_month(schedule, settings, special_dates, year, month, today)
    return {
        "monthly_total": summary["monthly_total"],
        "month_to_date_total": summary["month_to_date_total"],
    }


def summarize_month(
    schedule: Mapping[str, list[str]] | None,
    settings: WorkSettings | None,
    special_dates: Mapping[str, bool] | None,
    year: int,
    month: int,
    today: datetime.date | None = None,
) -> MonthSummary:
    """
    Detailed month overview: pay and hours per scheduled day.

    Shift ids without a definition (deleted after being assigned) are listed
    per day but earn nothing. Malformed date keys are skipped.
    """
    today = today or datetime.date.today()
    summary: MonthSummary = {
        "year": year,
        "month": month,
        "days": [],
        "total_hours": 0.0,
        "shift_counts": {},
        "monthly_total": 0.0,
        "month_to_date_total": 0.0,
    }

    if not schedule or settings is None or not settings.custom_shifts:
        return summary

    rate = settings.hourly_rate or 0
    multiplier = settings.effective_overtime_multiplier

    # Keys may mix date objects and strings
    for date_key in sorted(schedule, key=str):
        shift_ids = schedule[date_key]
        if not shift_ids:
            continue
        if not isinstance(shift_ids, (list, tuple)):
            logger.warning("Ignoring schedule entry %r with non-list shifts %r", date_key, shift_ids)
            continue

        date = parse_date_key(date_key)
        if date is None or date.year != year or date.month != month:
            continue

        day: DayPay = {
            "date": to_date_key(date),
            "weekday_name": weekday_name(date),
            "is_special": is_special_date(special_dates, date),
            "shift_ids": [],
            "unknown_shift_ids": [],
            "hours": 0.0,
            "amount": 0.0,
        }

        for shift_id in shift_ids:
            shift = settings.find_shift(shift_id)
            if shift is None:
                logger.debug("No shift definition for %r on %s, not paid", shift_id, date_key)
                day["unknown_shift_ids"].append(shift_id)
                continue

            amount = calculate_shift_amount(shift, rate, multiplier)
            day["shift_ids"].append(shift_id)
            day["hours"] += shift.hours or 0
            day["amount"] += amount
            summary["shift_counts"][shift_id] = summary["shift_counts"].get(shift_id, 0) + 1

            summary["monthly_total"] += amount
            if _is_month_to_date(date, today):
                summary["month_to_date_total"] += amount

        summary["total_hours"] += day["hours"]
        summary["days"].append(day)

    logger.debug(
        "Payroll %04d-%02d: monthly=%.2f month_to_date=%.2f",
        year,
        month,
        summary["monthly_total"],
        summary["month_to_date_total"],
    )
    return summary
