"""
Pure edit operations on a loaded schedule.

Each function returns new mappings and leaves its arguments untouched. The
caller persists the result through the repositories.
"""

import datetime
import logging
from collections.abc import Mapping

from workschedule.core.config import MAX_SHIFTS_PER_DAY
from workschedule.core.constants import (
    CONFLICTING_SHIFT_IDS,
    SHIFT_ID_SATURDAY_REGULAR,
    SHIFT_ID_SUNDAY_SPECIAL,
    SUNDAY_INDEX,
)
from workschedule.core.time_utils import month_date_keys, parse_date_key, to_date_key
from workschedule.core.types import DaySchedule, SpecialDates

logger = logging.getLogger(__name__)


def can_select_shift(schedule: Mapping[str, list[str]], date: datetime.date | str, shift_id: str) -> bool:
    """
    Whether ``shift_id`` may be added to the shifts already on ``date``.

    Rules:
        - at most MAX_SHIFTS_PER_DAY shifts per day
        - 9-4 and 12-10 never on the same day
        - 12-10 and 4-10 never on the same day
    """
    current = schedule.get(to_date_key(date)) or []
    if shift_id in current:
        return False
    if len(current) >= MAX_SHIFTS_PER_DAY:
        return False
    for first, second in CONFLICTING_SHIFT_IDS:
        if shift_id == first and second in current:
            return False
        if shift_id == second and first in current:
            return False
    return True


def _with_day(schedule: Mapping[str, list[str]], date_key: str, shift_ids: list[str]) -> DaySchedule:
    updated = {key: list(value) for key, value in schedule.items()}
    if shift_ids:
        updated[date_key] = shift_ids
    else:
        updated.pop(date_key, None)
    return updated


def toggle_shift(schedule: Mapping[str, list[str]], date: datetime.date | str, shift_id: str) -> DaySchedule:
    """Remove ``shift_id`` from the day if present, otherwise add it when allowed."""
    date_key = to_date_key(date)
    current = list(schedule.get(date_key) or [])

    if shift_id in current:
        current.remove(shift_id)
    elif can_select_shift(schedule, date_key, shift_id):
        current.append(shift_id)
    else:
        logger.debug("Shift %r not allowed on %s with %s", shift_id, date_key, current)

    return _with_day(schedule, date_key, current)


def set_special_date(
    schedule: Mapping[str, list[str]],
    special_dates: Mapping[str, bool],
    date: datetime.date | str,
    is_special: bool,
) -> tuple[DaySchedule, SpecialDates]:
    """
    Mark or unmark a special date.

    Fixed legacy side effects on that day's shifts:
        - marking special removes the 12-10 shift
        - unmarking removes the 9-4 shift unless the date is a Sunday

    Returns:
        (schedule, special_dates) after the change
    """
    date_key = to_date_key(date)
    updated_special = {key: True for key, value in special_dates.items() if value is True}
    current = list(schedule.get(date_key) or [])

    if is_special:
        updated_special[date_key] = True
        if SHIFT_ID_SATURDAY_REGULAR in current:
            current.remove(SHIFT_ID_SATURDAY_REGULAR)
    else:
        updated_special.pop(date_key, None)
        parsed = parse_date_key(date_key)
        is_sunday = parsed is not None and parsed.weekday() == SUNDAY_INDEX
        if not is_sunday and SHIFT_ID_SUNDAY_SPECIAL in current:
            current.remove(SHIFT_ID_SUNDAY_SPECIAL)

    return _with_day(schedule, date_key, current), updated_special


def clear_date(
    schedule: Mapping[str, list[str]],
    special_dates: Mapping[str, bool],
    date: datetime.date | str,
) -> tuple[DaySchedule, SpecialDates]:
    """Remove the shifts and the special flag of one date."""
    date_key = to_date_key(date)
    updated_schedule = {key: list(value) for key, value in schedule.items() if key != date_key}
    updated_special = {key: value for key, value in special_dates.items() if key != date_key}
    return updated_schedule, updated_special


def clear_month(
    schedule: Mapping[str, list[str]],
    special_dates: Mapping[str, bool],
    year: int,
    month: int,
) -> tuple[DaySchedule, SpecialDates]:
    """Remove every shift and special flag in a calendar month."""
    month_keys = set(month_date_keys(year, month))
    updated_schedule = {key: list(value) for key, value in schedule.items() if key not in month_keys}
    updated_special = {key: value for key, value in special_dates.items() if key not in month_keys}
    logger.info(
        "Cleared %04d-%02d: %d schedule entries, %d special dates",
        year,
        month,
        len(schedule) - len(updated_schedule),
        len(special_dates) - len(updated_special),
    )
    return updated_schedule, updated_special
