"""Which shift definitions may be assigned on a given date."""

import datetime
import logging
from collections.abc import Mapping

from workschedule.core.constants import SPECIAL_DAY_KEY, WEEKDAY_NAMES
from workschedule.core.models import CustomShift, WorkSettings
from workschedule.core.time_utils import parse_date_key, to_date_key

logger = logging.getLogger(__name__)


def weekday_name(date: datetime.date) -> str:
    """Lowercase weekday name, e.g. "monday"."""
    return WEEKDAY_NAMES[date.weekday()]


def is_special_date(special_dates: Mapping[str, bool] | None, date: datetime.date | str) -> bool:
    """Only an explicit True marks a date as special."""
    if not special_dates:
        return False
    return special_dates.get(to_date_key(date)) is True


def is_shift_available(shift: CustomShift, day_name: str, is_special: bool) -> bool:
    """
    Apply the day rules of one shift definition.

    A disabled shift is never available. Otherwise it is available when its
    weekday is allowed, or when the date is special and special days are
    allowed. The weekday rule alone is enough even on a special date.
    """
    if not shift.enabled:
        return False
    applicable_days = shift.effective_applicable_days()
    if applicable_days.allows(day_name):
        return True
    return is_special and applicable_days.allows(SPECIAL_DAY_KEY)


def get_available_shifts(
    date: datetime.date | str,
    settings: WorkSettings | None,
    special_dates: Mapping[str, bool] | None,
) -> list[CustomShift]:
    """
    Shift definitions that can be assigned on ``date``.

    Args:
        date: Calendar date or date key
        settings: Loaded settings (None gives no shifts)
        special_dates: Loaded special dates

    Returns:
        Matching shifts in the order they are defined in the settings
    """
    parsed = parse_date_key(date)
    if parsed is None or settings is None:
        return []

    day_name = weekday_name(parsed)
    special = is_special_date(special_dates, parsed)
    available = [shift for shift in settings.custom_shifts if is_shift_available(shift, day_name, special)]

    logger.debug(
        "%s (%s, special=%s): %d of %d shifts available",
        to_date_key(parsed),
        day_name,
        special,
        len(available),
        len(settings.custom_shifts),
    )
    return available
