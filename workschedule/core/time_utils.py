import calendar
import datetime
import logging

logger = logging.getLogger(__name__)

DATE_KEY_FORMAT = "%Y-%m-%d"


def to_date_key(value: datetime.date | str) -> str:
    """Return the YYYY-MM-DD key for a date, or the string unchanged."""
    if isinstance(value, datetime.datetime):
        value = value.date()
    if isinstance(value, datetime.date):
        return value.strftime(DATE_KEY_FORMAT)
    return value


def parse_date_key(value: datetime.date | str) -> datetime.date | None:
    """
    Parse a date key into a date.

    Malformed keys are logged and give None so that callers working on
    historical data can skip them instead of failing.
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        return datetime.datetime.strptime(str(value).strip(), DATE_KEY_FORMAT).date()
    except ValueError:
        logger.warning("Ignoring malformed date key %r", value)
        return None


def month_date_keys(year: int, month: int) -> list[str]:
    """All date keys of a calendar month, first to last."""
    days_in_month = calendar.monthrange(year, month)[1]
    return [to_date_key(datetime.date(year, month, day)) for day in range(1, days_in_month + 1)]


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1
