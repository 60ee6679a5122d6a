from typing import Final

# ==========================
# Weekdays
# ==========================

#: Lowercase weekday names indexed like datetime.weekday() (0=monday, 6=sunday).
#: These are also the keys of CustomShift.applicableDays.
WEEKDAY_NAMES: Final[tuple[str, ...]] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

#: Key in applicableDays that unlocks a shift on special dates.
SPECIAL_DAY_KEY: Final[str] = "specialDay"

#: datetime.weekday() index of Sunday.
SUNDAY_INDEX: Final[int] = 6

MONTH_NAMES: Final[tuple[str, ...]] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


# ==========================
# Legacy shift ids
# ==========================

#: Saturday regular shift. Not allowed on special dates.
SHIFT_ID_SATURDAY_REGULAR: Final[str] = "12-10"

#: Sunday / public holiday / special shift.
SHIFT_ID_SUNDAY_SPECIAL: Final[str] = "9-4"

#: Evening shift.
SHIFT_ID_EVENING: Final[str] = "4-10"

#: Pairs of legacy shift ids that can never be on the same day.
CONFLICTING_SHIFT_IDS: Final[tuple[tuple[str, str], ...]] = (
    (SHIFT_ID_SUNDAY_SPECIAL, SHIFT_ID_SATURDAY_REGULAR),
    (SHIFT_ID_SATURDAY_REGULAR, SHIFT_ID_EVENING),
)

#: Built-in shift combinations injected into settings that lack them.
#: Deprecated, kept only so older readers of exported documents keep working.
DEFAULT_SHIFT_COMBINATIONS: Final[tuple[dict, ...]] = (
    {"id": "9-4", "combination": "9-4", "hours": 6.5, "enabled": True},
    {"id": "12-10", "combination": "12-10", "hours": 9.5, "enabled": True},
    {"id": "4-10", "combination": "4-10", "hours": 5.5, "enabled": True},
    {"id": "N", "combination": "N", "hours": 11, "enabled": True},
)
