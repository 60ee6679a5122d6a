"""
Unit tests for shift availability.

Dates used (2024):
- 2024-05-18 Saturday
- 2024-05-19 Sunday
- 2024-05-20 Monday
"""

import datetime

import pytest

from workschedule.core.availability import (
    get_available_shifts,
    is_shift_available,
    is_special_date,
    weekday_name,
)
from workschedule.core.models import ApplicableDays, CustomShift


def _ids(shifts):
    return [shift.id for shift in shifts]


class TestWeekdayAndSpecial:
    """Helpers used by the resolver."""

    @pytest.mark.parametrize(
        "date, expected",
        [
            (datetime.date(2024, 5, 18), "saturday"),
            (datetime.date(2024, 5, 19), "sunday"),
            (datetime.date(2024, 5, 20), "monday"),
        ],
    )
    def test_weekday_name(self, date, expected):
        assert weekday_name(date) == expected

    def test_only_true_marks_special(self):
        special_dates = {"2024-05-20": True, "2024-05-21": False}

        assert is_special_date(special_dates, "2024-05-20")
        assert not is_special_date(special_dates, "2024-05-21")
        assert not is_special_date(special_dates, datetime.date(2024, 5, 22))
        assert not is_special_date(None, "2024-05-20")


class TestGetAvailableShifts:
    """Day rules applied to the sample settings."""

    def test_regular_monday(self, sample_settings):
        assert _ids(get_available_shifts("2024-05-20", sample_settings, {})) == ["day", "night"]

    def test_special_monday_adds_special_day_shifts(self, sample_settings):
        special_dates = {"2024-05-20": True}
        assert _ids(get_available_shifts("2024-05-20", sample_settings, special_dates)) == ["day", "9-4", "night"]

    def test_saturday(self, sample_settings):
        assert _ids(get_available_shifts(datetime.date(2024, 5, 18), sample_settings, {})) == ["12-10", "night"]

    def test_sunday(self, sample_settings):
        assert _ids(get_available_shifts("2024-05-19", sample_settings, {})) == ["9-4", "night"]

    def test_false_special_flag_is_ignored(self, sample_settings):
        assert _ids(get_available_shifts("2024-05-20", sample_settings, {"2024-05-20": False})) == ["day", "night"]

    def test_disabled_shift_never_available(self, sample_settings):
        for day in range(13, 20):
            date = datetime.date(2024, 5, day)
            assert "off" not in _ids(get_available_shifts(date, sample_settings, {date.isoformat(): True}))

    def test_settings_order_is_kept(self, sample_settings):
        sample_settings.custom_shifts.reverse()
        assert _ids(get_available_shifts("2024-05-20", sample_settings, {"2024-05-20": True})) == [
            "night",
            "9-4",
            "day",
        ]

    def test_malformed_date_gives_no_shifts(self, sample_settings):
        assert get_available_shifts("2024-13-45", sample_settings, {}) == []

    def test_no_settings_gives_no_shifts(self):
        assert get_available_shifts("2024-05-20", None, {}) == []


class TestIsShiftAvailable:
    """Single shift definitions."""

    def test_missing_day_rules_means_every_day(self):
        shift = CustomShift(id="legacy", hours=8)

        assert is_shift_available(shift, "wednesday", False)
        assert is_shift_available(shift, "sunday", True)

    def test_weekday_rule_alone_is_enough_on_special_date(self):
        shift = CustomShift(id="weekday", hours=8, applicable_days=ApplicableDays(tuesday=True))
        assert is_shift_available(shift, "tuesday", True)

    def test_special_day_rule_needs_special_date(self):
        shift = CustomShift(id="holiday", hours=8, applicable_days=ApplicableDays(special_day=True))

        assert not is_shift_available(shift, "tuesday", False)
        assert is_shift_available(shift, "tuesday", True)
