"""
Unit tests for the schedule repository.

Tests verify that schedule and special dates are replaced as a whole,
that empty days and false flags never reach the store, and that a failed
replace leaves the previous data in place.
"""

import datetime

import pytest
from sqlalchemy.exc import OperationalError

from workschedule.database.database import Collection
from workschedule.database.store import CollectionTransaction, PersistenceError


class TestSchedule:
    """read_schedule / replace_schedule."""

    def test_empty_store_reads_empty_schedule(self, schedule_repo):
        assert schedule_repo.read_schedule() == {}

    def test_replace_then_read_round_trips(self, schedule_repo):
        schedule = {"2024-01-15": ["s1", "s2"], "2024-01-16": ["s3"]}

        written = schedule_repo.replace_schedule(schedule)

        assert written == 2
        assert schedule_repo.read_schedule() == schedule

    def test_replace_drops_days_without_shifts(self, schedule_repo, store):
        schedule_repo.replace_schedule({"2024-01-15": ["s1"], "2024-01-16": []})

        assert schedule_repo.read_schedule() == {"2024-01-15": ["s1"]}
        assert [r["date"] for r in store.get_all(Collection.SCHEDULE)] == ["2024-01-15"]

    def test_writing_back_what_was_read_changes_nothing(self, schedule_repo, store):
        schedule_repo.replace_schedule({"2024-01-15": ["s1"], "2024-01-16": [], "2024-01-17": ["a", "b"]})
        snapshot = store.get_all(Collection.SCHEDULE)

        for _ in range(2):
            schedule_repo.replace_schedule(schedule_repo.read_schedule())
            assert store.get_all(Collection.SCHEDULE) == snapshot

        assert [r["date"] for r in snapshot] == ["2024-01-15", "2024-01-17"]

    def test_replace_removes_dates_not_in_new_schedule(self, schedule_repo):
        schedule_repo.replace_schedule({"2024-01-15": ["s1"], "2024-01-16": ["s2"]})
        schedule_repo.replace_schedule({"2024-01-16": ["s2"]})

        assert schedule_repo.read_schedule() == {"2024-01-16": ["s2"]}

    def test_replace_accepts_date_objects(self, schedule_repo):
        schedule_repo.replace_schedule({datetime.date(2024, 3, 5): ["s1"]})
        assert schedule_repo.read_schedule() == {"2024-03-05": ["s1"]}

    def test_shift_order_is_preserved(self, schedule_repo):
        schedule_repo.replace_schedule({"2024-01-15": ["z", "a", "m"]})
        assert schedule_repo.read_schedule()["2024-01-15"] == ["z", "a", "m"]

    def test_read_skips_empty_records_written_by_other_tools(self, schedule_repo, store):
        store.put(Collection.SCHEDULE, "2024-01-20", [])
        store.put(Collection.SCHEDULE, "2024-01-21", ["s1"])

        assert schedule_repo.read_schedule() == {"2024-01-21": ["s1"]}

    def test_failed_replace_keeps_previous_schedule(self, schedule_repo, monkeypatch):
        """A failure after the clear must not leave the schedule empty."""
        previous = {"2024-01-15": ["s1"], "2024-01-16": ["s2"]}
        schedule_repo.replace_schedule(previous)

        original_add = CollectionTransaction.add
        calls = {"count": 0}

        def failing_add(self, key, value):
            calls["count"] += 1
            if calls["count"] == 2:
                raise OperationalError("INSERT INTO schedule", {}, Exception("database is locked"))
            return original_add(self, key, value)

        monkeypatch.setattr(CollectionTransaction, "add", failing_add)

        with pytest.raises(PersistenceError):
            schedule_repo.replace_schedule({"2024-02-01": ["a"], "2024-02-02": ["b"], "2024-02-03": ["c"]})

        monkeypatch.undo()
        assert schedule_repo.read_schedule() == previous


class TestSpecialDates:
    """read_special_dates / replace_special_dates."""

    def test_only_true_entries_are_persisted(self, schedule_repo, store):
        schedule_repo.replace_special_dates({"2024-12-25": True, "2024-12-26": False})

        assert schedule_repo.read_special_dates() == {"2024-12-25": True}
        assert len(store.get_all(Collection.SPECIAL_DATES)) == 1

    def test_non_bool_truthy_values_are_not_special(self, schedule_repo):
        schedule_repo.replace_special_dates({"2024-12-25": True, "2024-12-31": 1})
        assert schedule_repo.read_special_dates() == {"2024-12-25": True}

    def test_read_ignores_false_records(self, schedule_repo, store):
        store.put(Collection.SPECIAL_DATES, "2024-01-01", False)
        store.put(Collection.SPECIAL_DATES, "2024-01-02", True)

        assert schedule_repo.read_special_dates() == {"2024-01-02": True}

    def test_replace_with_empty_mapping_clears(self, schedule_repo):
        schedule_repo.replace_special_dates({"2024-12-25": True})
        schedule_repo.replace_special_dates({})

        assert schedule_repo.read_special_dates() == {}

    def test_schedule_and_special_dates_are_independent(self, schedule_repo):
        schedule_repo.replace_schedule({"2024-12-25": ["9-4"]})
        schedule_repo.replace_special_dates({"2024-12-25": True})
        schedule_repo.replace_special_dates({})

        assert schedule_repo.read_schedule() == {"2024-12-25": ["9-4"]}
