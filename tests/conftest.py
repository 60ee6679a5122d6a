"""
Pytest configuration and shared fixtures for testing.

Provides reusable test fixtures:
- store: In-memory persistent store, fresh per test
- schedule_repo / settings_repo / metadata_repo: Repositories over that store
- sample_settings: Settings with a representative set of custom shifts
- transfer: Export/import manager with a fixed clock
- backups: Backup manager writing to a temporary directory
"""

import datetime
import sys
from pathlib import Path

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# ruff: noqa: E402
from workschedule.core.backup import BackupManager
from workschedule.core.models import ApplicableDays, CustomShift, WorkSettings, default_shift_combinations
from workschedule.core.transfer import DataTransferManager
from workschedule.database.repositories import MetadataRepository, ScheduleRepository, SettingsRepository
from workschedule.database.store import PersistentStore

FIXED_EXPORT_DATE = "2024-05-20T08:30:00.000Z"
FIXED_NOW = datetime.datetime(2024, 5, 20, 8, 30)


@pytest.fixture(scope="function")
def store():
    """
    Create an in-memory store for testing.

    Each test gets its own database with all four collections created.

    Yields:
        PersistentStore: Initialized, non-persistent store
    """
    store = PersistentStore.in_memory()
    store.initialize()
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def schedule_repo(store):
    return ScheduleRepository(store)


@pytest.fixture
def settings_repo(store):
    return SettingsRepository(store)


@pytest.fixture
def metadata_repo(store):
    return MetadataRepository(store)


@pytest.fixture
def sample_settings():
    """
    Settings with five custom shifts.

    - day: weekdays only, 8h, no pay split
    - 12-10: Saturday only, 8h normal + 1.5h overtime
    - 9-4: Sunday and special days, 6.5h
    - night: no day rules (legacy shift, always available), 11h
    - off: disabled
    """
    return WorkSettings(
        basic_salary=35000,
        hourly_rate=100,
        overtime_multiplier=1.5,
        currency="Rs",
        shift_combinations=default_shift_combinations(),
        custom_shifts=[
            CustomShift(
                id="day",
                label="Day",
                from_time="08:00",
                to_time="16:00",
                hours=8,
                applicable_days=ApplicableDays(monday=True, tuesday=True, wednesday=True, thursday=True, friday=True),
            ),
            CustomShift(
                id="12-10",
                label="Saturday",
                from_time="12:00",
                to_time="22:00",
                hours=9.5,
                normal_hours=8,
                overtime_hours=1.5,
                applicable_days=ApplicableDays(saturday=True),
            ),
            CustomShift(
                id="9-4",
                label="Sunday / special",
                from_time="09:00",
                to_time="16:00",
                hours=6.5,
                applicable_days=ApplicableDays(sunday=True, special_day=True),
            ),
            CustomShift(id="night", label="Night", from_time="20:00", to_time="07:00", hours=11),
            CustomShift(
                id="off",
                label="Disabled",
                hours=4,
                enabled=False,
                applicable_days=ApplicableDays.every_day(),
            ),
        ],
    )


@pytest.fixture
def transfer(schedule_repo, settings_repo, metadata_repo):
    return DataTransferManager(schedule_repo, settings_repo, metadata_repo, clock=lambda: FIXED_EXPORT_DATE)


@pytest.fixture
def backups(transfer, schedule_repo, tmp_path):
    return BackupManager(transfer, schedule_repo, tmp_path / "backups", clock=lambda: FIXED_NOW)
