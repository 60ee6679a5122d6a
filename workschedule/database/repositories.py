# workschedule/database/repositories.py
"""
Repositories over the persistent store.

The store is the single source of truth. Callers keep their own copies of
the loaded state and must read again after a write; nothing is pushed to
them.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from workschedule.core.config import (
    DEFAULT_CURRENCY,
    SCHEDULE_TITLE_KEY,
    SETTINGS_KEY,
    SETTINGS_VERSION,
)
from workschedule.core.constants import DEFAULT_SHIFT_COMBINATIONS
from workschedule.core.models import WorkSettings
from workschedule.core.time_utils import to_date_key
from workschedule.core.types import DaySchedule, SpecialDates
from workschedule.database.database import Collection
from workschedule.database.store import PersistenceError, PersistentStore, TransactionMode

logger = logging.getLogger(__name__)


class ScheduleRepository:
    """Read and replace the ``schedule`` and ``specialDates`` collections."""

    def __init__(self, store: PersistentStore):
        self.store = store

    def read_schedule(self) -> DaySchedule:
        """
        Load the whole schedule as date key -> shift ids.

        Records with an empty id list are skipped, so an empty day and a
        missing day read the same.
        """
        records = self.store.get_all(Collection.SCHEDULE)
        schedule = {record["date"]: list(record["shifts"]) for record in records if record["shifts"]}
        logger.debug("Retrieved %d schedule entries", len(schedule))
        return schedule

    def replace_schedule(self, schedule: Mapping[Any, list[str]]) -> int:
        """
        Replace the stored schedule with ``schedule``.

        Clears the collection and inserts one record per date with at least
        one shift, all in one transaction.

        Returns:
            Number of dates written

        Raises:
            PersistenceError: If any step fails. The previous schedule is kept.
        """
        entries = [(to_date_key(date), list(shift_ids)) for date, shift_ids in schedule.items() if shift_ids]

        with self.store.transaction(Collection.SCHEDULE, TransactionMode.READWRITE) as tx:
            tx.clear()
            for date_key, shift_ids in entries:
                tx.add(date_key, shift_ids)

        logger.info("Saved %d schedule entries", len(entries))
        return len(entries)

    def read_special_dates(self) -> SpecialDates:
        """Load the special dates. Only ``True`` entries are returned."""
        records = self.store.get_all(Collection.SPECIAL_DATES)
        special_dates = {record["date"]: True for record in records if record["isSpecial"] is True}
        logger.debug("Retrieved %d special dates", len(special_dates))
        return special_dates

    def replace_special_dates(self, special_dates: Mapping[Any, bool]) -> int:
        """Replace the stored special dates, persisting only ``True`` entries."""
        entries = [to_date_key(date) for date, is_special in special_dates.items() if is_special is True]

        with self.store.transaction(Collection.SPECIAL_DATES, TransactionMode.READWRITE) as tx:
            tx.clear()
            for date_key in entries:
                tx.add(date_key, True)

        logger.info("Saved %d special dates", len(entries))
        return len(entries)


def migrate_settings(raw: Mapping[str, Any]) -> tuple[WorkSettings, bool]:
    """
    Bring a stored or imported settings record to the current shape.

    Backfill rules:
        - missing or empty ``shiftCombinations`` -> built-in defaults
        - missing ``currency`` -> DEFAULT_CURRENCY
        - missing ``customShifts`` -> empty list
        - ``settingsVersion`` stamped with SETTINGS_VERSION

    Args:
        raw: Settings as stored (camelCase keys)

    Returns:
        Validated settings and whether anything had to be changed

    Raises:
        ValidationError: If the record cannot be read as settings
    """
    data = dict(raw)
    changed = False

    if not data.get("shiftCombinations"):
        data["shiftCombinations"] = [dict(item) for item in DEFAULT_SHIFT_COMBINATIONS]
        changed = True
    if not data.get("currency"):
        data["currency"] = DEFAULT_CURRENCY
        changed = True
    if data.get("customShifts") is None:
        data["customShifts"] = []
        changed = True
    if data.get("settingsVersion") != SETTINGS_VERSION:
        data["settingsVersion"] = SETTINGS_VERSION
        changed = True

    return WorkSettings.model_validate(data), changed


class SettingsRepository:
    """Read and write the single settings record."""

    def __init__(self, store: PersistentStore, key: str = SETTINGS_KEY):
        self.store = store
        self.key = key

    def read_settings(self) -> WorkSettings | None:
        """
        Load the settings record, repairing legacy records on the way.

        A record that needed backfilling is written back immediately so the
        next read finds it complete.

        Returns:
            The settings, or None if none have been stored yet

        Raises:
            PersistenceError: If reading fails or the record is unreadable. A
                failed write-back of a repaired record is only logged.
        """
        raw = self.store.get(Collection.SETTINGS, self.key)
        if raw is None:
            logger.debug("No stored settings under %r", self.key)
            return None
        if not isinstance(raw, dict):
            logger.error("Stored settings under %r are not a record: %r", self.key, type(raw).__name__)
            raise PersistenceError(f"Stored settings under {self.key!r} are not a record")

        try:
            settings, changed = migrate_settings(raw)
        except ValidationError as e:
            logger.exception("Failed to parse stored settings %r", self.key)
            raise PersistenceError(f"Could not parse stored settings {self.key!r}: {e}") from e

        if changed:
            logger.info("Migrating stored settings %r to version %d", self.key, SETTINGS_VERSION)
            try:
                self.write_settings(settings)
            except PersistenceError:
                # The repaired record is still returned; the next read retries
                logger.exception("Failed to write back migrated settings %r", self.key)
        return settings

    def write_settings(self, settings: WorkSettings) -> None:
        """Store the complete settings record. No merging with what is stored."""
        self.store.put(Collection.SETTINGS, self.key, settings.to_record())
        logger.debug("Saved settings %r", self.key)

    def ensure_settings(self) -> WorkSettings:
        """Stored settings, or the defaults after storing them."""
        settings = self.read_settings()
        if settings is None:
            settings = WorkSettings.defaults()
            logger.info("No stored settings, saving defaults")
            self.write_settings(settings)
        return settings


class MetadataRepository:
    """Small named values such as the schedule title."""

    def __init__(self, store: PersistentStore):
        self.store = store

    def read(self, key: str) -> Any | None:
        return self.store.get(Collection.METADATA, key)

    def write(self, key: str, value: Any) -> None:
        self.store.put(Collection.METADATA, key, value)
        logger.debug("Saved metadata %r", key)

    def read_schedule_title(self) -> str | None:
        return self.read(SCHEDULE_TITLE_KEY)

    def write_schedule_title(self, title: str) -> None:
        self.write(SCHEDULE_TITLE_KEY, title)
