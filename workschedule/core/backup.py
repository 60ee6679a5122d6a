# workschedule/core/backup.py
"""
Monthly backups of the complete data set.

One export document per calendar month is written to the backup directory
as ``work-schedule-<Month>-<year>.json``. A JSON index next to the files
records which months are covered; only the newest ``max_backups_to_keep``
months are retained.
"""

import datetime
import json
import logging
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from workschedule.core.config import BACKUP_INDEX_FILENAME, MAX_BACKUPS
from workschedule.core.constants import MONTH_NAMES
from workschedule.core.logging_config import LogContext
from workschedule.core.models import BackupMetadata, MonthlyBackup
from workschedule.core.time_utils import parse_date_key, previous_month
from workschedule.core.transfer import DataTransferManager, ImportFailed, ImportReport
from workschedule.core.types import BackupStatus
from workschedule.database.repositories import ScheduleRepository

logger = logging.getLogger(__name__)


class BackupError(Exception):
    """A backup file or the backup index could not be read or written."""

    pass


class BackupNotFound(BackupError):
    """No backup exists for the requested month."""

    pass


def backup_filename(year: int, month: int) -> str:
    """File name of the backup for a month (1-12), e.g. work-schedule-May-2024.json."""
    return f"work-schedule-{MONTH_NAMES[month - 1]}-{year}.json"


def _sort_newest_first(backups: list[MonthlyBackup]) -> list[MonthlyBackup]:
    return sorted(backups, key=lambda backup: (backup.year, backup.month), reverse=True)


class BackupManager:
    """Creates, lists and restores monthly backups in one directory."""

    def __init__(
        self,
        transfer: DataTransferManager,
        schedule_repository: ScheduleRepository,
        backup_dir: Path | str,
        clock: Callable[[], datetime.datetime] = datetime.datetime.now,
    ):
        self.transfer = transfer
        self.schedule_repository = schedule_repository
        self.backup_dir = Path(backup_dir)
        self.clock = clock

    @property
    def index_path(self) -> Path:
        return self.backup_dir / BACKUP_INDEX_FILENAME

    # === Index ===

    def load_index(self) -> BackupMetadata:
        """
        Read the backup index. A missing index is an empty one.

        Raises:
            BackupError: If the index exists but cannot be read
        """
        if not self.index_path.exists():
            return BackupMetadata()
        try:
            return BackupMetadata.model_validate_json(self.index_path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.exception("Failed to read backup index %s", self.index_path)
            raise BackupError(f"Could not read backup index {self.index_path}: {e}") from e

    def save_index(self, metadata: BackupMetadata) -> None:
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            self.index_path.write_text(
                json.dumps(metadata.to_record(), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as e:
            logger.exception("Failed to write backup index %s", self.index_path)
            raise BackupError(f"Could not write backup index {self.index_path}: {e}") from e

    def list_backups(self) -> list[MonthlyBackup]:
        """Recorded backups, newest month first."""
        return _sort_newest_first(self.load_index().monthly_backups)

    def find_backup(self, year: int, month: int) -> MonthlyBackup | None:
        return next(
            (backup for backup in self.load_index().monthly_backups if backup.year == year and backup.month == month),
            None,
        )

    def set_auto_backup(self, enabled: bool) -> None:
        metadata = self.load_index()
        metadata.auto_backup_enabled = enabled
        self.save_index(metadata)
        logger.info("Automatic monthly backups %s", "enabled" if enabled else "disabled")

    # === Create ===

    def create_monthly_backup(self, year: int, month: int) -> MonthlyBackup:
        """
        Write the current data as the backup of ``month`` (1-12).

        An existing backup of the same month is replaced. Months beyond the
        retention limit are dropped from the index and their files deleted.

        Returns:
            The index entry of the new backup

        Raises:
            BackupError: If the file or the index cannot be written
        """
        filename = backup_filename(year, month)
        path = self.backup_dir / filename

        with LogContext(backup_file=filename):
            text = self.transfer.dumps(self.transfer.export_all())
            try:
                self.backup_dir.mkdir(parents=True, exist_ok=True)
                path.write_text(text, encoding="utf-8")
            except OSError as e:
                logger.exception("Failed to write backup %s", path)
                raise BackupError(f"Could not write backup {path}: {e}") from e

            backup = MonthlyBackup(
                year=year,
                month=month,
                filename=filename,
                timestamp=self.clock(),
                size=len(text.encode("utf-8")),
            )

            metadata = self.load_index()
            others = [b for b in metadata.monthly_backups if not (b.year == year and b.month == month)]
            ordered = _sort_newest_first([*others, backup])
            keep = metadata.max_backups_to_keep or MAX_BACKUPS
            metadata.monthly_backups = ordered[:keep]
            self.save_index(metadata)

            for dropped in ordered[keep:]:
                self._delete_backup_file(dropped)

            logger.info("Monthly backup created: %s (%d bytes)", filename, backup.size)
        return backup

    def _delete_backup_file(self, backup: MonthlyBackup) -> None:
        path = self.backup_dir / backup.filename
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.exception("Failed to delete old backup %s", path)
            raise BackupError(f"Could not delete old backup {path}: {e}") from e
        logger.info("Removed old backup %s", backup.filename)

    def create_backup_now(self, today: datetime.date | None = None) -> MonthlyBackup:
        """Back up the month containing ``today`` (the clock's date by default)."""
        today = today or self.clock().date()
        return self.create_monthly_backup(today.year, today.month)

    def has_schedule_data_for_month(self, year: int, month: int) -> bool:
        for date_key in self.schedule_repository.read_schedule():
            date = parse_date_key(date_key)
            if date is not None and date.year == year and date.month == month:
                return True
        return False

    def check_and_create_backup(self, today: datetime.date | None = None) -> list[MonthlyBackup]:
        """
        Back up the current and the previous month if needed.

        A month needs a backup when the schedule has entries in it and the
        index has none for it yet. Does nothing while automatic backups are
        disabled.

        Returns:
            Backups created by this check
        """
        today = today or self.clock().date()
        metadata = self.load_index()
        if not metadata.auto_backup_enabled:
            logger.debug("Automatic backups disabled, skipping check")
            return []

        created = []
        for year, month in ((today.year, today.month), previous_month(today.year, today.month)):
            if self.find_backup(year, month) is not None:
                continue
            if self.has_schedule_data_for_month(year, month):
                created.append(self.create_monthly_backup(year, month))

        metadata = self.load_index()
        metadata.last_backup_check = self.clock()
        self.save_index(metadata)
        return created

    # === Restore ===

    def restore_from_backup(self, year: int, month: int) -> ImportReport:
        """
        Import the backup of ``month`` (1-12) into the store.

        Raises:
            BackupNotFound: If the index has no such backup or its file is gone
            ImportFailed: If the file is not a valid export document
        """
        backup = self.find_backup(year, month)
        if backup is None:
            raise BackupNotFound(f"No backup for {MONTH_NAMES[month - 1]} {year}")

        path = self.backup_dir / backup.filename
        if not path.exists():
            logger.error("Backup file %s is listed in the index but missing", path)
            raise BackupNotFound(f"Backup file {path} is missing")

        with LogContext(backup_file=backup.filename):
            try:
                report = self.transfer.import_from_file(path)
            except ImportFailed:
                logger.exception("Failed to restore backup %s", backup.filename)
                raise
            logger.info("Restored backup %s", backup.filename)
        return report

    def restore_latest(self) -> ImportReport:
        backups = self.list_backups()
        if not backups:
            raise BackupNotFound("No backups available")
        return self.restore_from_backup(backups[0].year, backups[0].month)

    # === Status ===

    def detect_fresh_start(self) -> bool:
        """
        True when the store is empty but backups exist.

        This is the situation after the store was wiped; the caller may
        offer a restore.
        """
        has_schedule_data = bool(self.schedule_repository.read_schedule())
        has_backup_history = bool(self.load_index().monthly_backups)
        fresh_start = not has_schedule_data and has_backup_history
        logger.debug(
            "Fresh start detection: schedule_data=%s backup_history=%s fresh_start=%s",
            has_schedule_data,
            has_backup_history,
            fresh_start,
        )
        return fresh_start

    def backup_status(self, today: datetime.date | None = None) -> BackupStatus:
        today = today or self.clock().date()
        metadata = self.load_index()
        backups = _sort_newest_first(metadata.monthly_backups)
        return {
            "enabled": metadata.auto_backup_enabled,
            "backup_count": len(backups),
            "latest_backup": backups[0].to_record() if backups else None,
            "current_month_due": not any(b.year == today.year and b.month == today.month for b in backups),
        }
