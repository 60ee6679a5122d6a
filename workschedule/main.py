# workschedule/main.py
"""
Application entry point: wires the store, repositories and managers, and
exposes them as a small command line.
"""

import argparse
import datetime
import json
import sys
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from workschedule import __version__
from workschedule.core.availability import get_available_shifts
from workschedule.core.backup import BackupError, BackupManager
from workschedule.core.config import BACKUP_DIRNAME, DATA_DIR, DATABASE_FILENAME
from workschedule.core.logging_config import get_logger, setup_logging
from workschedule.core.payroll import summarize_month
from workschedule.core.sentry_config import init_sentry
from workschedule.core.time_utils import parse_date_key
from workschedule.core.transfer import DataTransferManager, ImportFailed
from workschedule.database.database import sqlite_url
from workschedule.database.repositories import MetadataRepository, ScheduleRepository, SettingsRepository
from workschedule.database.store import PersistentStore, StoreError, StoreUnavailable

logger = get_logger(__name__)


class Services(BaseModel):
    """Everything a caller needs to read and change the stored data."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    store: PersistentStore
    schedule: ScheduleRepository
    settings: SettingsRepository
    metadata: MetadataRepository
    transfer: DataTransferManager
    backups: BackupManager
    persistent: bool

    def close(self) -> None:
        self.store.close()


def open_store(data_dir: Path) -> tuple[PersistentStore, bool]:
    """
    Open the file store in ``data_dir``.

    Falls back to an in-memory store when the file store is unavailable.
    Changes made in that session are lost when the process ends.

    Returns:
        (store, persistent)
    """
    store = PersistentStore(sqlite_url(data_dir / DATABASE_FILENAME))
    try:
        store.initialize()
        return store, True
    except StoreUnavailable:
        logger.error(
            "Store in %s is unavailable, continuing with an in-memory session. Changes will not be saved.",
            data_dir,
        )

    store = PersistentStore.in_memory()
    store.initialize()
    return store, False


def create_services(data_dir: Path | str | None = None) -> Services:
    """Build the store, repositories and managers for one data directory."""
    data_dir = Path(data_dir) if data_dir is not None else DATA_DIR
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        # Opening the store below fails as well and selects the fallback
        logger.exception("Could not create data directory %s", data_dir)

    store, persistent = open_store(data_dir)
    schedule = ScheduleRepository(store)
    settings = SettingsRepository(store)
    metadata = MetadataRepository(store)
    transfer = DataTransferManager(schedule, settings, metadata)
    backups = BackupManager(transfer, schedule, data_dir / BACKUP_DIRNAME)

    return Services(
        store=store,
        schedule=schedule,
        settings=settings,
        metadata=metadata,
        transfer=transfer,
        backups=backups,
        persistent=persistent,
    )


# === Commands ===


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def cmd_export(services: Services, args: argparse.Namespace) -> int:
    document = services.transfer.export_to_file(args.path)
    print(f"Exported {len(document.schedule)} scheduled days to {args.path}")
    return 0


def cmd_import(services: Services, args: argparse.Namespace) -> int:
    report = services.transfer.import_from_file(args.path)
    for error in report.errors:
        print(f"{error.collection}: {error.message}", file=sys.stderr)
    print(f"Imported: {', '.join(report.applied) or 'nothing'}")
    return 0 if report.ok else 1


def cmd_backup(services: Services, args: argparse.Namespace) -> int:
    if args.check:
        created = services.backups.check_and_create_backup()
        print(f"Created {len(created)} backup(s)")
        return 0
    if args.list:
        for backup in services.backups.list_backups():
            print(f"{backup.filename}\t{backup.timestamp:%Y-%m-%d %H:%M}\t{backup.size} bytes")
        return 0

    if args.year is None and args.month is None:
        backup = services.backups.create_backup_now()
    else:
        today = datetime.date.today()
        backup = services.backups.create_monthly_backup(args.year or today.year, args.month or today.month)
    print(f"Backup written: {backup.filename}")
    return 0


def cmd_restore(services: Services, args: argparse.Namespace) -> int:
    if args.year is None or args.month is None:
        report = services.backups.restore_latest()
    else:
        report = services.backups.restore_from_backup(args.year, args.month)
    print(f"Restored: {', '.join(report.applied) or 'nothing'}")
    return 0 if report.ok else 1


def cmd_summary(services: Services, args: argparse.Namespace) -> int:
    summary = summarize_month(
        services.schedule.read_schedule(),
        services.settings.read_settings(),
        services.schedule.read_special_dates(),
        args.year,
        args.month,
    )
    _print_json(summary)
    return 0


def cmd_available(services: Services, args: argparse.Namespace) -> int:
    date = parse_date_key(args.date)
    if date is None:
        print(f"Not a date: {args.date!r} (expected YYYY-MM-DD)", file=sys.stderr)
        return 2

    shifts = get_available_shifts(date, services.settings.read_settings(), services.schedule.read_special_dates())
    for shift in shifts:
        print(f"{shift.id}\t{shift.label}\t{shift.hours:g}h")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="workschedule", description="Offline work shift calendar data")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory of the store and backups")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("export", help="Write all data to a JSON export document")
    p.add_argument("path", type=Path)
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("import", help="Apply a JSON export document")
    p.add_argument("path", type=Path)
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("backup", help="Create or list monthly backups")
    p.add_argument("--year", type=int)
    p.add_argument("--month", type=int, choices=range(1, 13))
    p.add_argument("--check", action="store_true", help="Back up the current and previous month if needed")
    p.add_argument("--list", action="store_true", help="List recorded backups, newest first")
    p.set_defaults(func=cmd_backup)

    p = sub.add_parser("restore", help="Restore a monthly backup (latest by default)")
    p.add_argument("year", type=int, nargs="?")
    p.add_argument("month", type=int, nargs="?", choices=range(1, 13))
    p.set_defaults(func=cmd_restore)

    p = sub.add_parser("summary", help="Earnings and hours for a month")
    p.add_argument("year", type=int)
    p.add_argument("month", type=int, choices=range(1, 13))
    p.set_defaults(func=cmd_summary)

    p = sub.add_parser("available", help="Shifts that can be assigned on a date")
    p.add_argument("date", help="YYYY-MM-DD")
    p.set_defaults(func=cmd_available)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging()
    init_sentry()

    services = create_services(args.data_dir)
    if not services.persistent:
        print("Warning: data store unavailable, nothing will be saved", file=sys.stderr)

    try:
        return args.func(services, args)
    except (StoreError, ImportFailed, BackupError) as e:
        logger.error("Command %s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        services.close()


if __name__ == "__main__":
    sys.exit(main())
