# workschedule/core/transfer.py
"""
Export and import of the complete data set as one JSON document.

Import is best-effort and field-by-field: only the fields present in the
document are applied, every collection is attempted even when another one
fails, and the failures are returned together in an ImportReport.
"""

import json
import logging
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from workschedule.core.config import DEFAULT_SCHEDULE_TITLE, EXPORT_VERSION
from workschedule.core.logging_config import LogContext
from workschedule.core.models import ExportDocument, WorkSettings
from workschedule.database.repositories import (
    MetadataRepository,
    ScheduleRepository,
    SettingsRepository,
    migrate_settings,
)
from workschedule.database.store import StoreError

logger = logging.getLogger(__name__)

_SCHEDULE_ADAPTER = TypeAdapter(dict[str, list[str]])
_SPECIAL_DATES_ADAPTER = TypeAdapter(dict[str, bool])
_TITLE_ADAPTER = TypeAdapter(str)


class ImportFailed(Exception):
    """One or more collections could not be imported."""

    def __init__(self, message: str, errors: list["CollectionImportError"] | None = None):
        super().__init__(message)
        self.errors = errors or []


class CollectionImportError(BaseModel):
    collection: str
    message: str


class ImportReport(BaseModel):
    """Outcome of an import, per collection."""

    version: str | None = None
    applied: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    errors: list[CollectionImportError] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            failed = ", ".join(error.collection for error in self.errors)
            raise ImportFailed(f"Import failed for: {failed}", self.errors)


def parse_version(version: str | None) -> tuple[int, ...] | None:
    """ "3.0" -> (3, 0). None for missing or unparseable versions."""
    if not version:
        return None
    try:
        return tuple(int(part) for part in str(version).split("."))
    except ValueError:
        return None


def utc_timestamp() -> str:
    """Current time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class DataTransferManager:
    """Builds export documents from the repositories and applies imports to them."""

    def __init__(
        self,
        schedule_repository: ScheduleRepository,
        settings_repository: SettingsRepository,
        metadata_repository: MetadataRepository,
        clock: Callable[[], str] = utc_timestamp,
    ):
        self.schedule_repository = schedule_repository
        self.settings_repository = settings_repository
        self.metadata_repository = metadata_repository
        self.clock = clock

    def export_all(self) -> ExportDocument:
        """
        Snapshot of schedule, special dates, settings and title.

        Settings are backfilled the same way as on a normal read; missing
        settings export as the defaults.
        """
        schedule = self.schedule_repository.read_schedule()
        special_dates = self.schedule_repository.read_special_dates()
        settings = self.settings_repository.read_settings() or WorkSettings.defaults()
        title = self.metadata_repository.read_schedule_title()

        document = ExportDocument(
            schedule=schedule,
            special_dates=special_dates,
            settings=settings,
            schedule_title=title if title is not None else DEFAULT_SCHEDULE_TITLE,
            export_date=self.clock(),
            version=EXPORT_VERSION,
        )
        logger.info(
            "Export prepared: %d schedule entries, %d special dates, %d custom shifts",
            len(document.schedule),
            len(document.special_dates),
            len(document.settings.custom_shifts),
        )
        return document

    def import_all(self, document: ExportDocument | Mapping[str, Any]) -> ImportReport:
        """
        Apply the fields present in ``document``.

        Absent fields leave the stored state untouched. A failure in one
        collection is recorded and the remaining collections are still
        written.

        Raises:
            ImportFailed: If ``document`` is not an object at all
        """
        if isinstance(document, ExportDocument):
            data = document.to_record()
        elif isinstance(document, Mapping):
            data = dict(document)
        else:
            raise ImportFailed(f"Export document must be an object, got {type(document).__name__}")

        version = data.get("version")
        report = ImportReport(version=None if version is None else str(version))
        self._check_version(version)

        with LogContext(extra_fields={"operation": "import", "document_version": version}):
            self._apply(report, "schedule", data.get("schedule"), self._import_schedule)
            self._apply(report, "specialDates", data.get("specialDates"), self._import_special_dates)
            self._apply(report, "settings", data.get("settings"), self._import_settings)
            self._apply(report, "scheduleTitle", data.get("scheduleTitle"), self._import_title)

        if report.ok:
            logger.info("Import finished, applied: %s", ", ".join(report.applied) or "nothing")
        else:
            logger.error(
                "Import finished with %d failed collection(s): %s",
                len(report.errors),
                ", ".join(error.collection for error in report.errors),
            )
        return report

    @staticmethod
    def _check_version(version: str | None) -> None:
        parsed = parse_version(version)
        if parsed is None:
            logger.warning("Import document has no usable version (%r), importing field by field", version)
        elif parsed > parse_version(EXPORT_VERSION):
            logger.warning("Import document version %s is newer than %s, importing known fields", version, EXPORT_VERSION)

    def _apply(self, report: ImportReport, collection: str, value: Any, writer: Callable[[Any], None]) -> None:
        if value is None:
            report.skipped.append(collection)
            return
        try:
            writer(value)
        except (ValidationError, StoreError, TypeError) as e:
            logger.exception("Failed to import %s", collection)
            report.errors.append(CollectionImportError(collection=collection, message=str(e)))
        else:
            report.applied.append(collection)

    def _import_schedule(self, value: Any) -> None:
        schedule = _SCHEDULE_ADAPTER.validate_python(value)
        self.schedule_repository.replace_schedule(schedule)

    def _import_special_dates(self, value: Any) -> None:
        special_dates = _SPECIAL_DATES_ADAPTER.validate_python(value)
        self.schedule_repository.replace_special_dates(special_dates)

    def _import_settings(self, value: Any) -> None:
        if not isinstance(value, Mapping):
            raise TypeError(f"settings must be an object, got {type(value).__name__}")
        settings, changed = migrate_settings(value)
        if changed:
            logger.info("Backfilled imported settings")
        self.settings_repository.write_settings(settings)

    def _import_title(self, value: Any) -> None:
        self.metadata_repository.write_schedule_title(_TITLE_ADAPTER.validate_python(value))

    # === JSON ===

    @staticmethod
    def dumps(document: ExportDocument) -> str:
        return json.dumps(document.to_record(), indent=2, ensure_ascii=False)

    @staticmethod
    def loads(text: str) -> dict[str, Any]:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.exception("Invalid JSON in export document")
            raise ImportFailed(f"Invalid JSON in export document: {e}") from e
        if not isinstance(data, dict):
            raise ImportFailed("Export document must be a JSON object")
        return data

    def export_to_file(self, path: Path | str) -> ExportDocument:
        document = self.export_all()
        path = Path(path)
        path.write_text(self.dumps(document), encoding="utf-8")
        logger.info("Exported data to %s", path)
        return document

    def import_from_file(self, path: Path | str) -> ImportReport:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.exception("Failed to read export document %s", path)
            raise ImportFailed(f"Could not read export document {path}: {e}") from e
        return self.import_all(self.loads(text))
