from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from workschedule.core.config import (
    DEFAULT_BASIC_SALARY,
    DEFAULT_CURRENCY,
    DEFAULT_HOURLY_RATE,
    DEFAULT_OVERTIME_MULTIPLIER,
    EXPORT_VERSION,
    MAX_BACKUPS,
    SETTINGS_VERSION,
)
from workschedule.core.constants import DEFAULT_SHIFT_COMBINATIONS, SPECIAL_DAY_KEY


class CamelModel(BaseModel):
    """Base for records stored and exported with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict[str, Any]:
        """JSON-ready dict using the stored field names, without unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ApplicableDays(CamelModel):
    """Days on which a shift definition may be assigned."""

    monday: bool = False
    tuesday: bool = False
    wednesday: bool = False
    thursday: bool = False
    friday: bool = False
    saturday: bool = False
    sunday: bool = False
    special_day: bool = False

    @classmethod
    def every_day(cls) -> "ApplicableDays":
        """Rule for shifts created before day restrictions existed."""
        return cls(
            monday=True,
            tuesday=True,
            wednesday=True,
            thursday=True,
            friday=True,
            saturday=True,
            sunday=True,
            special_day=True,
        )

    def allows(self, day: str) -> bool:
        """Look up a weekday name ("monday".."sunday") or "specialDay"."""
        if day == SPECIAL_DAY_KEY:
            return self.special_day
        return bool(getattr(self, day, False))


class CustomShift(CamelModel):
    """User defined shift with hours, pay split and day eligibility."""

    model_config = ConfigDict(extra="allow")

    id: str
    label: str = ""
    from_time: str | None = None
    to_time: str | None = None
    hours: float = 0
    normal_hours: float | None = None
    overtime_hours: float | None = None
    normal_allowance_hours: float | None = None
    overtime_allowance_hours: float | None = None
    enabled: bool = True
    applicable_days: ApplicableDays | None = None

    @property
    def has_hour_split(self) -> bool:
        """True when normal/overtime hours decide the pay instead of total hours."""
        return (self.normal_hours or 0) > 0 or (self.overtime_hours or 0) > 0

    def effective_applicable_days(self) -> ApplicableDays:
        return self.applicable_days if self.applicable_days is not None else ApplicableDays.every_day()


class ShiftCombination(CamelModel):
    """Deprecated shift combination, kept for backward read compatibility."""

    model_config = ConfigDict(extra="allow")

    id: str
    combination: str = ""
    hours: float = 0
    enabled: bool = True
    is_custom: bool | None = None


def default_shift_combinations() -> list[ShiftCombination]:
    return [ShiftCombination(**item) for item in DEFAULT_SHIFT_COMBINATIONS]


class WorkSettings(CamelModel):
    """Pay settings and shift definitions, stored as a single record."""

    model_config = ConfigDict(extra="allow")

    settings_version: int = SETTINGS_VERSION
    basic_salary: float = DEFAULT_BASIC_SALARY
    hourly_rate: float = DEFAULT_HOURLY_RATE
    overtime_multiplier: float | None = None
    currency: str = DEFAULT_CURRENCY
    shift_combinations: list[ShiftCombination] = Field(default_factory=list)
    custom_shifts: list[CustomShift] = Field(default_factory=list)

    @classmethod
    def defaults(cls) -> "WorkSettings":
        """Settings for a fresh installation."""
        return cls(shift_combinations=default_shift_combinations())

    @property
    def effective_overtime_multiplier(self) -> float:
        # Unset and 0 both fall back to the default
        return self.overtime_multiplier or DEFAULT_OVERTIME_MULTIPLIER

    def find_shift(self, shift_id: str) -> CustomShift | None:
        return next((shift for shift in self.custom_shifts if shift.id == shift_id), None)


class ExportDocument(CamelModel):
    """Snapshot of all user data, the unit of backup and restore."""

    model_config = ConfigDict(extra="allow")

    schedule: dict[str, list[str]] = Field(default_factory=dict)
    special_dates: dict[str, bool] = Field(default_factory=dict)
    settings: WorkSettings = Field(default_factory=WorkSettings.defaults)
    schedule_title: str
    export_date: str
    version: str = EXPORT_VERSION


class MonthlyBackup(CamelModel):
    """One backup file in the backup index. Month is 1-12."""

    year: int
    month: int
    filename: str
    timestamp: datetime
    size: int


class BackupMetadata(CamelModel):
    """Backup index stored next to the backup files."""

    last_backup_check: datetime | None = None
    monthly_backups: list[MonthlyBackup] = Field(default_factory=list)
    auto_backup_enabled: bool = True
    max_backups_to_keep: int = MAX_BACKUPS
