# workschedule/database/database.py
"""
SQLAlchemy setup and the record tables backing the four store collections.
"""

import enum
from pathlib import Path
from typing import Any

from sqlalchemy import JSON, Boolean, Column, String, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from workschedule.core.config import DATA_DIR, DATABASE_FILENAME

DATABASE_URL = f"sqlite:///{(DATA_DIR / DATABASE_FILENAME).as_posix()}"

Base = declarative_base()


class Collection(str, enum.Enum):
    """Named collections of the persistent store."""

    SCHEDULE = "schedule"
    SPECIAL_DATES = "specialDates"
    SETTINGS = "settings"
    METADATA = "metadata"


class ScheduleEntry(Base):
    """Shift ids assigned to one date."""

    __tablename__ = "schedule"
    key_field = "date"
    value_field = "shifts"

    date = Column(String(10), primary_key=True)
    shifts = Column(JSON, nullable=False, default=list)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ScheduleEntry":
        return cls(date=record["date"], shifts=list(record.get("shifts") or []))

    def to_record(self) -> dict[str, Any]:
        return {"date": self.date, "shifts": list(self.shifts or [])}

    def __repr__(self):
        return f"<ScheduleEntry(date={self.date}, shifts={self.shifts})>"


class SpecialDateEntry(Base):
    """A date flagged as special."""

    __tablename__ = "special_dates"
    key_field = "date"
    value_field = "isSpecial"

    date = Column(String(10), primary_key=True)
    is_special = Column(Boolean, nullable=False, default=True)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "SpecialDateEntry":
        return cls(date=record["date"], is_special=bool(record.get("isSpecial")))

    def to_record(self) -> dict[str, Any]:
        return {"date": self.date, "isSpecial": bool(self.is_special)}

    def __repr__(self):
        return f"<SpecialDateEntry(date={self.date}, is_special={self.is_special})>"


class KeyValueMixin:
    """Shared shape of the settings and metadata collections."""

    key_field = "key"
    value_field = "value"

    key = Column(String(100), primary_key=True)
    value = Column(JSON)

    @classmethod
    def from_record(cls, record: dict[str, Any]):
        return cls(key=record["key"], value=record.get("value"))

    def to_record(self) -> dict[str, Any]:
        return {"key": self.key, "value": self.value}


class SettingEntry(KeyValueMixin, Base):
    __tablename__ = "settings"


class MetadataEntry(KeyValueMixin, Base):
    __tablename__ = "metadata"


#: Record table per collection.
COLLECTION_MODELS: dict[Collection, type] = {
    Collection.SCHEDULE: ScheduleEntry,
    Collection.SPECIAL_DATES: SpecialDateEntry,
    Collection.SETTINGS: SettingEntry,
    Collection.METADATA: MetadataEntry,
}


def sqlite_url(path: Path | str) -> str:
    """SQLAlchemy URL for a SQLite file."""
    return f"sqlite:///{Path(path).as_posix()}"


def create_store_engine(database_url: str = DATABASE_URL) -> Engine:
    """Create the engine for a store. In-memory URLs share one connection."""
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, connect_args={"check_same_thread": False})
