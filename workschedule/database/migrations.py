"""Versioned schema upgrades for the persistent store.

The schema version lives in SQLite's ``PRAGMA user_version``. Each upgrade
step brings the schema from ``version - 1`` to ``version`` and must be safe
to run against a database that already has some of its tables.
"""

import logging
from collections.abc import Callable

from sqlalchemy.engine import Connection

from workschedule.database.database import Base

logger = logging.getLogger(__name__)


def _create_collections(conn: Connection) -> None:
    """Version 1: schedule, special_dates, settings and metadata tables."""
    # checkfirst: existing tables and their rows are left alone
    Base.metadata.create_all(bind=conn, checkfirst=True)


#: Upgrade step per target schema version.
UPGRADE_STEPS: dict[int, Callable[[Connection], None]] = {
    1: _create_collections,
}


def get_schema_version(conn: Connection) -> int:
    return int(conn.exec_driver_sql("PRAGMA user_version").scalar() or 0)


def set_schema_version(conn: Connection, version: int) -> None:
    # PRAGMA does not accept bound parameters
    conn.exec_driver_sql(f"PRAGMA user_version = {int(version)}")


def upgrade(conn: Connection, current: int, target: int) -> list[int]:
    """
    Run every upgrade step after ``current`` up to and including ``target``.

    Args:
        conn: Connection inside an open transaction
        current: Version found in the database
        target: Version the code expects

    Returns:
        The versions that were applied, in order
    """
    applied = []
    for version in range(current + 1, target + 1):
        step = UPGRADE_STEPS.get(version)
        if step is None:
            raise RuntimeError(f"No upgrade step registered for schema version {version}")
        logger.info("Upgrading store schema to version %d", version)
        step(conn)
        applied.append(version)
    if applied:
        set_schema_version(conn, target)
    return applied
