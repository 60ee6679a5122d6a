# workschedule/core/config.py

import os
from pathlib import Path
from typing import Final


# ==========================
# Environment and paths
# ==========================

#: Production mode switches logging to JSON files and enables Sentry.
IS_PRODUCTION: Final[bool] = os.getenv("PRODUCTION", "false").lower() == "true"

#: Directory holding the SQLite store and the monthly backups.
DATA_DIR: Final[Path] = Path(os.getenv("WORKSCHEDULE_DATA_DIR", "data"))

#: Directory for rotating log files.
LOG_DIR: Final[Path] = Path(os.getenv("WORKSCHEDULE_LOG_DIR", "logs"))

#: File name of the store inside DATA_DIR.
DATABASE_FILENAME: Final[str] = "workschedule.db"

#: Sub-directory of DATA_DIR where monthly backups are written.
BACKUP_DIRNAME: Final[str] = "backups"


# ==========================
# Store schema
# ==========================

#: Current store schema version. Bump together with a new upgrade step in
#: workschedule.database.migrations.
SCHEMA_VERSION: Final[int] = 1

#: Current shape version of the settings record.
SETTINGS_VERSION: Final[int] = 2

#: Key of the settings record in the "settings" collection.
SETTINGS_KEY: Final[str] = "workSettings"

#: Key of the schedule title in the "metadata" collection.
SCHEDULE_TITLE_KEY: Final[str] = "scheduleTitle"


# ==========================
# Export and backup
# ==========================

#: Format version stamped on every export document.
EXPORT_VERSION: Final[str] = "3.0"

#: Title used when no title has been stored yet.
DEFAULT_SCHEDULE_TITLE: Final[str] = "Work Schedule"

#: Number of monthly backups kept on disk, newest first.
MAX_BACKUPS: Final[int] = 6

#: Name of the JSON index describing the monthly backups.
BACKUP_INDEX_FILENAME: Final[str] = "backup_index.json"


# ==========================
# Pay
# ==========================

#: Default basic (monthly) salary for a fresh installation.
DEFAULT_BASIC_SALARY: Final[float] = 35000

#: Hourly rate derived from the default salary: salary * 12 / 52 / 40.
DEFAULT_HOURLY_RATE: Final[float] = (DEFAULT_BASIC_SALARY * 12) / 52 / 40

#: Overtime multiplier used when the settings do not define one.
DEFAULT_OVERTIME_MULTIPLIER: Final[float] = 1.5

#: Currency code used when the settings do not define one.
DEFAULT_CURRENCY: Final[str] = "Rs"


# ==========================
# Shifts
# ==========================

#: Maximum number of shifts on one day. Enforced by the editing helpers only,
#: the store accepts any number.
MAX_SHIFTS_PER_DAY: Final[int] = 3
