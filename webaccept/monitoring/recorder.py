"""
Relational run recorder.

Suite and case rows are inserted as pending when they start and updated with
their final status and timing when they end. Case errors reference the case
row id retained from the insert.
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from webaccept.config.settings import Settings
from webaccept.core.interfaces import RunRecorder
from webaccept.core.timer import Timer
from webaccept.core.types import RunStatus
from webaccept.error_handling.exceptions import RecorderUnavailableError
from webaccept.monitoring.logger import get_logger

SCHEMA = """
CREATE TABLE IF NOT EXISTS suites (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    build_number TEXT NOT NULL,
    suite_name TEXT NOT NULL,
    shop_version TEXT NOT NULL,
    branch TEXT NOT NULL,
    status INTEGER NOT NULL DEFAULT 0,
    begin TEXT NOT NULL,
    "end" TEXT,
    passed_time REAL NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS cases (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    suite_id INTEGER REFERENCES suites(id),
    name TEXT NOT NULL,
    status INTEGER NOT NULL DEFAULT 0,
    begin TEXT NOT NULL,
    "end" TEXT,
    passed_time REAL NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS case_errors (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    case_id INTEGER REFERENCES cases(id),
    error_message TEXT NOT NULL,
    screenshot_url TEXT NOT NULL,
    error_url TEXT NOT NULL,
    time TEXT NOT NULL
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class NullRunRecorder(RunRecorder):
    """Recorder used when no relational store is available."""

    def start_suite(self) -> Optional[int]:
        return None

    def end_suite(self, status: RunStatus) -> None:
        return None

    def start_case(self, name: str) -> Optional[int]:
        return None

    def end_case(self, status: RunStatus) -> None:
        return None

    def case_error(self, message: str, error_url: str, screenshot_url: str) -> None:
        return None

    def init_error(self) -> None:
        return None


class SqlRunRecorder(RunRecorder):
    """SQLite-backed run recorder."""

    def __init__(self, connection: sqlite3.Connection, settings: Settings) -> None:
        self.connection = connection
        self.settings = settings
        self.logger = get_logger("webaccept.recorder", suite=settings.suite_name)
        self.suite_timer = Timer()
        self.case_timer = Timer()
        self.last_suite_id: Optional[int] = None
        self.last_case_id: Optional[int] = None
        self.degraded = False
        self.connection.executescript(SCHEMA)
        self.connection.commit()

    @classmethod
    def connect(cls, path: Path, settings: Settings) -> "SqlRunRecorder":
        """
        Open the database file and create the schema.

        Raises:
            RecorderUnavailableError: If the store cannot be opened
        """
        try:
            path = Path(path)
            if str(path) != ":memory:":
                path.parent.mkdir(parents=True, exist_ok=True)
            return cls(sqlite3.connect(str(path)), settings)
        except (sqlite3.Error, OSError) as e:
            raise RecorderUnavailableError(
                f"Run database {path} is not available: {e}", cause=e
            ) from e

    def _execute(self, sql: str, params: tuple) -> Optional[int]:
        if self.degraded:
            return None
        try:
            cursor = self.connection.execute(sql, params)
            self.connection.commit()
        except sqlite3.Error as e:
            # A broken store must not stop the run; file evidence continues.
            self.degraded = True
            self.logger.warning(f"Run recording disabled after database error: {e}")
            return None
        return cursor.lastrowid

    def start_suite(self) -> Optional[int]:
        self.suite_timer.start()
        self.last_suite_id = self._execute(
            "INSERT INTO suites (build_number, suite_name, shop_version, branch, status, begin) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                str(self.settings.build_number),
                self.settings.suite_name,
                self.settings.shop_version,
                self.settings.branch,
                int(RunStatus.PENDING),
                _now(),
            ),
        )
        return self.last_suite_id

    def end_suite(self, status: RunStatus) -> None:
        if self.last_suite_id is None:
            return
        self._execute(
            'UPDATE suites SET status = ?, "end" = ?, passed_time = ? WHERE id = ?',
            (int(status), _now(), round(self.suite_timer.elapsed(), 3), self.last_suite_id),
        )

    def start_case(self, name: str) -> Optional[int]:
        self.case_timer.start()
        self.last_case_id = self._execute(
            "INSERT INTO cases (suite_id, name, status, begin) VALUES (?, ?, ?, ?)",
            (self.last_suite_id, name, int(RunStatus.PENDING), _now()),
        )
        return self.last_case_id

    def end_case(self, status: RunStatus) -> None:
        if self.last_case_id is None:
            return
        self._execute(
            'UPDATE cases SET status = ?, "end" = ?, passed_time = ? WHERE id = ?',
            (int(status), _now(), round(self.case_timer.elapsed(), 3), self.last_case_id),
        )

    def case_error(self, message: str, error_url: str, screenshot_url: str) -> None:
        self._execute(
            "INSERT INTO case_errors (case_id, error_message, screenshot_url, error_url, time) "
            "VALUES (?, ?, ?, ?, ?)",
            (self.last_case_id, message, screenshot_url, error_url, _now()),
        )

    def init_error(self) -> None:
        """Record a suite that failed before any case could run."""
        now = _now()
        self.last_suite_id = self._execute(
            "INSERT INTO suites "
            '(build_number, suite_name, shop_version, branch, status, begin, "end", passed_time) '
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                str(self.settings.build_number),
                self.settings.suite_name,
                self.settings.shop_version,
                self.settings.branch,
                int(RunStatus.FAILED),
                now,
                now,
                0,
            ),
        )

    def close(self) -> None:
        self.connection.close()


def create_run_recorder(settings: Settings) -> RunRecorder:
    """
    Build the recorder configured by the settings.

    Falls back to a NullRunRecorder when recording is disabled or the store
    is unreachable, so file evidence keeps working on its own.
    """
    logger = get_logger("webaccept.recorder")
    if settings.database_path is None:
        return NullRunRecorder()
    try:
        return SqlRunRecorder.connect(settings.database_path, settings)
    except RecorderUnavailableError as e:
        logger.warning(f"{e.message}, continuing without run recording")
        return NullRunRecorder()
