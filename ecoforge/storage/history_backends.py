"""History Store backends: in-memory, JSON file, and SQLite.

Every backend keeps records in insertion order and returns them most
recent first from ``load()``.  ``put()`` is an upsert: re-putting an
existing run (feedback) keeps its original position.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError as PydanticValidationError

from ecoforge.core.errors import PersistenceFailure
from ecoforge.models.runs import RunRecord

logger = logging.getLogger(__name__)


@runtime_checkable
class HistoryBackend(Protocol):
    """Durable storage behind a ``HistoryStore``."""

    def load(self) -> list[RunRecord]:
        """Return all stored records, most recent first."""
        ...

    def put(self, record: RunRecord) -> None:
        """Insert a new record or replace an existing one in place."""
        ...

    def remove(self, run_id: str) -> None:
        """Delete a record (eviction)."""
        ...


class InMemoryHistoryBackend:
    """Non-durable backend; the default for tests and one-shot runs."""

    def __init__(self) -> None:
        self._records: dict[str, RunRecord] = {}

    def load(self) -> list[RunRecord]:
        return list(reversed(self._records.values()))

    def put(self, record: RunRecord) -> None:
        self._records[record.run_id] = record

    def remove(self, run_id: str) -> None:
        self._records.pop(run_id, None)


class JsonFileHistoryBackend:
    """Whole-file JSON backend, rewritten on every change.

    Parameters
    ----------
    path:
        JSON file holding a list of records, oldest first.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> list[RunRecord]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return [RunRecord.model_validate(item) for item in data]
        except (OSError, json.JSONDecodeError, PydanticValidationError) as exc:
            raise PersistenceFailure(f"Cannot read history file {self._path}: {exc}") from exc

    def _write(self, records: list[RunRecord]) -> None:
        payload = json.dumps([r.model_dump(mode="json") for r in records], indent=2)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            tmp.write_text(payload, encoding="utf-8")
            tmp.replace(self._path)
        except OSError as exc:
            raise PersistenceFailure(f"Cannot write history file {self._path}: {exc}") from exc

    def load(self) -> list[RunRecord]:
        return list(reversed(self._read()))

    def put(self, record: RunRecord) -> None:
        records = self._read()
        for i, existing in enumerate(records):
            if existing.run_id == record.run_id:
                records[i] = record
                break
        else:
            records.append(record)
        self._write(records)

    def remove(self, run_id: str) -> None:
        self._write([r for r in self._read() if r.run_id != run_id])


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------

_CREATE_HISTORY = """
CREATE TABLE IF NOT EXISTS run_history (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    run_id              TEXT NOT NULL UNIQUE,
    timestamp_utc       TEXT NOT NULL,
    prompt_text         TEXT NOT NULL,
    total_cost_estimate REAL NOT NULL DEFAULT 0,
    feedback_pending    INTEGER NOT NULL DEFAULT 1,
    record_hash         TEXT NOT NULL DEFAULT '',
    record_json         TEXT NOT NULL
);
"""

_CREATE_IDX_TIMESTAMP = """
CREATE INDEX IF NOT EXISTS idx_history_timestamp ON run_history(timestamp_utc);
"""


class SqliteHistoryBackend:
    """SQLite-backed history, one row per run.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    """

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        try:
            with self._connect() as conn:
                conn.execute(_CREATE_HISTORY)
                conn.execute(_CREATE_IDX_TIMESTAMP)
                conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"Cannot initialize history db {self._db_path}: {exc}") from exc

    def load(self) -> list[RunRecord]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT record_json FROM run_history ORDER BY id DESC"
                ).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"Cannot read history db {self._db_path}: {exc}") from exc
        try:
            return [RunRecord.model_validate_json(row[0]) for row in rows]
        except PydanticValidationError as exc:
            raise PersistenceFailure(
                f"Corrupt record in history db {self._db_path}: {exc}"
            ) from exc

    def put(self, record: RunRecord) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO run_history
                        (run_id, timestamp_utc, prompt_text, total_cost_estimate,
                         feedback_pending, record_hash, record_json)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(run_id) DO UPDATE SET
                        feedback_pending = excluded.feedback_pending,
                        record_json = excluded.record_json
                    """,
                    (
                        record.run_id,
                        record.timestamp.isoformat(),
                        record.prompt_text,
                        record.total_cost_estimate,
                        int(record.feedback_pending),
                        record.record_hash,
                        record.model_dump_json(),
                    ),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"Cannot write run {record.run_id}: {exc}") from exc
        logger.debug("SqliteHistoryBackend: stored %s", record.run_id)

    def remove(self, run_id: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM run_history WHERE run_id = ?", (run_id,))
                conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"Cannot delete run {run_id}: {exc}") from exc


def build_history_backend(kind: str, path: Path | str) -> HistoryBackend:
    """Construct the backend named by config ``history_backend``."""
    if kind == "memory":
        return InMemoryHistoryBackend()
    if kind == "json":
        return JsonFileHistoryBackend(path)
    if kind == "sqlite":
        return SqliteHistoryBackend(path)
    raise ValueError(f"Unknown history backend: {kind!r}")
