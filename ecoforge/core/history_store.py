"""Bounded, most-recent-first history of run records.

Design:
- ``record()`` prepends and evicts from the tail once ``capacity`` is
  exceeded.
- Records are frozen and sealed with ``record_hash``; feedback is the only
  change, applied by replacing the record with an updated copy.
- ``list()`` returns a copy, never the live list.
- Feedback submissions are serialized by a lock.
- Durability belongs to the backend; backend errors surface as
  ``PersistenceFailure`` after the in-memory state is updated.
"""

from __future__ import annotations

import logging
import threading

from ecoforge.core.errors import NotFoundError, PersistenceFailure, ValidationError
from ecoforge.core.hasher import compute_record_hash
from ecoforge.models.runs import RunRecord, UserFeedback
from ecoforge.storage.history_backends import HistoryBackend, InMemoryHistoryBackend

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_CAPACITY = 50


class HistoryIntegrityError(RuntimeError):
    """Raised when a stored record no longer matches its seal."""


def seal_record(record: RunRecord) -> RunRecord:
    """Return *record* with ``record_hash`` computed over its immutable fields."""
    return record.model_copy(
        update={"record_hash": compute_record_hash(record.model_dump(mode="json"))}
    )


class HistoryStore:
    """Versioned run history with bounded retention.

    Parameters
    ----------
    backend:
        Storage backend. Defaults to an in-memory backend.
    capacity:
        Maximum number of records kept; the oldest are evicted first.
    """

    def __init__(
        self,
        backend: HistoryBackend | None = None,
        capacity: int = DEFAULT_HISTORY_CAPACITY,
    ) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be at least 1")
        self._backend = backend or InMemoryHistoryBackend()
        self.capacity = capacity
        self._lock = threading.RLock()
        self._records: list[RunRecord] = []
        self._load()

    def _load(self) -> None:
        records = self._backend.load()
        for record in records:
            self._check_seal(record)
        self._records = records[: self.capacity]
        for stale in records[self.capacity:]:
            self._backend.remove(stale.run_id)
        if records:
            logger.info("Loaded %d run records from history", len(self._records))

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def record(self, run: RunRecord) -> RunRecord:
        """Seal and prepend *run*, evicting the oldest beyond capacity.

        Raises ``PersistenceFailure`` if the backend write fails; the
        in-memory history already holds the record at that point.
        """
        sealed = seal_record(run)
        with self._lock:
            if any(r.run_id == sealed.run_id for r in self._records):
                raise ValidationError(f"Run {sealed.run_id} is already recorded")
            self._records.insert(0, sealed)
            evicted = self._records[self.capacity:]
            del self._records[self.capacity:]

        for old in evicted:
            logger.info("Evicting run %s from history (capacity %d)", old.run_id, self.capacity)

        try:
            self._backend.put(sealed)
            for old in evicted:
                self._backend.remove(old.run_id)
        except PersistenceFailure:
            logger.error("History backend failed to persist run %s", sealed.run_id)
            raise
        except Exception as exc:
            logger.error("History backend failed to persist run %s: %s", sealed.run_id, exc)
            raise PersistenceFailure(f"Cannot persist run {sealed.run_id}: {exc}") from exc
        return sealed

    def submit_feedback(self, run_id: str, feedback: UserFeedback) -> bool:
        """Attach *feedback* to a run, replacing any previous feedback.

        Returns False if *run_id* is unknown.
        """
        if feedback.run_id != run_id:
            feedback = feedback.model_copy(update={"run_id": run_id})
        with self._lock:
            for i, existing in enumerate(self._records):
                if existing.run_id == run_id:
                    updated = existing.model_copy(
                        update={"feedback": feedback, "feedback_pending": False}
                    )
                    self._records[i] = updated
                    break
            else:
                logger.warning("Feedback for unknown run %s ignored", run_id)
                return False
            try:
                self._backend.put(updated)
            except PersistenceFailure:
                logger.error("History backend failed to persist feedback for %s", run_id)
                raise
        logger.info("Feedback recorded for run %s (rating %d)", run_id, feedback.rating)
        return True

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, run_id: str) -> RunRecord | None:
        """Return the record for *run_id*, or None."""
        with self._lock:
            for record in self._records:
                if record.run_id == run_id:
                    return record
        return None

    def require(self, run_id: str) -> RunRecord:
        """Like ``get`` but raises ``NotFoundError`` for unknown runs."""
        record = self.get(run_id)
        if record is None:
            raise NotFoundError(f"No run with id {run_id!r} in history")
        return record

    def list(self) -> list[RunRecord]:
        """Snapshot of all records, most recent first."""
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------------------------------------------------
    # Integrity
    # ------------------------------------------------------------------

    def verify(self, run_id: str) -> bool:
        """Recompute the seal of a stored record.

        Returns True if intact, raises ``HistoryIntegrityError`` otherwise.
        """
        self._check_seal(self.require(run_id))
        return True

    @staticmethod
    def _check_seal(record: RunRecord) -> None:
        expected = compute_record_hash(record.model_dump(mode="json"))
        if record.record_hash != expected:
            raise HistoryIntegrityError(
                f"Tampered run record {record.run_id}: "
                f"expected hash={expected!r}, got {record.record_hash!r}"
            )
