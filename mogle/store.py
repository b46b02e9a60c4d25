# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Mogle Entry Store — durable storage for emotions and goals with recovery.

Storage:
  PRIMARY:  ~/.mogle/mogle.db (SQLite, WAL mode), one table per collection
  BACKUP:   ~/.mogle/mogle-backup/<collection>_backup (+ _backup_timestamp)
  FALLBACK: ~/.mogle/mogle-fallback/<collection> (+ <collection>_fallback)

Contract:
  save(collection, records)  replace-all on PRIMARY, then mirror to BACKUP.
                             Empty records is a no-op (never wipes data).
                             PRIMARY failure -> records go to FALLBACK.
  load(collection)           PRIMARY, else BACKUP, else FALLBACK.
                             Zero rows on a reachable PRIMARY also falls back.

Neither save nor load raises. Both report what happened through a typed
outcome (SaveOutcome / LoadOutcome) and the event bus, so callers can show
an optional notice without string matching.

Design decisions:
  - Replace-all over diffing: the store always mirrors in-memory state,
    O(n) per save is fine for one person's log.
  - Payload column holds the full JSON record; indexed columns (date,
    status, created_at) exist for queries, not as the source of truth.
  - Backup tiers are plain JSON text files written atomically.
"""

import json
import logging
import sqlite3
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from mogle.events import bus, Events
from mogle.paths import MoglePaths, get_paths
from mogle.schemas import (
    EmotionEntry, Goal, MogleModel, atomic_write_json, atomic_write_text,
    parse_iso, records_of,
)
from mogle.workers import MAX_QUEUE_DEPTH, WorkerPool, WorkerPoolBusy

logger = logging.getLogger("mogle.store")


# ============================================================================
# Collections & outcomes
# ============================================================================

class Collection(str, Enum):
    EMOTIONS = "emotions"
    GOALS = "goals"


SCHEMAS = {
    Collection.EMOTIONS: EmotionEntry,
    Collection.GOALS: Goal,
}

# Wire names of the date fields that get repaired on load
DATE_FIELDS = {
    Collection.EMOTIONS: ("date",),
    Collection.GOALS: ("targetDate", "createdAt"),
}


class StoreTier(str, Enum):
    PRIMARY = "primary"
    BACKUP = "backup"
    FALLBACK = "fallback"
    NONE = "none"


class SaveStatus(str, Enum):
    SKIPPED_EMPTY = "skipped_empty"
    SAVED = "saved"
    SAVED_WITHOUT_BACKUP = "saved_without_backup"
    FALLBACK = "fallback"
    FAILED = "failed"


@dataclass
class SaveOutcome:
    collection: Collection
    status: SaveStatus
    count: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def persisted(self) -> bool:
        """True when the records landed in some durable tier."""
        return self.status in (
            SaveStatus.SAVED, SaveStatus.SAVED_WITHOUT_BACKUP, SaveStatus.FALLBACK,
        )


@dataclass
class LoadOutcome:
    collection: Collection
    records: List[MogleModel]
    source: StoreTier
    primary_error: Optional[str] = None
    repaired: int = 0
    dropped: int = 0


# ============================================================================
# PRIMARY tier: SQLite
# ============================================================================

_SCHEMA = """
CREATE TABLE IF NOT EXISTS emotions (
    id TEXT PRIMARY KEY,
    date TEXT,
    payload TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_emotions_date ON emotions(date);

CREATE TABLE IF NOT EXISTS goals (
    id TEXT PRIMARY KEY,
    status TEXT,
    created_at TEXT,
    payload TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_goals_status ON goals(status);
CREATE INDEX IF NOT EXISTS idx_goals_created_at ON goals(created_at);
"""


class SQLiteTier:
    """
    Keyed record tables in one SQLite file.

    Lazy connection, WAL mode, row_factory. The connection is shared with
    the async facade's worker thread, guarded by a lock.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def _db(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.executescript(_SCHEMA)
        self._conn = conn
        return conn

    def close(self):
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def replace_all(self, collection: Collection, records: List[Dict[str, Any]]) -> None:
        """Clear the table, then upsert every record, in one transaction."""
        with self._lock:
            db = self._db()
            with db:
                db.execute(f"DELETE FROM {collection.value}")
                if collection is Collection.EMOTIONS:
                    db.executemany(
                        "INSERT OR REPLACE INTO emotions (id, date, payload) VALUES (?, ?, ?)",
                        [(r["id"], r.get("date"), json.dumps(r, ensure_ascii=False))
                         for r in records],
                    )
                else:
                    db.executemany(
                        """INSERT OR REPLACE INTO goals (id, status, created_at, payload)
                           VALUES (?, ?, ?, ?)""",
                        [(r["id"], r.get("status"), r.get("createdAt"),
                          json.dumps(r, ensure_ascii=False))
                         for r in records],
                    )

    def read_all(self, collection: Collection) -> List[Dict[str, Any]]:
        with self._lock:
            rows = self._db().execute(
                f"SELECT payload FROM {collection.value} ORDER BY rowid"
            ).fetchall()
        return [json.loads(row["payload"]) for row in rows]

    def clear(self, collection: Collection) -> None:
        with self._lock:
            db = self._db()
            with db:
                db.execute(f"DELETE FROM {collection.value}")


# ============================================================================
# BACKUP / FALLBACK tiers: key/value text files
# ============================================================================

class KeyValueTier:
    """String values under fixed keys, one file per key."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / key

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        atomic_write_text(self._path(key), value)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


# ============================================================================
# EntryStore
# ============================================================================

Record = Union[MogleModel, Dict[str, Any]]


class EntryStore:
    """Two collections over three tiers. Never raises past save/load."""

    def __init__(
        self,
        primary: Optional[SQLiteTier] = None,
        backup: Optional[KeyValueTier] = None,
        fallback: Optional[KeyValueTier] = None,
        paths: Optional[MoglePaths] = None,
    ):
        p = paths or get_paths()
        self.primary = primary if primary is not None else SQLiteTier(p.db_file)
        self.backup = backup if backup is not None else KeyValueTier(p.backup_dir)
        self.fallback = fallback if fallback is not None else KeyValueTier(p.fallback_dir)

    def close(self):
        close = getattr(self.primary, "close", None)
        if close is not None:
            close()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @staticmethod
    def _to_rows(collection: Collection, records: Sequence[Record]) -> tuple:
        schema = SCHEMAS[collection]
        rows, errors = [], []
        for r in records:
            try:
                model = r if isinstance(r, schema) else schema.model_validate(r)
                rows.append(model.to_record())
            except Exception as e:
                errors.append(f"invalid record skipped: {e}")
                logger.warning("Skipping invalid %s record on save: %s", collection.value, e)
        return rows, errors

    @staticmethod
    def _decode(
        collection: Collection,
        rows: List[Any],
        source: StoreTier,
        primary_error: Optional[str] = None,
    ) -> LoadOutcome:
        schema = SCHEMAS[collection]
        outcome = LoadOutcome(collection, [], source, primary_error)
        for row in rows:
            if not isinstance(row, dict):
                outcome.dropped += 1
                continue
            try:
                repair = any(parse_iso(row.get(f)) is None for f in DATE_FIELDS[collection])
                outcome.records.append(schema.model_validate(row))
                if repair:
                    outcome.repaired += 1
            except ValidationError as e:
                outcome.dropped += 1
                logger.warning("Dropping malformed %s record %r: %d error(s)",
                               collection.value, row.get("id"), e.error_count())
            except Exception as e:
                outcome.dropped += 1
                logger.warning("Dropping malformed %s record %r: %s",
                               collection.value, row.get("id"), e)
        if outcome.repaired:
            logger.info("Repaired %d %s record(s) with missing dates",
                        outcome.repaired, collection.value)
        return outcome

    # ------------------------------------------------------------------
    # save / load
    # ------------------------------------------------------------------

    def save(self, collection: Union[Collection, str], records: Sequence[Record]) -> SaveOutcome:
        """
        Replace the collection with `records`.

        Empty input is a no-op and leaves persisted data in place.
        """
        coll = Collection(collection)
        if not records:
            logger.debug("Empty %s save skipped (existing data kept)", coll.value)
            return SaveOutcome(coll, SaveStatus.SKIPPED_EMPTY)

        rows, errors = self._to_rows(coll, records)
        if not rows:
            return SaveOutcome(coll, SaveStatus.SKIPPED_EMPTY, errors=errors)
        payload = json.dumps(rows, ensure_ascii=False)

        try:
            self.primary.replace_all(coll, rows)
        except Exception as e:
            logger.error("Primary save failed for %s: %s", coll.value, e)
            errors.append(f"primary: {e}")
            bus.emit(Events.STORAGE_DEGRADED, {
                "collection": coll.value, "tier": StoreTier.PRIMARY.value, "error": str(e),
            }, source="store")
            try:
                self.fallback.set(coll.value, payload)
                self.fallback.set(f"{coll.value}_fallback", "true")
            except Exception as e2:
                logger.error("Last-resort save failed for %s: %s", coll.value, e2)
                errors.append(f"fallback: {e2}")
                return SaveOutcome(coll, SaveStatus.FAILED, 0, errors)
            logger.warning("Saved %d %s to last-resort tier", len(rows), coll.value)
            return SaveOutcome(coll, SaveStatus.FALLBACK, len(rows), errors)

        status = SaveStatus.SAVED
        try:
            self.backup.set(f"{coll.value}_backup", payload)
            self.backup.set(f"{coll.value}_backup_timestamp", str(int(time.time() * 1000)))
        except Exception as e:
            logger.warning("Backup mirror failed for %s: %s", coll.value, e)
            errors.append(f"backup: {e}")
            status = SaveStatus.SAVED_WITHOUT_BACKUP

        logger.info("Saved %d %s", len(rows), coll.value)
        bus.emit(Events.DATA_SAVED, {
            "collection": coll.value, "count": len(rows), "status": status.value,
        }, source="store")
        return SaveOutcome(coll, status, len(rows), errors)

    def load_outcome(self, collection: Union[Collection, str]) -> LoadOutcome:
        """Load with full provenance: which tier answered, what was repaired."""
        coll = Collection(collection)
        primary_error = None
        rows: List[Any] = []
        rejected: Optional[LoadOutcome] = None
        try:
            rows = self.primary.read_all(coll)
        except Exception as e:
            primary_error = str(e)
            logger.error("Primary load failed for %s: %s", coll.value, e)

        if rows:
            outcome = self._decode(coll, rows, StoreTier.PRIMARY)
            if outcome.records:
                logger.debug("Loaded %d %s from primary", len(outcome.records), coll.value)
                return outcome
            rejected = outcome
            primary_error = f"all {len(rows)} primary record(s) invalid"
            outcome.primary_error = primary_error
            logger.error("Primary %s rows all failed validation, trying lower tiers", coll.value)

        lower = (
            (StoreTier.BACKUP, self.backup, f"{coll.value}_backup"),
            (StoreTier.FALLBACK, self.fallback, coll.value),
        )
        for tier, kv, key in lower:
            try:
                raw = kv.get(key)
                if raw is None:
                    continue
                parsed = json.loads(raw)
            except Exception as e:
                logger.error("%s tier unreadable for %s: %s", tier.value, coll.value, e)
                continue
            if not isinstance(parsed, list) or not parsed:
                continue
            outcome = self._decode(coll, parsed, tier, primary_error)
            logger.warning("Recovered %d %s from %s tier",
                           len(outcome.records), coll.value, tier.value)
            bus.emit(Events.DATA_RECOVERED, {
                "collection": coll.value, "tier": tier.value,
                "count": len(outcome.records),
            }, source="store")
            return outcome

        if rejected is not None:
            return rejected
        source = StoreTier.NONE if primary_error else StoreTier.PRIMARY
        return LoadOutcome(coll, [], source, primary_error)

    def load(self, collection: Union[Collection, str]) -> List[MogleModel]:
        """Records of a collection. Empty list on total failure."""
        return self.load_outcome(collection).records

    def save_emotions(self, entries: Sequence[Record]) -> SaveOutcome:
        return self.save(Collection.EMOTIONS, entries)

    def load_emotions(self) -> List[EmotionEntry]:
        return self.load(Collection.EMOTIONS)

    def save_goals(self, goals: Sequence[Record]) -> SaveOutcome:
        return self.save(Collection.GOALS, goals)

    def load_goals(self) -> List[Goal]:
        return self.load(Collection.GOALS)

    # ------------------------------------------------------------------
    # Whole-store operations
    # ------------------------------------------------------------------

    def export_all(self) -> Dict[str, List[MogleModel]]:
        """Both collections, loaded through the normal recovery path."""
        return {c.value: self.load(c) for c in Collection}

    def export_document(self) -> Dict[str, List[Dict[str, Any]]]:
        """JSON-safe export: {"emotions": [...], "goals": [...]}, ISO dates."""
        return {name: records_of(records) for name, records in self.export_all().items()}

    def write_export(self, target: Optional[Path] = None, now: Optional[datetime] = None) -> Path:
        """
        Write the export document and return its path.

        A directory target (or None, meaning the exports dir) gets the
        mogle_backup_YYYY-MM-DD.json name.
        """
        now = now or datetime.now()
        target = Path(target) if target is not None else get_paths().exports_dir
        if target.suffix != ".json":
            target = target / f"mogle_backup_{now.date().isoformat()}.json"
        document = self.export_document()
        atomic_write_json(target, document, indent=2)
        logger.info("Exported %d emotions, %d goals to %s",
                    len(document["emotions"]), len(document["goals"]), target)
        bus.emit(Events.DATA_EXPORTED, {"path": str(target)}, source="store")
        return target

    def delete_all(self) -> List[str]:
        """
        Clear both collections in every tier. Best-effort: keeps going past
        failures and returns their descriptions (empty list = clean wipe).
        """
        errors = []
        for coll in Collection:
            try:
                self.primary.clear(coll)
            except Exception as e:
                errors.append(f"primary/{coll.value}: {e}")
            keyed = (
                (self.backup, (f"{coll.value}_backup", f"{coll.value}_backup_timestamp")),
                (self.fallback, (coll.value, f"{coll.value}_fallback")),
            )
            for kv, keys in keyed:
                for key in keys:
                    try:
                        kv.remove(key)
                    except Exception as e:
                        errors.append(f"{key}: {e}")
        if errors:
            logger.error("Delete-all finished with %d error(s): %s", len(errors), errors)
        else:
            logger.info("All data deleted")
        bus.emit(Events.DATA_WIPED, {"errors": len(errors)}, source="store")
        return errors

    def stats(self) -> Dict[str, Any]:
        """
        Collection counts. last_updated is the time of this call, not the
        last write.
        """
        return {
            "emotions_count": len(self.load(Collection.EMOTIONS)),
            "goals_count": len(self.load(Collection.GOALS)),
            "last_updated": datetime.now().isoformat(),
        }


# ============================================================================
# Async facade
# ============================================================================

class AsyncEntryStore:
    """
    Awaitable EntryStore. Every call runs on a single-thread pool, so
    concurrent saves are queued rather than interleaved.

    save, load, load_outcome and delete_all keep the never-raise contract
    when the pool backlog is full: the call is refused with a FAILED
    outcome, an empty load or an error entry. export_all and stats raise
    WorkerPoolBusy.
    """

    def __init__(self, store: Optional[EntryStore] = None, max_queue: int = MAX_QUEUE_DEPTH):
        self.store = store or EntryStore()
        self._pool = WorkerPool("store", max_workers=1, max_queue=max_queue)

    async def save(self, collection: Union[Collection, str], records: Sequence[Record]) -> SaveOutcome:
        try:
            return await self._pool.submit(self.store.save, collection, list(records))
        except WorkerPoolBusy as e:
            logger.error("Save refused for %s: %s", collection, e)
            return SaveOutcome(Collection(collection), SaveStatus.FAILED, errors=[str(e)])

    async def load(self, collection: Union[Collection, str]) -> List[MogleModel]:
        return (await self.load_outcome(collection)).records

    async def load_outcome(self, collection: Union[Collection, str]) -> LoadOutcome:
        try:
            return await self._pool.submit(self.store.load_outcome, collection)
        except WorkerPoolBusy as e:
            logger.error("Load refused for %s: %s", collection, e)
            return LoadOutcome(Collection(collection), [], StoreTier.NONE, str(e))

    async def export_all(self) -> Dict[str, List[MogleModel]]:
        return await self._pool.submit(self.store.export_all)

    async def delete_all(self) -> List[str]:
        try:
            return await self._pool.submit(self.store.delete_all)
        except WorkerPoolBusy as e:
            logger.error("Delete-all refused: %s", e)
            return [str(e)]

    async def stats(self) -> Dict[str, Any]:
        return await self._pool.submit(self.store.stats)

    def close(self) -> None:
        self._pool.shutdown(wait=True)
        self.store.close()
