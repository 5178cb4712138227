# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: the shared document holding every collection.

All mutations go through ``update(collection, mutator)``, a serialized
read-mutate-write of ONE collection. Sibling collections are never
re-serialized from a partial in-memory copy.
"""

import contextlib
import json
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Any, Callable, TypeVar

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from relief_service.core.errors import StorageError
from relief_service.core.logging import get_logger
from relief_service.metrics import STORE_CONFLICTS
from relief_service.models.domain import COLLECTIONS, Document

logger = get_logger(__name__)

T = TypeVar("T")
Mutator = Callable[[list[dict[str, Any]]], T]


def _check_collection(name: str) -> None:
    if name not in COLLECTIONS:
        raise KeyError(f"Unknown collection '{name}'")


class DocumentStore:
    """Interface shared by the JSON-file and SQL backends."""

    def initialize(self) -> None:
        raise NotImplementedError

    def read(self) -> Document:
        raise NotImplementedError

    def read_collection(self, name: str) -> list[dict[str, Any]]:
        raise NotImplementedError

    def update(self, name: str, mutator: Mutator) -> T:
        """
        Apply ``mutator`` to a fresh copy of the collection and persist it.
        If the mutator raises, nothing is written and the error propagates.
        """
        raise NotImplementedError

    def verify_connection(self) -> None:
        raise NotImplementedError

    def dispose(self) -> None:
        pass


class JsonDocumentStore(DocumentStore):
    """
    One JSON file. A process-wide lock orders every read-mutate-write and
    each write atomically replaces the file, so a crash never leaves a
    half-written document behind.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def initialize(self) -> None:
        with self._lock:
            if not self._path.exists():
                self._dump(Document().model_dump())
                logger.info("Created empty document at %s", self._path)

    def read(self) -> Document:
        with self._lock:
            raw = self._load()
        return Document.model_validate(raw)

    def read_collection(self, name: str) -> list[dict[str, Any]]:
        _check_collection(name)
        with self._lock:
            raw = self._load()
        return list(raw.get(name) or [])

    def update(self, name: str, mutator: Mutator) -> T:
        _check_collection(name)
        with self._lock:
            raw = self._load()
            items = list(raw.get(name) or [])
            result = mutator(items)
            raw[name] = items
            self._dump(raw)
        return result

    def verify_connection(self) -> None:
        with self._lock:
            self._load()

    # ── Private ──

    def _load(self) -> dict[str, Any]:
        try:
            with self._path.open(encoding="utf-8") as fh:
                raw = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Failed to read document %s: %s", self._path, exc)
            raise StorageError("Document store unreadable") from exc
        if not isinstance(raw, dict):
            raise StorageError("Document store holds an unexpected shape")
        return raw

    def _dump(self, raw: dict[str, Any]) -> None:
        tmp_name = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(raw, fh, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self._path)
        except OSError as exc:
            logger.error("Failed to write document %s: %s", self._path, exc)
            if tmp_name:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            raise StorageError("Document store unwritable") from exc


class _VersionConflict(Exception):
    pass


def _is_lock_contention(exc: OperationalError) -> bool:
    # SQLite reports a competing writer as "database is locked"
    return "locked" in str(exc.orig).lower()


class SqlDocumentStore(DocumentStore):
    """
    One row per collection: (name, body JSON, version). Writes are a
    compare-and-swap on ``version``; conflicting writers retry against the
    fresh row, so concurrent processes never silently overwrite each other.
    """

    TABLE = "document_collections"

    def __init__(self, engine: Engine, max_retries: int = 5) -> None:
        self._engine = engine
        self._max_retries = max(1, max_retries)

    def initialize(self) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(text(f"""
                    CREATE TABLE IF NOT EXISTS {self.TABLE} (
                        name    VARCHAR(64) PRIMARY KEY,
                        body    TEXT        NOT NULL,
                        version INTEGER     NOT NULL
                    )
                """))
        except SQLAlchemyError as exc:
            raise StorageError("Document store unavailable") from exc

    def read(self) -> Document:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(text(f"SELECT name, body FROM {self.TABLE}")).fetchall()
        except SQLAlchemyError as exc:
            raise StorageError("Document store unavailable") from exc
        return Document.model_validate({r[0]: json.loads(r[1]) for r in rows})

    def read_collection(self, name: str) -> list[dict[str, Any]]:
        _check_collection(name)
        try:
            with self._engine.connect() as conn:
                items, _ = self._fetch(conn, name)
        except SQLAlchemyError as exc:
            raise StorageError("Document store unavailable") from exc
        return items

    def update(self, name: str, mutator: Mutator) -> T:
        _check_collection(name)
        for attempt in range(1, self._max_retries + 1):
            try:
                with self._engine.begin() as conn:
                    items, version = self._fetch(conn, name)
                    result = mutator(items)
                    body = json.dumps(items)
                    if version is None:
                        conn.execute(
                            text(f"INSERT INTO {self.TABLE} (name, body, version) VALUES (:name, :body, 1)"),
                            {"name": name, "body": body},
                        )
                    else:
                        res = conn.execute(
                            text(f"""
                                UPDATE {self.TABLE}
                                SET body = :body, version = version + 1
                                WHERE name = :name AND version = :version
                            """),
                            {"name": name, "body": body, "version": version},
                        )
                        if res.rowcount == 0:
                            raise _VersionConflict(name)
                return result
            except (_VersionConflict, IntegrityError):
                STORE_CONFLICTS.labels(collection=name).inc()
                logger.warning("Write conflict on collection=%s attempt=%d", name, attempt)
            except OperationalError as exc:
                if not _is_lock_contention(exc):
                    logger.error("Document store write failed: %s", exc)
                    raise StorageError("Document store unavailable") from exc
                STORE_CONFLICTS.labels(collection=name).inc()
                logger.warning("Database locked on collection=%s attempt=%d", name, attempt)
                time.sleep(0.01 * attempt)
            except SQLAlchemyError as exc:
                logger.error("Document store write failed: %s", exc)
                raise StorageError("Document store unavailable") from exc
        raise StorageError(f"Too many concurrent writes to '{name}'")

    def verify_connection(self) -> None:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StorageError("Document store unavailable") from exc

    def dispose(self) -> None:
        self._engine.dispose()

    # ── Private ──

    def _fetch(self, conn, name: str) -> tuple[list[dict[str, Any]], int | None]:
        row = conn.execute(
            text(f"SELECT body, version FROM {self.TABLE} WHERE name = :name"),
            {"name": name},
        ).first()
        if row is None:
            return [], None
        return json.loads(row[0]), row[1]
