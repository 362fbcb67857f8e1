"""
Persistent document store for the penpals database.

The whole Database aggregate is read and written as one JSON document.
Every service receives the same store handle and wraps each logical
operation in transaction(): acquire lock, load, mutate, save, release.
The lock is store-wide and re-entrant, so HTTP requests and scheduler jobs
never interleave a read-modify-write.

Backends:
- JsonFileStore: flat file, atomic replace on write
- ValkeyStore: one key in Valkey, short read cache
- InMemoryStore: tests and local development
"""

import json
import logging
import os
import tempfile
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import redis
from pydantic import ValidationError as PydanticValidationError

from clients.valkey_client import ValkeyClient
from core.exceptions import PersistenceError
from core.models import Database

logger = logging.getLogger(__name__)


class DocumentStore:
    """Base class: subclasses implement load() and save()."""

    def __init__(self):
        self._lock = threading.RLock()

    def load(self) -> Database:
        """Read the current document. Raises PersistenceError."""
        raise NotImplementedError

    def save(self, db: Database) -> None:
        """Replace the stored document. Raises PersistenceError."""
        raise NotImplementedError

    def snapshot(self) -> Database:
        """Consistent read-only copy of the database."""
        with self._lock:
            return self.load()

    @contextmanager
    def transaction(self) -> Iterator[Database]:
        """
        Scoped read-modify-write.

        Yields a mutable Database. On normal exit the document is saved if it
        changed; if the block raises, nothing is written and the exception
        propagates.

        Usage:
            with store.transaction() as db:
                db.users[email].intro = intro
        """
        with self._lock:
            db = self.load()
            before = db.model_copy(deep=True)
            yield db
            if db != before:
                self.save(db)


class InMemoryStore(DocumentStore):
    """Keeps the serialized document in memory. Same semantics as the durable backends."""

    def __init__(self, initial: Database | None = None):
        super().__init__()
        self._document = (initial or Database()).model_dump_json()

    def load(self) -> Database:
        return Database.model_validate_json(self._document)

    def save(self, db: Database) -> None:
        self._document = db.model_dump_json()


class JsonFileStore(DocumentStore):
    """
    Whole-document JSON file.

    Missing file means an empty database. Writes go to a temp file in the
    same directory and are renamed over the original, so a crash mid-write
    never leaves a truncated document.
    """

    def __init__(self, path: str | Path):
        super().__init__()
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Database:
        if not self._path.exists():
            return Database()

        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to read database file {self._path}: {e}")
            raise PersistenceError(f"Cannot read {self._path}: {e}")

        try:
            return Database.model_validate(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            logger.error(f"Database file {self._path} is corrupt: {e}")
            raise PersistenceError(f"Corrupt database file {self._path}: {e}")

    def save(self, db: Database) -> None:
        payload = json.dumps(db.model_dump(mode="json"), indent=2)
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{self._path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error(f"Failed to write database file {self._path}: {e}")
            raise PersistenceError(f"Cannot write {self._path}: {e}")


class ValkeyStore(DocumentStore):
    """
    Whole document stored as JSON under a single Valkey key.

    Loaded documents are reused for cache_ttl_seconds to avoid a round trip
    on every read; save() refreshes the cache. Callers always receive a deep
    copy so an aborted transaction cannot leak into the cache.
    """

    def __init__(self, valkey: ValkeyClient, key: str, cache_ttl_seconds: int = 5):
        super().__init__()
        self._valkey = valkey
        self._key = key
        self._cache_ttl_seconds = cache_ttl_seconds
        self._cached: Database | None = None
        self._cached_at = 0.0

    def _cache_fresh(self) -> bool:
        return (
            self._cached is not None
            and time.monotonic() - self._cached_at < self._cache_ttl_seconds
        )

    def load(self) -> Database:
        if self._cache_fresh():
            return self._cached.model_copy(deep=True)

        try:
            document = self._valkey.get_json(self._key)
        except redis.RedisError as e:
            logger.error(f"Failed to read {self._key} from Valkey: {e}")
            raise PersistenceError(f"Valkey read failed: {e}")
        except ValueError as e:
            logger.error(f"Valkey key {self._key} holds invalid JSON: {e}")
            raise PersistenceError(str(e))

        try:
            db = Database() if document is None else Database.model_validate(document)
        except PydanticValidationError as e:
            logger.error(f"Valkey key {self._key} holds an invalid document: {e}")
            raise PersistenceError(f"Invalid document in {self._key}: {e}")

        self._remember(db)
        return db.model_copy(deep=True)

    def save(self, db: Database) -> None:
        try:
            self._valkey.set_json(self._key, db.model_dump(mode="json"))
        except redis.RedisError as e:
            self.invalidate()
            logger.error(f"Failed to write {self._key} to Valkey: {e}")
            raise PersistenceError(f"Valkey write failed: {e}")
        self._remember(db.model_copy(deep=True))

    def invalidate(self) -> None:
        """Drop the cached document; the next load hits Valkey."""
        self._cached = None
        self._cached_at = 0.0

    def _remember(self, db: Database) -> None:
        self._cached = db
        self._cached_at = time.monotonic()
