"""
Record store for users, videos and comments.

All three collections live in memory. Every mutation rewrites a full snapshot
of every collection through a SnapshotStorage, and startup reads them back.
Swapping JSONFileStorage for another SnapshotStorage leaves the handlers
untouched.

There is no locking. Appends are never lost in memory, but two requests
incrementing the same counter may lose one increment, and the file on disk
reflects whichever snapshot was written last. Each snapshot file is replaced
atomically, so racing writers never leave a half-written file behind.
"""

import json
import logging
import os
import tempfile
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

from errors import StorageError

logger = logging.getLogger(__name__)

COLLECTIONS = ("users", "videos", "comments")


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SnapshotStorage(ABC):
    """Where collection snapshots are read from and written to."""

    @abstractmethod
    def read(self, name: str) -> List[Dict[str, Any]]:
        """Return the stored records of a collection. Raises StorageError if absent or unreadable."""

    @abstractmethod
    def write(self, name: str, records: List[Dict[str, Any]]) -> None:
        """Replace the stored snapshot of a collection. Raises StorageError on failure."""


class JSONFileStorage(SnapshotStorage):
    """One JSON array per collection, ``<data_dir>/<name>.json``, rewritten wholesale."""

    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)

    def path_for(self, name: str) -> Path:
        return self.data_dir / f"{name}.json"

    def read(self, name: str) -> List[Dict[str, Any]]:
        path = self.path_for(name)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"Could not read {path}: {e}") from e
        if not isinstance(data, list):
            raise StorageError(f"{path} does not hold a JSON array")
        return data

    def write(self, name: str, records: List[Dict[str, Any]]) -> None:
        path = self.path_for(name)
        tmp_path = None
        try:
            data = json.dumps(records, indent=2, ensure_ascii=False)
            self.data_dir.mkdir(parents=True, exist_ok=True)
            # Each write gets its own temp file; os.replace swaps it in whole.
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.data_dir, prefix=f".{name}.", suffix=".tmp", delete=False
            ) as f:
                tmp_path = f.name
                f.write(data)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise StorageError(f"Could not write {path}: {e}") from e


class Collection:
    """Insertion-ordered records of one entity kind."""

    def __init__(self, name: str, records: Optional[List[Dict[str, Any]]] = None):
        self.name = name
        self.records: List[Dict[str, Any]] = list(records or [])

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.records)

    @staticmethod
    def _matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
        return all(doc.get(k) == v for k, v in query.items())

    def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for doc in self.records:
            if self._matches(doc, query):
                return doc
        return None

    def find(self, query: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        query = query or {}
        return [doc for doc in self.records if self._matches(doc, query)]

    def insert_one(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        self.records.append(doc)
        return doc


class RecordStore:
    def __init__(self, storage: SnapshotStorage):
        self.storage = storage
        self.collections: Dict[str, Collection] = {name: Collection(name) for name in COLLECTIONS}

    def __getitem__(self, name: str) -> Collection:
        return self.collections[name]

    def load(self) -> None:
        """Read every snapshot. An absent or broken snapshot starts that collection empty."""
        for name in COLLECTIONS:
            try:
                records = self.storage.read(name)
            except StorageError as e:
                logger.warning("Starting %s empty: %s", name, e)
                records = []
            self.collections[name] = Collection(name, records)
        logger.info(
            "Record store loaded: %s",
            ", ".join(f"{len(c)} {name}" for name, c in self.collections.items()),
        )

    def persist(self) -> None:
        for name, collection in self.collections.items():
            self.storage.write(name, collection.records)

    def mutate(self, name: str, fn: Callable[[Collection], Any]) -> Any:
        """Apply ``fn`` to a collection, then persist everything.

        A failed persist is logged and the in-memory change is kept.
        """
        result = fn(self.collections[name])
        try:
            self.persist()
        except StorageError:
            logger.exception("Error saving data after mutating %s", name)
        return result

    def create_document(self, name: str, data: Dict[str, Any]) -> Dict[str, Any]:
        doc = {"id": new_id(), **data, "created_at": utcnow_iso()}
        return self.mutate(name, lambda collection: collection.insert_one(doc))

    def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        return {name: [dict(doc) for doc in c] for name, c in self.collections.items()}
