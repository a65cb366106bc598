"""
JSON file record store.

Each collection lives in its own document, ``<DATA_DIR>/<collection>.json``,
holding a single object with one array field named after the collection:

    {"assignments": [{...}, {...}]}

There is no per-record addressing. Every operation loads the whole array and
writes the whole array back. Writes inside this process are serialised per
collection; other processes writing the same files are not coordinated.
"""

import json
import logging
import os
import tempfile
import threading
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

DATA_DIR = os.getenv("DATA_DIR", "./data")


class JSONStore:
    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()
        self._id_lock = threading.Lock()
        self._last_id = 0

    def path_for(self, collection: str) -> str:
        return os.path.join(self.data_dir, f"{collection}.json")

    def _lock_for(self, collection: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(collection)
            if lock is None:
                lock = self._locks[collection] = threading.RLock()
            return lock

    def exists(self, collection: str) -> bool:
        return os.path.exists(self.path_for(collection))

    def load(self, collection: str) -> List[Dict[str, Any]]:
        """Return the stored records, or an empty list if the document is absent or unreadable."""
        path = self.path_for(collection)
        try:
            with open(path, "r", encoding="utf-8") as f:
                doc = json.load(f)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s, treating as empty: %s", path, e)
            return []
        records = doc.get(collection) if isinstance(doc, dict) else None
        if not isinstance(records, list):
            logger.warning("%s has no '%s' array, treating as empty", path, collection)
            return []
        return records

    def save(self, collection: str, records: List[Dict[str, Any]]) -> None:
        """Overwrite the document with ``records`` via a temp file and rename."""
        os.makedirs(self.data_dir, exist_ok=True)
        path = self.path_for(collection)
        with self._lock_for(collection):
            fd, tmp_path = tempfile.mkstemp(prefix=f".{collection}.", suffix=".tmp", dir=self.data_dir)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump({collection: list(records)}, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise

    def seed(self, collection: str, default_records: List[Dict[str, Any]]) -> bool:
        """Write ``default_records`` only if the document does not exist yet."""
        with self._lock_for(collection):
            if self.exists(collection):
                return False
            self.save(collection, default_records)
            logger.info("Seeded %s with %d record(s)", collection, len(default_records))
            return True

    @contextmanager
    def transaction(self, collection: str) -> Iterator[List[Dict[str, Any]]]:
        """Load, let the caller mutate the list in place, then save it back.

        The collection lock is held for the whole cycle. Nothing is written if
        the block raises.
        """
        with self._lock_for(collection):
            records = self.load(collection)
            yield records
            self.save(collection, records)

    def new_id(self) -> str:
        # Millisecond timestamps, bumped so ids from this process never repeat.
        with self._id_lock:
            candidate = int(time.time() * 1000)
            if candidate <= self._last_id:
                candidate = self._last_id + 1
            self._last_id = candidate
            return str(candidate)


db = JSONStore(DATA_DIR)


def create_document(collection_name: str, data: Dict[str, Any], store: Optional[JSONStore] = None) -> str:
    """Append a record with a fresh id (unless it already has one) and return the id."""
    store = store or db
    doc = dict(data)
    doc.setdefault("id", store.new_id())
    with store.transaction(collection_name) as records:
        records.append(doc)
    return doc["id"]


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    store: Optional[JSONStore] = None,
) -> List[Dict[str, Any]]:
    """Return records whose fields equal every key/value in ``filter_dict``, in storage order."""
    store = store or db
    records = store.load(collection_name)
    if not filter_dict:
        return records
    return [r for r in records if all(r.get(k) == v for k, v in filter_dict.items())]
