# daycare/services/local_storage.py
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from daycare.core.exceptions import StorageError
from daycare.models.customer import Customer

CUSTOMERS_CACHE_KEY = "kanrisystem_preschool_customers"


def write_json_atomic(path: str, data: Any, indent: Optional[int] = None) -> None:
    """Writes `data` to a temp file beside `path`, then swaps it in. The temp file never outlives a failure."""
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(dir=directory, suffix='.tmp')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=indent)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


class LocalStorage:
    """
    Persisted string key/value store, the server-side counterpart of browser localStorage.
    All keys live in one JSON document; every write replaces the file atomically.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.RLock()
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logging.error(f"Local storage file is unreadable, treating it as empty: {self.path} - {e}")
            return {}
        if not isinstance(data, dict):
            logging.error(f"Local storage file does not hold an object: {self.path}")
            return {}
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        try:
            write_json_atomic(self.path, data)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write local storage {self.path}: {e}") from e

    @contextmanager
    def locked(self) -> Iterator["LocalStorage"]:
        """Holds the store lock across a read-modify-write that spans several calls."""
        with self._lock:
            yield self

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if key in data:
                del data[key]
                self._write_all(data)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._read_all().keys())

    def clear(self) -> None:
        with self._lock:
            self._write_all({})


class CustomerCache:
    """Last customer list read from the sheet. Saving always replaces the whole list."""

    def __init__(self, storage: LocalStorage, key: str = CUSTOMERS_CACHE_KEY):
        self.storage = storage
        self.key = key

    def locked(self):
        return self.storage.locked()

    def load(self) -> List[Customer]:
        try:
            stored = self.storage.get_item(self.key)
            if not stored:
                return []
            data = json.loads(stored)
            customers = [Customer.from_dict(item) for item in data]
            logging.info(f"Loaded {len(customers)} customers from local storage")
            return customers
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logging.error(f"Failed to read customers from local storage: {e}")
            return []

    def save(self, customers: List[Customer]) -> None:
        payload = json.dumps([c.to_dict() for c in customers], ensure_ascii=False)
        self.storage.set_item(self.key, payload)
        logging.info(f"Saved {len(customers)} customers to local storage")

    def clear(self) -> None:
        self.storage.remove_item(self.key)
        logging.info("Cleared cached customers from local storage")
