"""
Local key-value store backed by a single JSON file

Holds the whole application state (one JSON document whose top-level keys
are the collections). Every write rewrites the whole file.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class LocalStore:
    """
    JSON-file key-value store

    Values are JSON-serializable lists. When no path is given the store
    lives in memory only (used by tests and throwaway sessions).

    Examples:
        store = LocalStore("data/portaria.json")
        visitors = store.get_item("visitors")
        store.set_items({"visitors": visitors, "visits": visits})
    """

    def __init__(self, path: Optional[str] = None):
        """
        Initialize store and read the current document

        Args:
            path: JSON file path. None keeps the store in memory.

        Raises:
            json.JSONDecodeError: If the file exists but is not valid JSON
            OSError: If the file exists but cannot be read
        """
        self.path = Path(path) if path else None
        self._data: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        if self.path is None:
            logger.info("Local store running in memory")
            return {}

        if not self.path.exists():
            logger.info(f"Local store not found, starting empty: {self.path}")
            return {}

        with self.path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)

        if not isinstance(data, dict):
            logger.warning(f"Local store {self.path} is not a JSON object, ignoring it")
            return {}

        logger.info(f"Local store loaded from {self.path} (keys: {sorted(data)})")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        if self.path is None:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a sibling temp file first so a crash never leaves half a document
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        logger.debug(f"Local store written to {self.path}")

    def get_item(self, key: str) -> List[Dict[str, Any]]:
        """
        Get the collection stored under a key

        Args:
            key: Store key

        Returns:
            Stored list, or an empty list when the key is missing or not a list
        """
        value = self._data.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            logger.warning(f"Store key '{key}' does not hold a list, treating it as empty")
            return []
        return value

    def set_item(self, key: str, value: List[Dict[str, Any]]) -> None:
        """Replace one key and rewrite the store"""
        self.set_items({key: value})

    def set_items(self, items: Dict[str, List[Dict[str, Any]]]) -> None:
        """
        Replace several keys with a single write

        Args:
            items: Mapping of key to JSON-serializable list

        Raises:
            OSError: If the file cannot be written (the store keeps its
                previous contents)
        """
        data = {**self._data, **items}
        self._write(data)
        self._data = data
