"""
JSON key/value store for pipeline data (names, places, filtered places)
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class JsonStore:
    """Flat-file key/value store with upsert-by-key and atomic writes"""

    def __init__(self, path: str):
        self.path = Path(path)

    def load(self) -> Dict[str, Any]:
        """Read the whole store; a missing or unreadable file is empty"""
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Store {self.path} does not hold an object, ignoring it")
            return {}
        return data

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self.load().get(key, default)

    def upsert(self, key: str, value: Any):
        self.upsert_many({key: value})

    def upsert_many(self, entries: Dict[str, Any]):
        """Insert or replace each key, leaving the others untouched"""
        data = self.load()
        data.update(entries)
        self._write(data)
        logger.info(f"Upserted keys in {self.path}: {', '.join(entries)}")

    def _write(self, data: Dict[str, Any]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
