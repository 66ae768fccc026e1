"""
Local cache: a single JSON document on disk holding every collection plus a
few flags (migration status, configuration version).
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from quotation_manager.shared.serialization import convert_decimals_to_native

logger = logging.getLogger(__name__)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO'))

LOG_PREFIX = "[LOCAL-CACHE]"

DEFAULT_CACHE_PATH = os.path.join(os.path.expanduser("~"), ".inventu_agro", "cache.json")


class LocalCache:
    """Get/set-by-collection access to the cache file."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or os.getenv('LOCAL_CACHE_PATH', DEFAULT_CACHE_PATH))

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {"collections": {}, "flags": {}}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"{LOG_PREFIX} LOAD | Corrupt cache file {self.path}: {str(e)}")
            return {"collections": {}, "flags": {}}
        data.setdefault("collections", {})
        data.setdefault("flags", {})
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(convert_decimals_to_native(data), f, ensure_ascii=False, indent=2, default=str)
        os.replace(tmp_path, self.path)

    def get_collection(self, name: str) -> List[Dict[str, Any]]:
        """Entities of a collection (empty when never written)."""
        return list(self._load()["collections"].get(name) or [])

    def set_collection(self, name: str, entities: List[Dict[str, Any]]) -> None:
        """Replace a whole collection."""
        data = self._load()
        data["collections"][name] = list(entities)
        self._save(data)
        logger.debug(f"{LOG_PREFIX} SET | {name} | Count: {len(entities)}")

    def has_data(self, name: str) -> bool:
        return bool(self._load()["collections"].get(name))

    def upsert(self, name: str, entity: Dict[str, Any]) -> Dict[str, Any]:
        """Insert an entity or replace the one with the same id."""
        entities = self.get_collection(name)
        for index, existing in enumerate(entities):
            if existing.get("id") == entity.get("id"):
                entities[index] = entity
                break
        else:
            entities.append(entity)
        self.set_collection(name, entities)
        return entity

    def remove(self, name: str, entity_id: str) -> bool:
        """Drop an entity by id; False when it was not there."""
        entities = self.get_collection(name)
        remaining = [entity for entity in entities if entity.get("id") != entity_id]
        if len(remaining) == len(entities):
            return False
        self.set_collection(name, remaining)
        return True

    def get_flag(self, name: str, default: Any = None) -> Any:
        return self._load()["flags"].get(name, default)

    def set_flag(self, name: str, value: Any) -> None:
        data = self._load()
        data["flags"][name] = value
        self._save(data)


_default_cache: Optional[LocalCache] = None


def get_local_cache() -> LocalCache:
    """Process-wide cache instance at LOCAL_CACHE_PATH."""
    global _default_cache
    if _default_cache is None:
        _default_cache = LocalCache()
    return _default_cache


def set_local_cache(cache: Optional[LocalCache]) -> None:
    """Swap the process-wide cache (tests). None resets it."""
    global _default_cache
    _default_cache = cache
