"""
Anonymous visitor favorites kept in client-side storage.

Browsers keep the set as a JSON array under a single localStorage key. The
store below works over any string key/value mapping so the same rules apply
to the copy a client sends with its login request.
"""

from typing import Iterable, List, MutableMapping, Optional
import json
import logging

logger = logging.getLogger(__name__)

FAVORITES_KEY = "zameenhub_favorites"


class LocalFavoritesStore:
    """Ordered, duplicate-free list of property ids under one storage key."""

    def __init__(self, storage: Optional[MutableMapping[str, str]] = None, key: str = FAVORITES_KEY):
        self.storage = storage if storage is not None else {}
        self.key = key

    @classmethod
    def from_ids(cls, property_ids: Iterable[str]) -> "LocalFavoritesStore":
        store = cls()
        for property_id in property_ids:
            store.add(property_id)
        return store

    def get_all(self) -> List[str]:
        """Stored ids; unreadable content counts as empty."""
        raw = self.storage.get(self.key)
        if not raw:
            return []
        try:
            value = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Discarding unreadable local favorites under '{self.key}'")
            return []
        if not isinstance(value, list):
            return []
        return [str(item) for item in value]

    def _write(self, property_ids: List[str]) -> None:
        self.storage[self.key] = json.dumps(property_ids)

    def add(self, property_id: str) -> None:
        favorites = self.get_all()
        if property_id not in favorites:
            favorites.append(property_id)
            self._write(favorites)

    def remove(self, property_id: str) -> None:
        self._write([item for item in self.get_all() if item != property_id])

    def contains(self, property_id: str) -> bool:
        return property_id in self.get_all()

    def clear(self) -> None:
        self.storage.pop(self.key, None)

    def __len__(self) -> int:
        return len(self.get_all())
