"""
In-memory local storage.
"""

import copy
from typing import Any, Dict, Iterable, Mapping

from .base import DEFAULT_ITEMS, LocalStorage, check_keys


class MemoryStorage(LocalStorage):
    """Local storage kept in a dict; values are deep-copied in and out."""

    def __init__(self, initial: Mapping[str, Any] = None):
        self._items: Dict[str, Any] = {}
        if initial:
            check_keys(initial)
            self._items.update(copy.deepcopy(dict(initial)))

    async def load(self, keys: Iterable[str]) -> Dict[str, Any]:
        keys = list(keys)
        check_keys(keys)
        return {
            key: copy.deepcopy(self._items.get(key, DEFAULT_ITEMS[key]))
            for key in keys
        }

    async def store(self, items: Mapping[str, Any]) -> None:
        check_keys(items)
        self._items.update(copy.deepcopy(dict(items)))
