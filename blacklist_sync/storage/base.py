"""
Abstract local storage interface.

Local storage holds every persisted field of the engine as JSON-compatible
values. Each key has an explicit default so that a missing value is never
mistaken for ``False`` or an empty string by accident.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Mapping

from ..models import EPOCH, SyncInterval, to_iso_string

DEFAULT_ITEMS: Dict[str, Any] = {
    "blacklist": "",
    "timestamp": to_iso_string(EPOCH),
    "cloud_storage_id": None,
    "cloud_storage_token": None,
    "sync_interval": SyncInterval.FIVE_MINUTES.value,
    "sync_result": None,
}


def check_keys(keys: Iterable[str]) -> None:
    """Raise KeyError for keys without a declared default."""
    unknown = [key for key in keys if key not in DEFAULT_ITEMS]
    if unknown:
        raise KeyError(f"Unknown storage keys: {', '.join(sorted(unknown))}")


class LocalStorage(ABC):
    """Key-value persistence used by the sync engine."""

    @abstractmethod
    async def load(self, keys: Iterable[str]) -> Dict[str, Any]:
        """
        Load values for the given keys.

        Args:
            keys: Keys to load; each must appear in DEFAULT_ITEMS

        Returns:
            Mapping of every requested key to its stored value or its default
        """
        pass

    @abstractmethod
    async def store(self, items: Mapping[str, Any]) -> None:
        """
        Store values atomically.

        All fields of a single call become visible together to any later load.

        Args:
            items: Partial mapping of keys to new values
        """
        pass

    async def close(self) -> None:
        """Release resources held by the storage."""
        pass
