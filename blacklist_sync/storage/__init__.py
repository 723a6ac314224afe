"""
Local persistence for the blacklist sync engine.
"""

from .base import DEFAULT_ITEMS, LocalStorage
from .memory import MemoryStorage
from .sqlite import SQLiteStorage
from .tokens import TokenStore, load_or_create_key, make_cipher

__all__ = [
    "DEFAULT_ITEMS",
    "LocalStorage",
    "MemoryStorage",
    "SQLiteStorage",
    "TokenStore",
    "load_or_create_key",
    "make_cipher",
]
