"""
SQLite implementation of local storage using aiosqlite.

Values are kept as JSON text in a single ``items`` table. Every store call
runs in one transaction so its fields become visible together.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional

import aiosqlite

from .base import DEFAULT_ITEMS, LocalStorage, check_keys

logger = logging.getLogger(__name__)


class SQLiteStorage(LocalStorage):
    """Local storage backed by an SQLite database file."""

    def __init__(self, db_path: str):
        """Initialize SQLite storage.

        Args:
            db_path: Path to the SQLite database file, or ``:memory:``
        """
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        """Open the database and create the items table."""
        async with self._lock:
            if self._connection is not None:
                return

            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            self._connection = await aiosqlite.connect(self.db_path)
            await self._connection.execute("PRAGMA journal_mode=WAL")
            await self._connection.execute(
                "CREATE TABLE IF NOT EXISTS items (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
            )
            await self._connection.commit()
            logger.info(f"SQLite storage opened at {self.db_path}")

    async def close(self) -> None:
        async with self._lock:
            if self._connection is None:
                return
            await self._connection.close()
            self._connection = None

    async def _get_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            await self.connect()
        return self._connection

    async def load(self, keys: Iterable[str]) -> Dict[str, Any]:
        keys = list(keys)
        check_keys(keys)
        result = {key: DEFAULT_ITEMS[key] for key in keys}
        if not keys:
            return result

        conn = await self._get_connection()
        placeholders = ", ".join("?" for _ in keys)
        async with conn.execute(
            f"SELECT key, value FROM items WHERE key IN ({placeholders})", keys
        ) as cursor:
            rows = await cursor.fetchall()

        for key, value in rows:
            result[key] = json.loads(value)
        return result

    async def store(self, items: Mapping[str, Any]) -> None:
        check_keys(items)
        if not items:
            return

        conn = await self._get_connection()
        rows = [(key, json.dumps(value)) for key, value in items.items()]
        async with self._lock:
            try:
                await conn.execute("BEGIN")
                await conn.executemany(
                    "INSERT INTO items (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    rows,
                )
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise
