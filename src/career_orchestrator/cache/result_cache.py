"""Content-addressed TTL cache for parsed résumé and job records."""

from __future__ import annotations

import hashlib
import json
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Protocol

DEFAULT_DB_PATH = Path.home() / ".career-orchestrator" / "cache.db"
DEFAULT_TTL_SECONDS = 3600

_SEPARATOR = "\x1f"


def make_key(operation: str, *args: str) -> str:
    """Stable SHA-256 key over the operation name and its ordered arguments."""
    payload = _SEPARATOR.join((operation, *args))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class CacheStore(Protocol):
    def get(self, key: str) -> dict[str, Any] | None: ...

    def set(self, key: str, value: dict[str, Any]) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> int: ...

    def stats(self) -> dict: ...


class MemoryResultCache:
    """In-process cache. Expired entries are dropped when looked up."""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value_json, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
        return json.loads(value_json)

    def set(self, key: str, value: dict[str, Any]) -> None:
        # Stored serialized so callers never share a mutable dict.
        with self._lock:
            self._entries[key] = (json.dumps(value), self._clock() + self.ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def stats(self) -> dict:
        now = self._clock()
        with self._lock:
            total = len(self._entries)
            expired = sum(1 for _, expires_at in self._entries.values() if now >= expires_at)
        return {"total": total, "expired": expired, "active": total - expired}


class SqliteResultCache:
    """SQLite-backed result cache with TTL expiration."""

    def __init__(
        self,
        db_path: str | Path = DEFAULT_DB_PATH,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ):
        self.db_path = Path(db_path)
        self.ttl_seconds = ttl_seconds
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS result_cache (
                    cache_key TEXT PRIMARY KEY,
                    value_json TEXT NOT NULL,
                    expires_at REAL NOT NULL
                )
            """)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    def get(self, key: str) -> dict[str, Any] | None:
        """Get a cached value if not expired."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value_json, expires_at FROM result_cache WHERE cache_key = ?",
                (key,),
            ).fetchone()

        if row is None:
            return None

        value_json, expires_at = row
        if time.time() >= expires_at:
            self.delete(key)
            return None

        return json.loads(value_json)

    def set(self, key: str, value: dict[str, Any]) -> None:
        with self._connect() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO result_cache
                   (cache_key, value_json, expires_at)
                   VALUES (?, ?, ?)""",
                (key, json.dumps(value), time.time() + self.ttl_seconds),
            )

    def delete(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM result_cache WHERE cache_key = ?", (key,))

    def clear(self) -> int:
        """Clear all cached entries. Returns count of deleted rows."""
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM result_cache")
            return cursor.rowcount

    def stats(self) -> dict:
        """Return cache statistics."""
        with self._connect() as conn:
            total = conn.execute("SELECT COUNT(*) FROM result_cache").fetchone()[0]
            expired = conn.execute(
                "SELECT COUNT(*) FROM result_cache WHERE expires_at <= ?",
                (time.time(),),
            ).fetchone()[0]
        return {"total": total, "expired": expired, "active": total - expired}


def build_cache(backend: str, ttl_seconds: int, db_path: str | Path = DEFAULT_DB_PATH) -> CacheStore:
    if backend == "sqlite":
        return SqliteResultCache(db_path, ttl_seconds=ttl_seconds)
    return MemoryResultCache(ttl_seconds=ttl_seconds)
