"""Local record store for finished operations and last-known resources.

Records are JSON documents addressed by ``(kind, key)``, where ``key`` is the
API resource path (``projects/{project}/...``). A terminal operation record
never changes again, so once stored it is served from here instead of asking
the control plane.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Any

import aiosqlite
from pydantic import BaseModel

log = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".cache" / "cloudops_mcp" / "cache.db"
PRUNE_INTERVAL = 24 * 3600


def project_of(key: str) -> str | None:
    parts = key.split("/")
    if len(parts) > 1 and parts[0] == "projects":
        return parts[1]
    return None


@dataclass(frozen=True)
class CacheEntry:
    kind: str
    key: str
    project: str | None
    data: Mapping[str, Any]
    stored_at: datetime

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> CacheEntry:
        kind, key, project, data, stored_at = row
        return cls(
            kind=kind,
            key=key,
            project=project,
            data=MappingProxyType(json.loads(data)),
            stored_at=datetime.fromisoformat(stored_at),
        )


class Cache:
    SCHEMA = """
        CREATE TABLE IF NOT EXISTS records (
            kind TEXT NOT NULL,
            key TEXT NOT NULL,
            project TEXT,
            data TEXT NOT NULL,
            stored_at TEXT NOT NULL,
            PRIMARY KEY (kind, key)
        );
        CREATE INDEX IF NOT EXISTS idx_records_stored ON records(stored_at);
        CREATE INDEX IF NOT EXISTS idx_records_project ON records(project, kind);
    """
    COLUMNS = "kind, key, project, data, stored_at"

    def __init__(self, db_path: Path = DEFAULT_DB_PATH, retention_days: int = 30) -> None:
        self.db_path = db_path
        self.retention_days = retention_days
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._prune_task: asyncio.Task[None] | None = None

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError(f"Cache {self.db_path} is not open, use 'async with Cache(...)'")
        return self._conn

    async def open(self) -> None:
        async with self._lock:
            if self._conn is not None:
                raise RuntimeError(f"Cache {self.db_path} is already open")

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = await aiosqlite.connect(self.db_path)
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.executescript(self.SCHEMA)
            await conn.commit()
            self._conn = conn
            log.debug("Opened cache %s", self.db_path)

            if self.retention_days > 0:
                self._prune_task = asyncio.create_task(self._prune_periodically(), name="cache-prune")

    async def close(self) -> None:
        async with self._lock:
            if self._conn is None:
                return
            if self._prune_task is not None:
                self._prune_task.cancel()
                with suppress(asyncio.CancelledError):
                    await self._prune_task
                self._prune_task = None
            await self._conn.close()
            self._conn = None

    async def __aenter__(self) -> Cache:
        await self.open()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def prune(self) -> int:
        """Delete records stored more than ``retention_days`` ago."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=self.retention_days)
        cursor = await self.conn.execute("DELETE FROM records WHERE stored_at < ?", (cutoff.isoformat(),))
        await self.conn.commit()
        if cursor.rowcount:
            log.info("Pruned %d cached records older than %d days", cursor.rowcount, self.retention_days)
        return cursor.rowcount

    async def _prune_periodically(self) -> None:
        while True:
            try:
                await self.prune()
            except aiosqlite.Error:
                log.exception("Failed to prune cache %s", self.db_path)
            await asyncio.sleep(PRUNE_INTERVAL)

    async def get(self, kind: str, key: str) -> CacheEntry | None:
        query = f"SELECT {self.COLUMNS} FROM records WHERE kind = ? AND key = ?"
        async with self.conn.execute(query, (kind, key)) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return CacheEntry.from_row(tuple(row))

    async def put(self, kind: str, key: str, data: Mapping[str, Any] | BaseModel) -> CacheEntry:
        if isinstance(data, BaseModel):
            data = data.model_dump(by_alias=True, exclude_none=True, mode="json")

        entry = CacheEntry(
            kind=kind,
            key=key,
            project=project_of(key),
            data=MappingProxyType(dict(data)),
            stored_at=datetime.now(timezone.utc),
        )
        await self.conn.execute(
            f"""
            INSERT INTO records ({self.COLUMNS}) VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(kind, key) DO UPDATE SET data = excluded.data, stored_at = excluded.stored_at
            """,
            (kind, key, entry.project, json.dumps(dict(data)), entry.stored_at.isoformat()),
        )
        await self.conn.commit()
        return entry

    async def delete(self, kind: str, key: str) -> bool:
        cursor = await self.conn.execute("DELETE FROM records WHERE kind = ? AND key = ?", (kind, key))
        await self.conn.commit()
        return cursor.rowcount > 0
