# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

"""
SQLite-backed durable queue (aiosqlite).

One table keyed by record id, with an index on the creation timestamp. Every
mutating call runs in its own committed transaction, and WAL journaling keeps a
crash in the middle of one write from damaging rows written before it.

Driver/IO errors are reported as `StorageError`. `list_all()` drops rows that no
longer decode (logged) and returns the rest; `get()` on such a row raises.
"""

import asyncio
import json
import sqlite3
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiosqlite
from pydantic import ValidationError

from ..core.log import get_logger
from ..core.types import RecordId
from ..core.utils import dumps, loads
from ..errors import StorageError
from ..models import QueuedRequest

__all__ = ["SqliteQueueStore"]

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS queued_requests (
        id          TEXT PRIMARY KEY,
        method      TEXT NOT NULL,
        url         TEXT NOT NULL,
        headers     TEXT NOT NULL DEFAULT '{}',
        params      TEXT,
        data        TEXT,
        timestamp   INTEGER NOT NULL,
        retry_count INTEGER NOT NULL DEFAULT 0
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_queued_requests_timestamp ON queued_requests (timestamp)",
)

_COLUMNS = "id, method, url, headers, params, data, timestamp, retry_count"


def _encode_optional(value: Any) -> str | None:
    return None if value is None else dumps(value)


class SqliteQueueStore:
    """
    QueueStore over a local SQLite file.

    The connection is opened lazily on first use; call `close()` (or use
    ``async with``) on shutdown. ``":memory:"`` is accepted for throwaway stores.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        self._conn: aiosqlite.Connection | None = None
        self._open_lock = asyncio.Lock()
        self.log = get_logger("storage.sqlite")

    # ---- lifecycle

    async def open(self) -> None:
        async with self._open_lock:
            if self._conn is not None:
                return
            try:
                if self.path != ":memory:":
                    Path(self.path).parent.mkdir(parents=True, exist_ok=True)
                conn = await aiosqlite.connect(self.path)
                conn.row_factory = aiosqlite.Row
                if self.path != ":memory:":
                    await conn.execute("PRAGMA journal_mode=WAL")
                for stmt in _SCHEMA:
                    await conn.execute(stmt)
                await conn.commit()
            except (sqlite3.Error, OSError) as e:
                raise StorageError(f"cannot open queue database {self.path}: {e}") from e
            self._conn = conn
            self.log.debug("queue db opened", event="store.open", path=self.path)

    async def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            await conn.close()
        except sqlite3.Error as e:
            raise StorageError(f"cannot close queue database: {e}") from e
        self.log.debug("queue db closed", event="store.close", path=self.path)

    async def __aenter__(self) -> SqliteQueueStore:
        await self.open()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            await self.open()
        assert self._conn is not None
        return self._conn

    @asynccontextmanager
    async def _write(self) -> AsyncIterator[aiosqlite.Connection]:
        conn = await self._connection()
        try:
            yield conn
            await conn.commit()
        except sqlite3.Error as e:
            try:
                await conn.rollback()
            except sqlite3.Error:
                self.log.warning("rollback failed", event="store.rollback.failed", path=self.path)
            raise StorageError(f"queue write failed: {e}") from e

    async def _read(self, sql: str, *args: Any) -> list[aiosqlite.Row]:
        conn = await self._connection()
        try:
            async with conn.execute(sql, args) as cur:
                return list(await cur.fetchall())
        except sqlite3.Error as e:
            raise StorageError(f"queue read failed: {e}") from e

    # ---- row mapping

    def _row_to_record(self, row: aiosqlite.Row) -> QueuedRequest:
        try:
            return QueuedRequest(
                id=row["id"],
                method=row["method"],
                url=row["url"],
                headers=loads(row["headers"]) if row["headers"] else {},
                params=loads(row["params"]) if row["params"] is not None else None,
                data=loads(row["data"]) if row["data"] is not None else None,
                timestamp=row["timestamp"],
                retry_count=row["retry_count"],
            )
        except (ValidationError, json.JSONDecodeError, UnicodeDecodeError) as e:
            raise StorageError(f"corrupted queue row {row['id']!r}: {e}") from e

    # ---- QueueStore

    async def enqueue(self, record: QueuedRequest) -> None:
        try:
            values = (
                record.id,
                record.method.value,
                record.url,
                dumps(record.headers),
                _encode_optional(record.params),
                _encode_optional(record.data),
                record.timestamp,
                record.retry_count,
            )
        except (TypeError, ValueError) as e:
            raise StorageError(f"request {record.id} is not serializable: {e}") from e
        async with self._write() as conn:
            await conn.execute(f"INSERT INTO queued_requests ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)", values)

    async def list_all(self) -> Sequence[QueuedRequest]:
        rows = await self._read(f"SELECT {_COLUMNS} FROM queued_requests ORDER BY timestamp ASC, id ASC")
        records: list[QueuedRequest] = []
        corrupted: list[str] = []
        for row in rows:
            try:
                records.append(self._row_to_record(row))
            except StorageError as e:
                self.log.error(
                    "dropping undecodable queue row", event="store.row.corrupted", record_id=row["id"], error=str(e)
                )
                corrupted.append(row["id"])
        # evict rows that can never decode
        if corrupted:
            async with self._write() as conn:
                await conn.executemany("DELETE FROM queued_requests WHERE id = ?", [(rid,) for rid in corrupted])
        return records

    async def get(self, record_id: RecordId) -> QueuedRequest | None:
        rows = await self._read(f"SELECT {_COLUMNS} FROM queued_requests WHERE id = ?", record_id)
        return self._row_to_record(rows[0]) if rows else None

    async def remove(self, record_id: RecordId) -> None:
        async with self._write() as conn:
            await conn.execute("DELETE FROM queued_requests WHERE id = ?", (record_id,))

    async def update_retry_count(self, record_id: RecordId, retry_count: int) -> None:
        async with self._write() as conn:
            await conn.execute("UPDATE queued_requests SET retry_count = ? WHERE id = ?", (int(retry_count), record_id))

    async def count(self) -> int:
        rows = await self._read("SELECT COUNT(*) AS n FROM queued_requests")
        return int(rows[0]["n"]) if rows else 0

    async def clear_all(self) -> None:
        async with self._write() as conn:
            await conn.execute("DELETE FROM queued_requests")
