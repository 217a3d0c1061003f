"""SQLite implementation of the EventStore protocol."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from shadowswap_indexer.models.records import DeliveryRecord

SCHEMA = """
-- Block cursor for resumption
CREATE TABLE IF NOT EXISTS cursor (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    next_block INTEGER NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Pool events seen by the indexer
CREATE TABLE IF NOT EXISTS htlc_events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_id TEXT NOT NULL UNIQUE,
    swap_id TEXT NOT NULL,
    event_type TEXT NOT NULL,
    pool_type TEXT NOT NULL,
    chain TEXT NOT NULL,
    block_number INTEGER NOT NULL,
    transaction_hash TEXT NOT NULL,
    payload TEXT NOT NULL,
    observed_at INTEGER NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_htlc_events_swap ON htlc_events(swap_id);
CREATE INDEX IF NOT EXISTS idx_htlc_events_type ON htlc_events(event_type);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteEventStore:
    """SQLite-backed implementation of the EventStore protocol."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Events ─────────────────────────────────────────────

    async def has_event(self, event_id: str) -> bool:
        async with self.db.execute(
            "SELECT 1 FROM htlc_events WHERE event_id=? LIMIT 1", (event_id,)
        ) as cur:
            return await cur.fetchone() is not None

    async def save_event(self, record: DeliveryRecord) -> bool:
        cur = await self.db.execute(
            "INSERT OR IGNORE INTO htlc_events"
            " (event_id, swap_id, event_type, pool_type, chain, block_number,"
            "  transaction_hash, payload, observed_at, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.event_id, record.swap_id, record.event_type,
                record.pool_type, record.chain, record.block_number,
                record.transaction_hash, json.dumps(record.payload),
                record.observed_at, record.created_at or _now(),
            ),
        )
        await self.db.commit()
        return cur.rowcount > 0

    async def get_event(self, event_id: str) -> DeliveryRecord | None:
        async with self.db.execute(
            "SELECT * FROM htlc_events WHERE event_id=?", (event_id,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_record(row) if row else None

    async def get_recent_events(self, limit: int = 50) -> list[DeliveryRecord]:
        async with self.db.execute(
            "SELECT * FROM htlc_events ORDER BY id DESC LIMIT ?", (limit,)
        ) as cur:
            return [_row_to_record(row) async for row in cur]

    async def count_events(self, event_type: str | None = None) -> int:
        if event_type:
            query, params = "SELECT COUNT(*) AS c FROM htlc_events WHERE event_type=?", (event_type,)
        else:
            query, params = "SELECT COUNT(*) AS c FROM htlc_events", ()
        async with self.db.execute(query, params) as cur:
            row = await cur.fetchone()
            return row["c"] if row else 0

    # ── Cursor ─────────────────────────────────────────────

    async def get_cursor(self) -> int | None:
        async with self.db.execute("SELECT next_block FROM cursor WHERE id=1") as cur:
            row = await cur.fetchone()
            return row["next_block"] if row else None

    async def set_cursor(self, block_number: int) -> None:
        await self.db.execute(
            "INSERT INTO cursor (id, next_block, updated_at) VALUES (1, ?, ?)"
            " ON CONFLICT(id) DO UPDATE SET next_block=excluded.next_block,"
            " updated_at=excluded.updated_at",
            (block_number, _now()),
        )
        await self.db.commit()


# ── Row converters ─────────────────────────────────────────


def _row_to_record(row: aiosqlite.Row) -> DeliveryRecord:
    return DeliveryRecord(
        event_id=row["event_id"],
        swap_id=row["swap_id"],
        event_type=row["event_type"],
        pool_type=row["pool_type"],
        chain=row["chain"],
        block_number=row["block_number"],
        transaction_hash=row["transaction_hash"],
        payload=json.loads(row["payload"]),
        observed_at=row["observed_at"],
        created_at=row["created_at"],
    )
