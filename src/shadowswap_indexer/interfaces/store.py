"""EventStore protocol - persists delivery records and the block cursor."""

from __future__ import annotations

from typing import Protocol

from shadowswap_indexer.models.records import DeliveryRecord


class EventStore(Protocol):
    """Durable lookup-by-id and insert-if-absent store for pool events."""

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        ...

    # ── Events ─────────────────────────────────────────────

    async def has_event(self, event_id: str) -> bool:
        ...

    async def save_event(self, record: DeliveryRecord) -> bool:
        """Insert unless event_id exists. Returns True when a row was written."""
        ...

    async def get_event(self, event_id: str) -> DeliveryRecord | None:
        ...

    async def get_recent_events(self, limit: int = 50) -> list[DeliveryRecord]:
        ...

    async def count_events(self, event_type: str | None = None) -> int:
        ...

    # ── Cursor ─────────────────────────────────────────────

    async def get_cursor(self) -> int | None:
        """Next block number to process, if any was saved."""
        ...

    async def set_cursor(self, block_number: int) -> None:
        ...
